"""
Shared pytest fixtures for the book build tests.

Provides:
- A throwaway book project laid out like the real repository
- A fake pandoc that records its command lines instead of converting
"""

import os
import subprocess

import pytest

from bookbuild.config import BuildConfig


def write_lines(path, count):
    """Create a markdown file with exactly `count` lines."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"line {i}\n" for i in range(count)))
    return path


@pytest.fixture
def book_project(tmp_path):
    """
    Project with 5 chapters (one a 10-line stub) and 2 appendices.

    Mirrors the layout build_book.py expects:
    scripts/title.md, scripts/metadata.yaml, content/chapters, content/appendices
    """
    write_lines(tmp_path / "scripts" / "title.md", 5)
    (tmp_path / "scripts" / "metadata.yaml").write_text("lang: en-US\n")

    chapters = tmp_path / "content" / "chapters"
    write_lines(chapters / "01-introduction.md", 40)
    write_lines(chapters / "02-setup.md", 25)
    write_lines(chapters / "03-placeholder.md", 10)
    write_lines(chapters / "04-kernel" / "04-modules.md", 20)
    write_lines(chapters / "05-drivers.md", 60)

    appendices = tmp_path / "content" / "appendices"
    write_lines(appendices / "a-tools.md", 30)
    write_lines(appendices / "b-glossary.md", 22)

    return tmp_path


@pytest.fixture
def config(book_project):
    return BuildConfig.load(str(book_project))


class FakePandoc:
    """
    Stand-in for subprocess.run that records pandoc invocations.

    Writes a small artifact to the `-o` path unless the format
    (the output extension) is listed in `fail`.
    """

    def __init__(self):
        self.calls = []
        self.fail = set()
        self.write_output = True

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        output = cmd[cmd.index("-o") + 1]
        fmt = os.path.splitext(output)[1].lstrip(".")

        if fmt in self.fail:
            return subprocess.CompletedProcess(
                cmd, 43, stdout="", stderr=f"Error producing {fmt}\n"
            )

        if self.write_output:
            with open(output, "w") as f:
                f.write(f"fake {fmt} artifact\n")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    @staticmethod
    def inputs(cmd):
        """The input files: everything between 'pandoc' and the first option."""
        files = []
        for arg in cmd[1:]:
            if arg.startswith("-"):
                break
            files.append(arg)
        return files

    @staticmethod
    def output(cmd):
        return cmd[cmd.index("-o") + 1]


@pytest.fixture
def fake_pandoc(monkeypatch):
    fake = FakePandoc()
    monkeypatch.setattr("bookbuild.builders.base.subprocess.run", fake)
    return fake
