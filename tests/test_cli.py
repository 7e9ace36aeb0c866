"""
Tests for the build_book.py command line.

Tests:
- Case-insensitive flags, help, and usage errors
- Format selection and continue-on-failure exit status
- --test dispatch and exit status
"""

import os

import pytest

import build_book
from bookbuild.depcheck import Check, DependencyReport

from conftest import FakePandoc


def run(book_project, *args):
    return build_book.main(["--root", str(book_project), *args])


def built_formats(fake_pandoc):
    return [os.path.splitext(FakePandoc.output(cmd))[1].lstrip(".") for cmd in fake_pandoc.calls]


class TestNormalizeArgs:

    def test_lowercases_flags(self):
        assert build_book.normalize_args(["--PDF", "--Epub", "-H"]) == ["--pdf", "--epub", "-h"]

    def test_keeps_values(self):
        assert build_book.normalize_args(["--OUTPUT-DIR=Build/Out", "Some/Path"]) == [
            "--output-dir=Build/Out", "Some/Path"
        ]

    def test_keeps_separate_value_token(self):
        """A value passed as the next argument is never case-folded, even if it looks like a flag."""
        assert build_book.normalize_args(["--Output-Dir", "-Build", "--ROOT", "My/Root", "--PDF"]) == [
            "--output-dir", "-Build", "--root", "My/Root", "--pdf"
        ]

    def test_unknown_option_keeps_spelling(self):
        assert build_book.normalize_args(["--FOO", "--Pdf"]) == ["--FOO", "--pdf"]


class TestHelpAndUsage:

    def test_no_flags_prints_help(self, book_project, fake_pandoc, capsys):
        assert build_book.main([]) == 0
        assert "--pdf" in capsys.readouterr().out
        assert fake_pandoc.calls == []

    @pytest.mark.parametrize("flag", ["-h", "--help", "--HELP", "-H"])
    def test_help_flag(self, flag, capsys):
        assert build_book.main([flag]) == 0
        assert "case-insensitive" in capsys.readouterr().out

    @pytest.mark.parametrize("args", [
        ["--foo"], ["--pdf", "--foo"], ["--pd"], ["stray"],
        ["--foo", "--help"], ["--help", "--foo"], ["--pdf", "--foo", "-h"],
    ])
    def test_unknown_flag(self, book_project, fake_pandoc, capsys, args):
        with pytest.raises(SystemExit) as exc:
            run(book_project, *args)

        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "usage:" in err
        assert fake_pandoc.calls == []

    def test_help_wins_over_format_flags(self, book_project, fake_pandoc, capsys):
        assert run(book_project, "--pdf", "--Help") == 0
        assert "usage:" in capsys.readouterr().out
        assert fake_pandoc.calls == []


class TestFormatSelection:

    @pytest.mark.parametrize("flag", ["--pdf", "--PDF", "--Pdf", "--pDf"])
    def test_flag_case_variants(self, book_project, fake_pandoc, flag):
        assert run(book_project, flag) == 0
        assert built_formats(fake_pandoc) == ["pdf"]

    @pytest.mark.parametrize("args", [["--pdf", "--epub"], ["--epub", "--pdf"]])
    def test_two_formats_any_order(self, book_project, fake_pandoc, args):
        assert run(book_project, *args) == 0

        assert built_formats(fake_pandoc) == ["pdf", "epub"]
        first, second = fake_pandoc.calls
        assert FakePandoc.inputs(first) == FakePandoc.inputs(second)

    def test_all(self, book_project, fake_pandoc):
        assert run(book_project, "--all") == 0
        assert built_formats(fake_pandoc) == ["pdf", "epub", "html"]

    def test_repeated_flag_builds_once(self, book_project, fake_pandoc):
        assert run(book_project, "--html", "--HTML", "--all") == 0
        assert built_formats(fake_pandoc) == ["pdf", "epub", "html"]

    def test_example_scenario(self, book_project, fake_pandoc, capsys):
        """1 title + 4 chapters + 2 appendices go to pandoc; the stub is reported."""
        assert run(book_project, "--pdf") == 0

        (cmd,) = fake_pandoc.calls
        assert len(FakePandoc.inputs(cmd)) == 7

        out = capsys.readouterr().out
        assert "03-placeholder.md (10 lines, minimum 20 required)" in out
        assert "1 title + 4 chapters + 2 appendices" in out

        artifact = book_project / "public" / "downloads" / "freebsd-device-drivers.pdf"
        assert artifact.is_file()

    def test_output_dir_override(self, book_project, fake_pandoc, tmp_path):
        target = tmp_path / "Custom-Out"

        assert run(book_project, "--PDF", f"--Output-Dir={target}") == 0

        assert FakePandoc.output(fake_pandoc.calls[0]) == str(target / "freebsd-device-drivers.pdf")

    def test_uses_current_directory_by_default(self, book_project, fake_pandoc, monkeypatch):
        monkeypatch.chdir(book_project)
        assert build_book.main(["--html"]) == 0
        assert (book_project / "public" / "downloads" / "freebsd-device-drivers.html").is_file()


class TestFailures:

    def test_epub_failure_does_not_block_pdf(self, book_project, fake_pandoc, capsys):
        fake_pandoc.fail.add("epub")

        assert run(book_project, "--pdf", "--epub") == 1

        assert built_formats(fake_pandoc) == ["pdf", "epub"]
        assert (book_project / "public" / "downloads" / "freebsd-device-drivers.pdf").is_file()
        assert "EPUB" in capsys.readouterr().err

    def test_missing_metadata_is_fatal(self, book_project, fake_pandoc, capsys):
        (book_project / "scripts" / "metadata.yaml").unlink()

        assert run(book_project, "--all") == 1

        assert fake_pandoc.calls == []
        assert "metadata.yaml" in capsys.readouterr().err

    def test_invalid_config_is_fatal(self, book_project, fake_pandoc, capsys):
        (book_project / "book.yaml").write_text("min_lines: -3\n")

        assert run(book_project, "--pdf") == 1

        assert fake_pandoc.calls == []
        assert "min_lines" in capsys.readouterr().err

    def test_blank_template_rejected_before_any_build(self, book_project, fake_pandoc, capsys):
        (book_project / "book.yaml").write_text("pdf:\n  template:\n")

        assert run(book_project, "--pdf", "--html") == 1

        assert fake_pandoc.calls == []
        assert "pdf.template" in capsys.readouterr().err

    def test_config_threshold_applies(self, book_project, fake_pandoc):
        (book_project / "book.yaml").write_text("min_lines: 5\n")

        assert run(book_project, "--pdf") == 0

        assert len(FakePandoc.inputs(fake_pandoc.calls[0])) == 8


class TestDependencyTest:

    @pytest.fixture
    def report(self, monkeypatch):
        """Replace run_checks with a canned report; returns its checks list."""
        checks = []
        monkeypatch.setattr(build_book, "run_checks", lambda config: DependencyReport(checks))
        return checks

    def test_passing(self, book_project, fake_pandoc, report, capsys):
        check = Check("Pandoc")
        check.ok("Pandoc found: pandoc 3.1.9")
        report.append(check)

        assert run(book_project, "--test") == 0
        assert "All dependencies are properly installed" in capsys.readouterr().out

    def test_failing(self, book_project, fake_pandoc, report, capsys):
        good = Check("Pandoc")
        good.ok("found")
        bad = Check("xelatex")
        bad.fail("xelatex not found")
        report.extend([good, bad])

        assert run(book_project, "--TEST") == 1
        assert "xelatex" in capsys.readouterr().err

    def test_test_does_not_build(self, book_project, fake_pandoc, report):
        assert run(book_project, "--test", "--all") == 0
        assert fake_pandoc.calls == []
