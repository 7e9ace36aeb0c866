"""
Build dependency self-test (`--test`).

Checks the external toolchain (pandoc, the LaTeX engine, the PDF template)
and the book's own inputs. Every check runs, even after a failure, so one
pass shows everything that is missing.
"""

import os
import re
import shutil
import subprocess

from bookbuild.resolve import assemble_manuscript, display_path, human_size, skip_reason

TEMPLATE_URL = (
    "https://raw.githubusercontent.com/Wandmalfarbe/pandoc-latex-template/master/eisvogel.tex"
)


class Check:
    """
    Result of one dependency check.

    Collects status lines as the check runs; any fail() marks it failed.
    warn() lines are informational and never fail the check.
    """

    def __init__(self, name):
        self.name = name
        self.lines = []
        self.hints = []
        self.passed = True

    def ok(self, msg):
        self.lines.append(("✓", msg))

    def warn(self, msg):
        self.lines.append(("⚠", msg))

    def fail(self, msg, hint=None):
        self.lines.append(("✗", msg))
        if hint:
            self.hints.append(hint)
        self.passed = False


class DependencyReport:
    """All checks from one `--test` run and the aggregate verdict."""

    def __init__(self, checks):
        self.checks = list(checks)

    @property
    def ok(self):
        return all(check.passed for check in self.checks)

    @property
    def failed(self):
        return [check for check in self.checks if not check.passed]

    def print(self):
        for num, check in enumerate(self.checks, 1):
            print(f"\n{num}. Testing {check.name}...")
            for mark, msg in check.lines:
                print(f"   {mark} {msg}")
            for hint in check.hints:
                print(f"   💡 {hint}")


# ── Helpers ────────────────────────────────────────────────────────────


def first_line(cmd):
    """First line of a command's stdout, or None if it cannot run."""
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError:
        return None
    if result.returncode != 0:
        return None
    lines = (result.stdout or "").strip().splitlines()
    return lines[0] if lines else ""


def parse_major_version(version_line):
    """Major version from a line like 'pandoc 3.1.9'. None if absent."""
    match = re.search(r"(\d+)\.(\d+)", version_line or "")
    if not match:
        return None
    return int(match.group(1))


# ── Checks ─────────────────────────────────────────────────────────────


def check_pandoc(config):
    check = Check("Pandoc")
    required = config.required_pandoc_major

    if not shutil.which("pandoc"):
        check.fail("Pandoc not found", hint="Install pandoc: https://pandoc.org/installing.html")
        return check

    version = first_line(["pandoc", "--version"])
    if version is None:
        check.fail("Pandoc found but `pandoc --version` failed")
        return check
    check.ok(f"Pandoc found: {version}")

    major = parse_major_version(version)
    if major is None:
        check.fail(f"Could not determine pandoc version (requires {required}.0+)")
    elif major >= required:
        check.ok(f"Pandoc version {required}.0+ (compatible)")
    else:
        check.fail(f"Pandoc version {major}.x (requires {required}.0+)")
    return check


def check_latex(config):
    engine = config.pdf["engine"]
    check = Check(engine)

    if not shutil.which(engine):
        check.fail(
            f"{engine} not found",
            hint="Install TeX Live: sudo apt install texlive-xetex texlive-fonts-extra"
                 " (macOS: brew install --cask mactex)",
        )
        return check

    version = first_line([engine, "--version"])
    check.ok(f"{engine} found: {version or 'unknown version'}")
    return check


def check_template(config):
    name = config.pdf["template"]
    path = config.template_file
    check = Check(f"{name} template")

    if os.path.isfile(path):
        check.ok(f"Template found: {path}")
        check.ok(f"Template size: {human_size(os.path.getsize(path))}")
    else:
        check.fail(
            f"Template not found at: {path}",
            hint=f"Install with: wget -O {path} {TEMPLATE_URL}",
        )
    return check


def check_output_dir(config):
    """Informational only: the builders create the directory on demand."""
    check = Check("output directory")
    path = config.path("output_dir")
    if os.path.isdir(path):
        check.ok(f"Output directory exists: {path}")
    else:
        check.warn(f"Output directory does not exist, will be created: {path}")
    return check


def check_content(config):
    check = Check("content files")

    for key, label in [("title_file", "Title file"), ("metadata_file", "Metadata file")]:
        path = config.path(key)
        if os.path.isfile(path):
            check.ok(f"{label} found: {path}")
        else:
            check.fail(f"{label} not found: {path}")

    manuscript = assemble_manuscript(config)
    min_lines = config.min_lines

    if manuscript.chapters:
        check.ok(
            f"Chapters found: {len(manuscript.chapters)} files"
            f" (excluding short files < {min_lines} lines)"
        )
    else:
        check.fail(
            f"No valid chapter files found in {config.chapters_dir}"
            f" (all files have < {min_lines} lines)"
        )

    # Appendices are optional; an empty set is worth a warning, not a failure
    if manuscript.appendices:
        check.ok(
            f"Appendices found: {len(manuscript.appendices)} files"
            f" (excluding short files < {min_lines} lines)"
        )
    else:
        check.warn(
            f"No valid appendix files found in {config.appendices_dir}"
            f" (all files have < {min_lines} lines)"
        )

    for unit in manuscript.skipped:
        path = display_path(unit.path, config.project_root)
        check.warn(f"Skipping {path} ({skip_reason(unit, min_lines)})")

    return check


CHECKS = [
    check_pandoc,
    check_latex,
    check_template,
    check_output_dir,
    check_content,
]


def run_checks(config, checks=None):
    """Run every check and collect the results; never stops early."""
    return DependencyReport(check(config) for check in (checks or CHECKS))
