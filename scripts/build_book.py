#!/usr/bin/env python3
"""
Build script for the FreeBSD Device Drivers book.

Builds the book in PDF, EPUB, and/or HTML5 using pandoc and the Eisvogel
LaTeX template, or checks that the toolchain is installed.

Usage:
    python scripts/build_book.py --pdf              Build PDF only
    python scripts/build_book.py --epub --html      Build EPUB and HTML5
    python scripts/build_book.py --all              Build all formats
    python scripts/build_book.py --test             Test dependencies

Options are case-insensitive: --PDF, --Pdf and --pdf all work the same.

Requires: pandoc 3.0+, PyYAML
PDF also needs: xelatex + the Eisvogel template
"""

import os
import sys
import argparse
import traceback

# Ensure bookbuild is importable when run straight from the scripts/ directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bookbuild.config import BuildConfig, BuildRequest, ConfigError
from bookbuild.resolve import assemble_manuscript, display_path, report_skipped
from bookbuild.builders import ALL_FORMATS, run_builds
from bookbuild.depcheck import run_checks


FORMAT_ICONS = {"pdf": "📚", "epub": "📖", "html": "🌐"}
FORMAT_LABELS = {"pdf": "PDF", "epub": "EPUB", "html": "HTML"}

# Option names accepted in any case; VALUE_OPTIONS take an argument
VALUE_OPTIONS = {"--output-dir", "--config", "--root"}
OPTION_NAMES = {
    "--pdf", "--epub", "--html", "--all", "--test",
    "-h", "--help", "-v", "--verbose",
} | VALUE_OPTIONS


# ── Test command ───────────────────────────────────────────────────────


def cmd_test(config):
    """Run every dependency check and report a single verdict."""
    print("🔍 Testing build system dependencies...")

    report = run_checks(config)
    report.print()

    print()
    if report.ok:
        print("🎉 All dependencies are properly installed! You can build your book.")
        print("   Run with --help for build options")
        return 0

    failed = ", ".join(check.name for check in report.failed)
    print(f"❌ Some dependencies are missing ({failed}). Please install them before building.",
          file=sys.stderr)
    return 1


# ── Build command ──────────────────────────────────────────────────────


def cmd_build(config, formats, args):
    """Build the requested formats, continuing past individual failures."""
    missing = [
        config.path(key)
        for key in ["title_file", "metadata_file"]
        if not os.path.isfile(config.path(key))
    ]
    if missing:
        for path in missing:
            print(f"Error: required file not found: {path}", file=sys.stderr)
        print("  Run with --test to check the full build setup.", file=sys.stderr)
        return 1

    request = BuildRequest.create(
        formats, config, output_dir=args.output_dir, verbose=args.verbose
    )

    print(f"🚀 {config.title} Book Build System")
    print("=" * 45)
    config.summary()
    print("\n  Build configuration:")
    for fmt in request.formats:
        print(f"    {FORMAT_ICONS[fmt]} {FORMAT_LABELS[fmt]}: Enabled")
    print(f"  Output: {request.output_dir}")

    # Assembled once; every builder gets the same list
    manuscript = assemble_manuscript(config)
    if manuscript.skipped:
        print()
        report_skipped(manuscript, config.project_root)

    results = run_builds(config, request, manuscript)

    print_summary(config, manuscript, results)

    failed = [result for result in results if not result.ok]
    print()
    if failed:
        names = ", ".join(FORMAT_LABELS[result.fmt] for result in failed)
        print(f"❌ Some builds failed ({names}). Check the error messages above.",
              file=sys.stderr)
        return 1

    print("✅ All requested formats built successfully!")
    return 0


def print_summary(config, manuscript, results):
    root = config.project_root

    print(f"\n{'─' * 60}")
    print("🎉 Build process completed!")

    built = [result for result in results if result.ok]
    if built:
        print("\nGenerated files:")
        for result in built:
            label = f"{FORMAT_LABELS[result.fmt]}:"
            print(f"  {FORMAT_ICONS[result.fmt]} {label:<5} {display_path(result.output_file, root)}")

    print("\nFile structure used:")
    print(f"  📁 Chapters: {config.chapters_dir}/ ({len(manuscript.chapters)} files, excluding short files)")
    if manuscript.appendices:
        print(f"  📁 Appendices: {config.appendices_dir}/ ({len(manuscript.appendices)} files, excluding short files)")

    if any(result.fmt == "pdf" for result in results):
        pdf = config.pdf
        print("\nPDF template configuration:")
        print(f"  🎨 Template: {pdf['template']}")
        print(f"  🔧 PDF Engine: {pdf['engine']}")
        print(f"  💻 Code highlighting: {config.highlight_style}")


# ── Argument Parser ────────────────────────────────────────────────────


class BuildArgumentParser(argparse.ArgumentParser):
    """Reports usage errors on stderr with exit status 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(
            1,
            f"❌ {self.prog}: error: {message}\n"
            f"   Run '{self.prog} --help' for usage information\n"
            "   Note: Options are case-insensitive (e.g., --PDF, --Pdf, --pdf all work)\n",
        )


def build_parser():
    parser = BuildArgumentParser(
        prog="build_book.py",
        description="Build the FreeBSD Device Drivers book in various formats.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        add_help=False,
        epilog="""
NOTE: All options are case-insensitive (--PDF, --Pdf, --pdf all work the same)

examples:
  %(prog)s --pdf              Build PDF only
  %(prog)s --epub --html      Build EPUB and HTML5
  %(prog)s --all              Build all formats
  %(prog)s --test             Test dependencies
  %(prog)s --EPUB --HTML      Same as --epub --html

output (default directory public/downloads/, see book.yaml):
  PDF:  freebsd-device-drivers.pdf
  EPUB: freebsd-device-drivers.epub
  HTML: freebsd-device-drivers.html

requirements:
  Pandoc 3.0+, XeLaTeX (texlive-xetex),
  Eisvogel template at ~/.local/share/pandoc/templates/eisvogel.latex
        """,
    )

    fmt = parser.add_argument_group("output formats")
    fmt.add_argument("--pdf", action="store_true", help="Build PDF version")
    fmt.add_argument("--epub", action="store_true", help="Build EPUB version")
    fmt.add_argument("--html", action="store_true", help="Build HTML5 version")
    fmt.add_argument("--all", action="store_true", help="Build all formats (PDF, EPUB, HTML5)")

    opts = parser.add_argument_group("options")
    opts.add_argument("-h", "--help", action="store_true", help="Show this help message and exit")
    opts.add_argument(
        "--test", action="store_true",
        help="Test if all dependencies are properly installed",
    )
    opts.add_argument("--output-dir", help="Override output directory")
    opts.add_argument("--config", help="Path to book.yaml (default: <root>/book.yaml)")
    opts.add_argument("--root", help="Project root (default: current directory)")
    opts.add_argument("--verbose", "-v", action="store_true", help="Show full pandoc output")

    return parser


def normalize_args(argv):
    """
    Lower-case known option names so flags match in any case.

    Values are left alone, whether attached with "=" or passed as the
    next argument; unknown options keep their spelling for the error message.
    """
    normalized = []
    expect_value = False
    for arg in argv:
        if expect_value:
            expect_value = False
        elif arg.startswith("-"):
            name, sep, value = arg.partition("=")
            if name.lower() in OPTION_NAMES:
                name = name.lower()
                expect_value = name in VALUE_OPTIONS and not sep
            arg = name + sep + value
        normalized.append(arg)
    return normalized


# ── Main ───────────────────────────────────────────────────────────────


def main(argv=None):
    parser = build_parser()
    # Unknown options fail here, before --help is honoured
    args = parser.parse_args(normalize_args(sys.argv[1:] if argv is None else argv))

    if args.help:
        parser.print_help()
        return 0

    if args.all:
        formats = list(ALL_FORMATS)
    else:
        formats = [fmt for fmt in ALL_FORMATS if getattr(args, fmt)]

    # Nothing requested: show help rather than guess
    if not formats and not args.test:
        parser.print_help()
        return 0

    project_root = os.path.abspath(args.root or os.getcwd())
    try:
        config = BuildConfig.load(project_root, args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.test:
        return cmd_test(config)

    return cmd_build(config, formats, args)


def cli():
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        log_path = "build_error.log"
        with open(log_path, "w") as f:
            traceback.print_exc(file=f)
        print(f"\nUnexpected error: {e}", file=sys.stderr)
        print(f"Full traceback written to {log_path}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    cli()
