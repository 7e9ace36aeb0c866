"""
bookbuild — pandoc build toolchain for the FreeBSD Device Drivers book.

Public API:
    from bookbuild.config import BuildConfig, BuildRequest
    from bookbuild.resolve import assemble_manuscript
    from bookbuild.builders import BUILDERS, ALL_FORMATS, run_builds
    from bookbuild.depcheck import run_checks
"""
