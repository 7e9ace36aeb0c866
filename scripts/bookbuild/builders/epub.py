"""
EPUB builder.

Each top-level heading starts a new chapter file inside the epub.
"""

from bookbuild.builders.base import BaseBuilder


class EpubBuilder(BaseBuilder):
    fmt = "epub"
    format_name = "EPUB"
    extension = ".epub"
    icon = "📖"

    def format_args(self):
        epub = self.config.epub

        args = [f"--epub-chapter-level={epub['chapter_level']}"]
        if epub.get("verbose"):
            args.append("--verbose")
        return args
