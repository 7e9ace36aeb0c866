"""
PDF builder.

Pipeline: pandoc → Eisvogel LaTeX template → XeLaTeX, in one pandoc call.
The template is looked up by name in pandoc's user template directory;
`--test` checks that it is actually installed there.
"""

from bookbuild.builders.base import BaseBuilder


class PdfBuilder(BaseBuilder):
    fmt = "pdf"
    format_name = "PDF"
    extension = ".pdf"
    icon = "📚"

    def format_args(self):
        pdf = self.config.pdf

        args = [
            "--template", pdf["template"],
            f"--pdf-engine={pdf['engine']}",
            "--from", pdf["from"],
        ]

        # Template variables (page geometry, title page, code font size...)
        for key, value in (pdf.get("variables") or {}).items():
            args.extend(["--variable", f"{key}={value}"])

        self.log(f"  Template: {pdf['template']}")
        self.log(f"  Engine:   {pdf['engine']}")
        return args
