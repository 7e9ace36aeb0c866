from bookbuild.builders.pdf import PdfBuilder
from bookbuild.builders.epub import EpubBuilder
from bookbuild.builders.html import HtmlBuilder

BUILDERS = {
    "pdf": PdfBuilder,
    "epub": EpubBuilder,
    "html": HtmlBuilder,
}

# Canonical build order; --all builds every one of these
ALL_FORMATS = ["pdf", "epub", "html"]


def run_builds(config, request, manuscript):
    """
    Run each requested builder in order, one after another.

    A failed format is recorded and the remaining formats still run.
    """
    results = []
    for fmt in request.formats:
        builder = BUILDERS[fmt](config, request)
        results.append(builder.build(manuscript))
    return results
