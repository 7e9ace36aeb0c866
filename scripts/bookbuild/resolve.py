"""
Content discovery, filtering, and manuscript assembly.

Every build and the dependency self-test gather their markdown through
here, so all output formats see exactly the same list of files.

Layout (relative to the project root, configurable in book.yaml):
    scripts/title.md        title unit, always first
    content/chapters/       chapter units, any depth
    content/appendices/     appendix units, any depth
"""

import os


class ContentUnit:
    """One markdown source file and the facts used to filter it."""

    def __init__(self, path, group, line_count=None, readable=True):
        self.path = path
        self.group = group
        self.line_count = line_count
        self.readable = readable

    def eligible(self, min_lines):
        return self.readable and self.line_count is not None and self.line_count >= min_lines

    def __repr__(self):
        return f"ContentUnit({self.path!r}, {self.group!r}, line_count={self.line_count!r})"


class Manuscript:
    """
    The assembled input list for one run.

    inputs is the converter's argument order: title, chapters, appendices.
    skipped holds the chapter/appendix units that were filtered out.
    """

    def __init__(self, title, chapters, appendices, skipped, min_lines):
        self.title = title
        self.chapters = list(chapters)
        self.appendices = list(appendices)
        self.skipped = list(skipped)
        self.min_lines = min_lines

    @property
    def units(self):
        return [self.title] + self.chapters + self.appendices

    @property
    def inputs(self):
        return [unit.path for unit in self.units]

    def describe(self):
        return (
            f"{len(self.units)} total (1 title + {len(self.chapters)} chapters"
            f" + {len(self.appendices)} appendices)"
        )


# ── Discovery ──────────────────────────────────────────────────────────


def iter_markdown_files(root):
    """
    Yield every *.md path under root, recursively, in lexical path order.

    A missing root yields nothing. Entries that cannot be read (dangling
    symlinks, permission problems) are still yielded so the filter can
    report them.
    """
    if not os.path.isdir(root):
        return

    found = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            if name.endswith(".md"):
                found.append(os.path.join(dirpath, name))

    yield from sorted(found)


def count_lines(path):
    """Count newline characters, the way `wc -l` does. Raises OSError."""
    count = 0
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            count += chunk.count(b"\n")
    return count


def scan_units(root, group):
    """Yield a ContentUnit for each markdown file discovered under root."""
    for path in iter_markdown_files(root):
        try:
            if not os.path.isfile(path):
                raise OSError(f"not a regular file: {path}")
            yield ContentUnit(path, group, line_count=count_lines(path))
        except OSError:
            yield ContentUnit(path, group, readable=False)


def filter_units(units, min_lines):
    """Split units into (included, skipped), keeping discovery order."""
    included = []
    skipped = []
    for unit in units:
        if unit.eligible(min_lines):
            included.append(unit)
        else:
            skipped.append(unit)
    return included, skipped


def assemble_manuscript(config):
    """
    Gather the title unit plus the filtered chapters and appendices.

    Called once per run; the result is shared by every format builder.
    """
    min_lines = config.min_lines

    chapters, skipped_chapters = filter_units(
        scan_units(config.path("chapters_dir"), "chapter"), min_lines
    )
    appendices, skipped_appendices = filter_units(
        scan_units(config.path("appendices_dir"), "appendix"), min_lines
    )

    title = ContentUnit(config.path("title_file"), "title")

    return Manuscript(
        title=title,
        chapters=chapters,
        appendices=appendices,
        skipped=skipped_chapters + skipped_appendices,
        min_lines=min_lines,
    )


# ── Reporting helpers ──────────────────────────────────────────────────


def skip_reason(unit, min_lines):
    """One-line explanation for why a unit was left out."""
    if not unit.readable:
        return "inaccessible file"
    return f"{unit.line_count} lines, minimum {min_lines} required"


def report_skipped(manuscript, project_root=None):
    """Print one warning per skipped unit."""
    for unit in manuscript.skipped:
        path = display_path(unit.path, project_root)
        print(f"   ⚠ Skipping {path} ({skip_reason(unit, manuscript.min_lines)})")


def display_path(path, project_root=None):
    """Show paths relative to the project root when they live under it."""
    if project_root:
        rel = os.path.relpath(path, project_root)
        if not rel.startswith(os.pardir):
            return rel
    return path


def human_size(nbytes):
    """Format a byte count like `du -h` (1.2M, 340K, 12B)."""
    size = float(nbytes)
    for unit in ["B", "K", "M", "G"]:
        if size < 1024 or unit == "G":
            if unit == "B":
                return f"{int(size)}B"
            return f"{size:.1f}{unit}"
        size /= 1024
