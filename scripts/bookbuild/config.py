"""
Build configuration: load, validate, and provide defaults for book.yaml.

book.yaml is optional. Without it the FreeBSD Device Drivers defaults below
are used as-is; with it, top-level keys override the defaults and the
pdf/epub/html sections are merged over their per-format defaults.
"""

import os
from dataclasses import dataclass

import yaml

from bookbuild.builders import ALL_FORMATS


CONFIG_FILENAME = "book.yaml"

# Fields that must be non-empty after defaults are applied
REQUIRED_FIELDS = ["title", "author", "prefix"]

# Fields that must be non-negative integers
INTEGER_FIELDS = ["min_lines", "toc_depth", "required_pandoc_major"]

# Path-valued fields, resolved against the project root
PATH_FIELDS = ["title_file", "metadata_file", "chapters_dir", "appendices_dir", "output_dir"]

# Per-format fields that end up as pandoc arguments
FORMAT_STRING_FIELDS = {
    "pdf": ["template", "template_dir", "engine", "from"],
    "html": ["to"],
}

DEFAULTS = {
    "title": "FreeBSD Device Drivers",
    "author": "Edson Brandi",
    "date": "DRAFT Version 1.0 - August, 30th 2025",
    "prefix": "freebsd-device-drivers",
    "title_file": "scripts/title.md",
    "metadata_file": "scripts/metadata.yaml",
    "chapters_dir": "content/chapters",
    "appendices_dir": "content/appendices",
    "output_dir": "public/downloads",
    "min_lines": 20,
    "toc_depth": 2,
    "highlight_style": "tango",
    "required_pandoc_major": 3,
    "pdf": {},
    "epub": {},
    "html": {},
}

PDF_DEFAULTS = {
    "template": "eisvogel",
    "template_dir": "~/.local/share/pandoc/templates",
    "engine": "xelatex",
    "from": "markdown+fenced_code_blocks",
    "variables": {
        "titlepage": "true",
        "toc-own-page": "true",
        "graphics": "true",
        "papersize": "a4",
        "documentclass": "book",
        "book": "true",
        "code-block-font-size": r"\footnotesize",
        "float-placement-figure": "H",
        "figure-placement": "H",
        "linestretch": "1.15",
        "geometry": "inner=2cm,outer=2cm,top=2.5cm,bottom=2.5cm",
    },
}

EPUB_DEFAULTS = {
    "chapter_level": 1,
    "verbose": True,
}

HTML_DEFAULTS = {
    "to": "html5",
    "embed_resources": True,
}

FORMAT_DEFAULTS = {
    "pdf": PDF_DEFAULTS,
    "epub": EPUB_DEFAULTS,
    "html": HTML_DEFAULTS,
}


class ConfigError(Exception):
    """Raised when book.yaml is missing, unreadable, or invalid."""
    pass


class BuildConfig:
    """
    Loaded, validated build configuration.

    Usage:
        config = BuildConfig.load(project_root)
        config.title             # "FreeBSD Device Drivers"
        config.pdf["engine"]     # "xelatex"
        config.path("chapters_dir")
    """

    def __init__(self, data, project_root):
        self._data = data
        self.project_root = os.path.abspath(project_root)

    @classmethod
    def load(cls, project_root, path=None):
        """
        Load book.yaml from project_root, or from an explicit path.

        A missing book.yaml at the project root is fine (defaults apply);
        an explicit path that does not exist is an error.
        """
        if path is None:
            yaml_path = os.path.join(project_root, CONFIG_FILENAME)
            if not os.path.exists(yaml_path):
                return cls.from_dict({}, project_root)
        else:
            yaml_path = path
            if not os.path.exists(yaml_path):
                raise ConfigError(f"Config file not found: {yaml_path}")

        try:
            with open(yaml_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Could not read {yaml_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"{os.path.basename(yaml_path)} must be a YAML mapping, "
                f"got {type(data).__name__}"
            )

        return cls.from_dict(data, project_root)

    @classmethod
    def from_dict(cls, data, project_root):
        """Apply defaults to a raw mapping and validate the result."""
        merged = {}
        for key, default in DEFAULTS.items():
            merged[key] = data.get(key, default)
        for key, value in data.items():
            merged.setdefault(key, value)

        for fmt, defaults in FORMAT_DEFAULTS.items():
            section = merged.get(fmt) or {}
            if not isinstance(section, dict):
                raise ConfigError(f"'{fmt}' section must be a mapping")
            merged[fmt] = _merge(defaults, section)

        missing = [key for key in REQUIRED_FIELDS if not merged.get(key)]
        if missing:
            raise ConfigError(f"book.yaml missing required fields: {', '.join(missing)}")

        for key in INTEGER_FIELDS:
            value = merged[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"'{key}' must be a non-negative integer, got {value!r}")

        for key in PATH_FIELDS + ["highlight_style"]:
            _require_string(merged[key], key)
        for fmt, keys in FORMAT_STRING_FIELDS.items():
            for key in keys:
                _require_string(merged[fmt].get(key), f"{fmt}.{key}")

        return cls(merged, project_root)

    # ── Attribute access ───────────────────────────────────

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"BuildConfig has no field '{name}'")

    def get(self, key, default=None):
        return self._data.get(key, default)

    def __getitem__(self, key):
        return self._data[key]

    def __contains__(self, key):
        return key in self._data

    # ── Paths ──────────────────────────────────────────────

    def path(self, key):
        """Resolve a path-valued field against the project root."""
        value = os.path.expanduser(self._data[key])
        return os.path.normpath(os.path.join(self.project_root, value))

    @property
    def template_file(self):
        """Where the PDF template is expected to live on disk."""
        pdf = self.pdf
        template = os.path.expanduser(pdf["template"])
        if os.path.isabs(template) or template.endswith((".latex", ".tex")):
            return os.path.join(self.project_root, template)
        template_dir = os.path.expanduser(pdf["template_dir"])
        return os.path.join(template_dir, f"{template}.latex")

    # ── Convenience ────────────────────────────────────────

    def summary(self):
        """Print a short config summary."""
        print(f"\n  Book:   {self.title}")
        print(f"  Author: {self.author}")
        if self.get("date"):
            print(f"  Date:   {self.date}")
        print(f"  Root:   {self.project_root}")


def _require_string(value, name):
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{name}' must be a non-empty string, got {value!r}")


def _merge(defaults, overrides):
    """Shallow-merge overrides over defaults, one level deep for dicts."""
    merged = dict(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class BuildRequest:
    """The formats requested for one invocation plus the fixed book metadata."""

    formats: tuple
    title: str
    author: str
    date: str
    output_dir: str
    verbose: bool = False

    @classmethod
    def create(cls, formats, config, output_dir=None, verbose=False):
        """
        Build a request from the selected format names.

        Formats are put in canonical order and de-duplicated, so
        "--epub --pdf" and "--pdf --epub" produce the same request.
        """
        selected = set(formats)
        unknown = selected.difference(ALL_FORMATS)
        if unknown:
            raise ValueError(f"Unknown format(s): {', '.join(sorted(unknown))}")

        if output_dir:
            output_dir = os.path.abspath(output_dir)
        else:
            output_dir = config.path("output_dir")

        return cls(
            formats=tuple(fmt for fmt in ALL_FORMATS if fmt in selected),
            title=config.title,
            author=config.author,
            date=str(config.get("date") or ""),
            output_dir=output_dir,
            verbose=verbose,
        )
