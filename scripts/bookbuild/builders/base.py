"""
Base builder class for all output formats.

Subclasses set `format_name` / `extension` and implement `format_args()`.
Everything else (input assembly, pandoc invocation, result capture) is
shared, so every format is built from the same manuscript the same way.
"""

import os
import subprocess
from abc import ABC, abstractmethod

from bookbuild.resolve import human_size

# Exit status reported when the converter itself cannot be started
COMMAND_NOT_FOUND = 127


class BuildResult:
    """Outcome of one format build."""

    def __init__(self, fmt, ok, output_file, size=None, returncode=None, output=""):
        self.fmt = fmt
        self.ok = ok
        self.output_file = output_file
        self.size = size
        self.returncode = returncode
        self.output = output

    def __repr__(self):
        state = "ok" if self.ok else f"failed({self.returncode})"
        return f"BuildResult({self.fmt!r}, {state}, {self.output_file!r})"


class BaseBuilder(ABC):
    """
    Abstract base for format builders.

    Subclasses must define:
        format_name:   str    — human-readable name ("PDF", "EPUB", ...)
        extension:     str    — output file extension (".pdf", ".epub", ...)
        format_args(): method — pandoc options specific to the format
    """

    fmt = None          # Override in subclass ("pdf", "epub", "html")
    format_name = None  # Override in subclass
    extension = None    # Override in subclass
    icon = "•"

    def __init__(self, config, request):
        self.config = config
        self.request = request
        self.output_dir = request.output_dir
        self.verbose = request.verbose

    # ── Output path ────────────────────────────────────────

    @property
    def output_file(self):
        return os.path.join(self.output_dir, f"{self.config.prefix}{self.extension}")

    # ── Logging ────────────────────────────────────────────

    def log(self, msg):
        if self.verbose:
            print(msg)

    def header(self):
        print(f"\n{'─' * 60}")
        print(f"  {self.icon} Building {self.format_name}: {self.output_file}")
        print(f"{'─' * 60}")

    # ── Pandoc invocation ──────────────────────────────────

    def common_args(self):
        """Options every format shares: metadata, TOC, numbering, highlighting."""
        args = [f"--metadata-file={self.config.path('metadata_file')}"]
        for key in ["title", "author", "date"]:
            value = getattr(self.request, key)
            if value:
                args.extend(["--metadata", f"{key}={value}"])
        args.extend([
            "--toc",
            f"--toc-depth={self.config.toc_depth}",
            "--number-sections",
            f"--highlight-style={self.config.highlight_style}",
        ])
        return args

    def pandoc_cmd(self, input_files):
        """Full pandoc command line for this format, inputs first."""
        cmd = ["pandoc"]
        cmd.extend(input_files)
        cmd.extend(self.common_args())
        cmd.extend(self.format_args())
        cmd.extend(["-o", self.output_file])
        return cmd

    def exec_cmd(self, cmd):
        """Run a command to completion. Returns (returncode, combined output)."""
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=self.config.project_root,
            )
        except FileNotFoundError:
            return COMMAND_NOT_FOUND, f"{cmd[0]} not found on PATH"
        output = (result.stdout or "") + (result.stderr or "")
        return result.returncode, output

    # ── Build ──────────────────────────────────────────────

    def build(self, manuscript):
        """
        Convert the manuscript to this format.

        Never raises for converter problems; returns a BuildResult either way.
        """
        self.header()
        os.makedirs(self.output_dir, exist_ok=True)

        input_files = manuscript.inputs
        print(f"  Including files: {manuscript.describe()}")

        cmd = self.pandoc_cmd(input_files)
        self.log(f"  Command: {' '.join(cmd)}")

        returncode, output = self.exec_cmd(cmd)

        if self.verbose and output:
            for line in output.strip().splitlines():
                print(f"    {line}")

        if returncode != 0:
            print(f"  ✗ {self.format_name} generation failed (exit code: {returncode})")
            if output and not self.verbose:
                for line in output.strip().splitlines()[:20]:
                    print(f"    {line}")
            return BuildResult(self.fmt, False, self.output_file,
                               returncode=returncode, output=output)

        if not os.path.isfile(self.output_file):
            print(f"  ✗ pandoc exited cleanly but {self.output_file} was not written")
            return BuildResult(self.fmt, False, self.output_file,
                               returncode=returncode, output=output)

        size = os.path.getsize(self.output_file)
        print(f"  ✓ {self.format_name} successfully generated: {self.output_file}")
        print(f"  ✓ {self.format_name} file size: {human_size(size)}")
        self.after_build()

        return BuildResult(self.fmt, True, self.output_file, size=size,
                           returncode=returncode, output=output)

    def after_build(self):
        """Hook for format-specific notes once the artifact exists."""
        pass

    # ── Abstract interface ─────────────────────────────────

    @abstractmethod
    def format_args(self):
        """Return the pandoc options that only this format uses."""
        ...
