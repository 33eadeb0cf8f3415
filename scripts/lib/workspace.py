"""Scoped working directories for one diff run."""

from __future__ import annotations

import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator


@dataclass(frozen=True)
class RunContext:
    """Directories owned by a single run.

    ``workspace_dir`` is the checked-out repository (read-only to the tools);
    ``specs_dir`` and ``output_dir`` are private temp dirs removed on exit.
    """
    workspace_dir: Path
    specs_dir: Path
    output_dir: Path

    def workspace_path(self, relative: str) -> Path:
        """Resolve a user-supplied path against the workspace."""
        return self.workspace_dir / relative

    def report_path(self, filename: str) -> Path:
        """Host path of a report the diff tool wrote to /output."""
        return self.output_dir / filename


def default_workspace() -> Path:
    """GITHUB_WORKSPACE, else the current directory."""
    value = (os.environ.get("GITHUB_WORKSPACE") or "").strip()
    return Path(value) if value else Path.cwd()


@contextmanager
def run_context(workspace_dir: Path | None = None) -> Iterator[RunContext]:
    """Create the run's temp dirs and remove them however the run ends."""
    workspace = workspace_dir if workspace_dir is not None else default_workspace()
    specs_dir = Path(tempfile.mkdtemp(prefix="openapi-diff-specs-"))
    try:
        output_dir = Path(tempfile.mkdtemp(prefix="openapi-diff-output-"))
    except BaseException:
        shutil.rmtree(specs_dir, ignore_errors=True)
        raise
    try:
        yield RunContext(workspace_dir=workspace, specs_dir=specs_dir, output_dir=output_dir)
    finally:
        shutil.rmtree(specs_dir, ignore_errors=True)
        shutil.rmtree(output_dir, ignore_errors=True)
