"""GitHub Actions workflow commands and output sinks."""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping


def notice(message: str) -> None:
    """Notice."""
    print(f"::notice::{message}", file=sys.stderr)


def warn(message: str) -> None:
    """Warn."""
    print(f"::warning::{message}", file=sys.stderr)


def error(message: str) -> None:
    """Error."""
    print(f"::error::{message}", file=sys.stderr)


@contextmanager
def group(title: str) -> Iterator[None]:
    """Fold everything printed inside into a collapsible log group."""
    print(f"::group::{title}", flush=True)
    try:
        yield
    finally:
        print("::endgroup::", flush=True)


def _env_path(name: str) -> Path | None:
    value = (os.environ.get(name) or "").strip()
    return Path(value) if value else None


def output_path() -> Path | None:
    """GITHUB_OUTPUT, or None outside Actions."""
    return _env_path("GITHUB_OUTPUT")


def summary_path() -> Path | None:
    """GITHUB_STEP_SUMMARY, or None outside Actions."""
    return _env_path("GITHUB_STEP_SUMMARY")


def write_outputs(path: Path | None, values: Mapping[str, str]) -> None:
    """Append key=value lines; no-op without an output file."""
    if path is None:
        return
    with path.open("a", encoding="utf-8") as fh:
        for key, value in values.items():
            if "\n" in value:
                raise ValueError(f"output {key} must be a single line")
            fh.write(f"{key}={value}\n")
