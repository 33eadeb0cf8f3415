"""Container invocations of the flattening and diff tools.

Both tools run through ``docker run``. Flattening resolves circular $refs
that make openapi-diff overflow its stack
(https://github.com/OpenAPITools/openapi-diff/issues/124).
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field

from lib.diff_state import RawToolOutput
from lib.workspace import RunContext

WORKSPACE_MOUNT = "/workspace"
SPECS_MOUNT = "/specs"
OUTPUT_MOUNT = "/output"

# Exit code reported when the container runtime itself cannot be started.
EXIT_NOT_FOUND = 127


class ToolError(Exception):
    """An external tool failed in a way the run cannot recover from."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(frozen=True)
class ReportFormat:
    """One report format the diff tool can emit."""
    key: str
    flag: str
    filename: str
    label: str


REPORT_FORMATS: tuple[ReportFormat, ...] = (
    ReportFormat("markdown", "--markdown", "diff.md", "Markdown"),
    ReportFormat("json", "--json", "diff.json", "JSON"),
    ReportFormat("html", "--html", "diff.html", "HTML"),
    ReportFormat("asciidoc", "--asciidoc", "diff.adoc", "Asciidoc"),
    ReportFormat("text", "--text", "diff.txt", "Text"),
)

FORMAT_KEYS = tuple(fmt.key for fmt in REPORT_FORMATS)


@dataclass(frozen=True)
class DiffRequest:
    """Data class for Diff Request."""
    old_spec: str
    new_spec: str
    formats: tuple[str, ...] = ()
    fail_on_breaking: bool = False
    fail_on_changed: bool = False
    log_level: str | None = None
    headers: list[str] = field(default_factory=list)


def is_remote(spec: str) -> bool:
    """Is remote."""
    return spec.startswith(("http://", "https://"))


def build_flatten_command(
    ctx: RunContext,
    spec: str,
    *,
    image: str,
    headers: list[str] | None = None,
) -> list[str]:
    """Build the oasdiff flatten invocation for a local path or URL."""
    cmd = ["docker", "run", "--rm"]
    if is_remote(spec):
        cmd.extend([image, "flatten", spec])
        for header in headers or []:
            cmd.extend(["--header", header])
    else:
        cmd.extend(["-v", f"{ctx.workspace_dir}:{WORKSPACE_MOUNT}:ro"])
        cmd.extend([image, "flatten", f"{WORKSPACE_MOUNT}/{spec}"])
    cmd.extend(["--format", "json"])
    return cmd


def flatten_spec(
    ctx: RunContext,
    spec: str,
    name: str,
    *,
    image: str,
    headers: list[str] | None = None,
) -> str:
    """Flatten ``spec`` into the specs dir and return its container path."""
    cmd = build_flatten_command(ctx, spec, image=image, headers=headers)
    target = ctx.specs_dir / name
    try:
        with target.open("w", encoding="utf-8") as fh:
            proc = subprocess.run(
                cmd,
                stdout=fh,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                check=False,
            )
    except OSError as exc:
        raise ToolError(f"unable to flatten {spec}: {exc}", EXIT_NOT_FOUND) from exc
    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        raise ToolError(
            f"unable to flatten {spec} (exit {proc.returncode}): {stderr}",
            proc.returncode,
        )
    return f"{SPECS_MOUNT}/{name}"


def build_diff_command(ctx: RunContext, req: DiffRequest, *, image: str) -> list[str]:
    """Build the openapi-diff invocation."""
    cmd = [
        "docker",
        "run",
        "--rm",
        "-v",
        f"{ctx.workspace_dir}:{WORKSPACE_MOUNT}:ro",
        "-v",
        f"{ctx.specs_dir}:{SPECS_MOUNT}:ro",
        "-v",
        f"{ctx.output_dir}:{OUTPUT_MOUNT}:rw",
        image,
        req.old_spec,
        req.new_spec,
        "--state",
    ]

    if req.log_level:
        cmd.extend(["-l", req.log_level])

    for fmt in REPORT_FORMATS:
        if fmt.key in req.formats:
            cmd.extend([fmt.flag, f"{OUTPUT_MOUNT}/{fmt.filename}"])

    if req.fail_on_breaking:
        cmd.append("--fail-on-breaking")
    if req.fail_on_changed:
        cmd.append("--fail-on-changed")

    for header in req.headers:
        cmd.extend(["--header", header])

    return cmd


def run_diff(cmd: list[str]) -> RawToolOutput:
    """Run the diff tool; failures come back as output, never raise."""
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as exc:
        return RawToolOutput(text=f"unable to start {cmd[0]}: {exc}", exit_code=EXIT_NOT_FOUND)
    return RawToolOutput(text=(proc.stdout or "").rstrip("\n"), exit_code=proc.returncode)
