"""Fan a processed diff report out to its sinks.

Three sinks, three size rules:

- persisted copies at user-supplied paths: full, never truncated
- the job summary: markdown only, truncated, skipped outside Actions
- the PR comment body file: always written, truncated, carries the marker
  that the comment upsert step uses to find its previous comment
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from lib.diff_state import NO_CHANGES, status_label
from lib.markdown import details_block, render_lines, restructure_markdown, split_lines
from lib.tools import REPORT_FORMATS, ReportFormat
from lib.truncate import MAX_OUTPUT_SIZE, truncate_report
from lib.workspace import RunContext

MARKDOWN = "markdown"
COMMENT_TITLE = "## OpenAPI Diff Report"
COMMENT_SUMMARY = "Expand to see details"
NO_CHANGES_TEXT = "No changes detected."


@dataclass(frozen=True)
class CommentEnvelope:
    """Everything the PR comment body is built from."""
    marker: str
    state: str
    body_lines: list[str] | None = None
    footer: str = ""

    def lines(self) -> list[str]:
        """Lines."""
        out = [self.marker, COMMENT_TITLE, ""]
        if self.body_lines is None:
            out.extend([f"**Status:** {status_label(NO_CHANGES)}", "", NO_CHANGES_TEXT, ""])
        else:
            out.extend([f"**Status:** {status_label(self.state)}", ""])
            out.extend(details_block(self.body_lines, summary=COMMENT_SUMMARY))
            out.append("")
        if self.footer:
            out.extend(["---", self.footer])
        return out


@dataclass
class DeliveryResult:
    """Data class for Delivery Result."""
    comment_file: Path
    persisted: dict[str, Path] = field(default_factory=dict)
    summary_written: bool = False
    markdown_size: int | None = None


def read_report(path: Path) -> bytes | None:
    """Report bytes, or None when the tool produced nothing."""
    if not path.is_file():
        return None
    data = path.read_bytes()
    return data or None


def process_markdown_report(path: Path) -> bytes | None:
    """Restructure the markdown report in place and return the new bytes."""
    data = read_report(path)
    if data is None:
        return None
    processed = restructure_markdown(data)
    path.write_bytes(processed)
    return processed


def persist_report(source: Path, dest: Path) -> bool:
    """Copy a non-empty report to ``dest``, creating parent dirs."""
    if not source.is_file() or source.stat().st_size == 0:
        return False
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)
    return True


def persist_reports(
    ctx: RunContext,
    requested: dict[str, str],
    *,
    formats: tuple[ReportFormat, ...] = REPORT_FORMATS,
) -> dict[str, Path]:
    """Copy every requested report that exists; returns format -> dest."""
    written: dict[str, Path] = {}
    for fmt in formats:
        relative = requested.get(fmt.key)
        if not relative:
            continue
        dest = ctx.workspace_path(relative)
        if persist_report(ctx.report_path(fmt.filename), dest):
            print(f"{fmt.label} report written to: {relative}")
            written[fmt.key] = dest
    return written


def append_job_summary(
    summary: Path | None,
    markdown: bytes | None,
    *,
    limit: int = MAX_OUTPUT_SIZE,
) -> bool:
    """Append the truncated markdown to the step summary, if there is one."""
    if summary is None or markdown is None:
        return False
    with summary.open("ab") as fh:
        fh.write(truncate_report(markdown, limit))
    return True


def render_comment_body(
    state: str,
    markdown: bytes | None,
    *,
    marker: str,
    footer: str = "",
    limit: int = MAX_OUTPUT_SIZE,
) -> str:
    """Render comment body."""
    body_lines = None
    if markdown is not None:
        # The comment API needs valid UTF-8; a byte cut can split a character.
        text = truncate_report(markdown, limit).decode("utf-8", errors="replace")
        body_lines = split_lines(text)
    envelope = CommentEnvelope(marker=marker, state=state, body_lines=body_lines, footer=footer)
    return render_lines(envelope.lines())


def write_comment_file(path: Path, body: str) -> Path:
    """Write comment file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


def deliver(
    ctx: RunContext,
    state: str,
    requested: dict[str, str],
    *,
    comment_file: str,
    marker: str,
    footer: str = "",
    summary: Path | None = None,
    limit: int = MAX_OUTPUT_SIZE,
) -> DeliveryResult:
    """Restructure the markdown report and write every sink."""
    markdown_format = next(fmt for fmt in REPORT_FORMATS if fmt.key == MARKDOWN)
    markdown = process_markdown_report(ctx.report_path(markdown_format.filename))

    summary_written = append_job_summary(summary, markdown, limit=limit)
    persisted = persist_reports(ctx, requested)

    body = render_comment_body(state, markdown, marker=marker, footer=footer, limit=limit)
    comment_path = write_comment_file(ctx.workspace_path(comment_file), body)

    return DeliveryResult(
        comment_file=comment_path,
        persisted=persisted,
        summary_written=summary_written,
        markdown_size=len(markdown) if markdown is not None else None,
    )
