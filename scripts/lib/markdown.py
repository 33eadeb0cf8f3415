"""Markdown document builders for openapi-diff reports and PR comments.

Everything here works on line lists; rendering to text happens once, in
``render_lines``. Keeps the section state machine testable without diffing
rendered output.
"""

from __future__ import annotations

import re
from typing import Iterable

DETAILS_OPEN = "<details>"
DETAILS_CLOSE = "</details>"

# openapi-diff markdown: "##### `GET` /pets" starts an endpoint,
# "###### Request:" / "###### Return Type:" start its detail subsections.
DETAIL_HEADING = re.compile(r"^###### (Request|Return Type):")
ENDPOINT_HEADING = re.compile(r"^#####")

CLOSED = "closed"
OPEN = "open"


def details_block(
    body_lines: list[str],
    *,
    summary: str = "Details",
    indent: str = "",
) -> list[str]:
    """Wrap body lines in a collapsible block with a summary label."""
    if not body_lines:
        return []
    lines = [
        f"{indent}<details>",
        f"{indent}<summary>{summary}</summary>",
        "",
    ]
    for ln in body_lines:
        lines.append(f"{indent}{ln}" if ln else "")
    lines.extend(["", f"{indent}</details>"])
    return lines


class SectionRestructurer:
    """Line-at-a-time state machine that folds detail subsections.

    At most one block is open. A detail heading closes the open block (if
    any) and opens a new one; an endpoint heading closes the open block;
    ``finish`` force-closes whatever is left.
    """

    def __init__(self) -> None:
        self.state = CLOSED

    def feed(self, line: str) -> list[str]:
        if DETAIL_HEADING.match(line):
            out: list[str] = []
            if self.state == OPEN:
                out.extend([DETAILS_CLOSE, ""])
            out.extend([DETAILS_OPEN, "", line, ""])
            self.state = OPEN
            return out
        if ENDPOINT_HEADING.match(line):
            if self.state == OPEN:
                self.state = CLOSED
                return [DETAILS_CLOSE, "", line]
            return [line]
        return [line]

    def finish(self) -> list[str]:
        if self.state == OPEN:
            self.state = CLOSED
            return [DETAILS_CLOSE]
        return []


def restructure_report(lines: Iterable[str]) -> list[str]:
    """Restructure report."""
    machine = SectionRestructurer()
    out: list[str] = []
    for line in lines:
        out.extend(machine.feed(line))
    out.extend(machine.finish())
    return out


def split_lines(text: str) -> list[str]:
    """Split on line feeds only; carriage returns stay inside their lines."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def render_lines(lines: list[str]) -> str:
    """Join lines, one trailing newline per line."""
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def restructure_markdown(data: bytes) -> bytes:
    """Byte-preserving restructure of a markdown report.

    Undecodable bytes survive the round trip via surrogateescape, so a report
    without detail headings comes back byte-identical (modulo a missing final
    newline).
    """
    text = data.decode("utf-8", errors="surrogateescape")
    out = restructure_report(split_lines(text))
    return render_lines(out).encode("utf-8", errors="surrogateescape")
