"""Resolve the openapi-diff classification state from raw tool output.

The diff tool prints its state token as the last line when run with
``--state``. Older images, crashes, and policy failures may omit it, so the
resolution is an ordered rule list: explicit token first, then exit-code
heuristics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

NO_CHANGES = "no_changes"
COMPATIBLE = "compatible"
INCOMPATIBLE = "incompatible"

STATES = (NO_CHANGES, COMPATIBLE, INCOMPATIBLE)

STATUS_LABEL = {
    NO_CHANGES: "No Changes",
    COMPATIBLE: "Compatible Changes",
    INCOMPATIBLE: "Incompatible (Breaking) Changes",
}

NO_CHANGES_PHRASE = "no changes"


@dataclass(frozen=True)
class RawToolOutput:
    """Merged stdout/stderr and exit code of one diff tool invocation."""
    text: str
    exit_code: int


@dataclass(frozen=True)
class StateResolution:
    """Data class for State Resolution."""
    state: str
    rule: str

    @property
    def has_changes(self) -> bool:
        return has_changes(self.state)

    @property
    def is_breaking(self) -> bool:
        return is_breaking(self.state)

    @property
    def from_token(self) -> bool:
        return self.rule == "explicit_token"


def has_changes(state: str) -> bool:
    """Has changes."""
    return state != NO_CHANGES


def is_breaking(state: str) -> bool:
    """Is breaking."""
    return state == INCOMPATIBLE


def status_label(state: str) -> str:
    """Human-readable status; anything unrecognized reads as breaking."""
    return STATUS_LABEL.get(state, STATUS_LABEL[INCOMPATIBLE])


def explicit_token(output: RawToolOutput) -> str | None:
    """Last line that is exactly a state token."""
    found = None
    for line in output.text.splitlines():
        if line in STATES:
            found = line
    return found


def clean_exit(output: RawToolOutput) -> str | None:
    """Exit 0 without a token: look for a "no changes" phrase."""
    if output.exit_code != 0:
        return None
    if NO_CHANGES_PHRASE in output.text.lower():
        return NO_CHANGES
    return COMPATIBLE


def failed_exit(output: RawToolOutput) -> str | None:
    """Non-zero exit without a token."""
    if output.exit_code == 0:
        return None
    return INCOMPATIBLE


Rule = Callable[[RawToolOutput], "str | None"]

RULES: tuple[tuple[str, Rule], ...] = (
    ("explicit_token", explicit_token),
    ("clean_exit", clean_exit),
    ("failed_exit", failed_exit),
)


def resolve_state(output: RawToolOutput) -> StateResolution:
    """Apply RULES in order; the first rule with an answer wins."""
    for name, rule in RULES:
        state = rule(output)
        if state is not None:
            return StateResolution(state=state, rule=name)
    # clean_exit and failed_exit cover every exit code.
    return StateResolution(state=INCOMPATIBLE, rule="fallback")  # pragma: no cover
