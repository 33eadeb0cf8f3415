"""Size-bounded report delivery.

GitHub rejects job summaries and step outputs above 1 MiB; keep headroom.
"""

from __future__ import annotations

MAX_OUTPUT_SIZE = 950000


def truncation_warning(size: int, limit: int) -> bytes:
    """Warning block appended after a truncated prefix."""
    return (
        "\n\n"
        "> [!WARNING]\n"
        f"> Output truncated ({size} bytes exceeded {limit} byte limit). "
        "View the full report in the action artifacts.\n"
    ).encode("utf-8")


def warning_size(size: int, limit: int = MAX_OUTPUT_SIZE) -> int:
    """Warning size."""
    return len(truncation_warning(size, limit))


def truncate_report(data: bytes, limit: int = MAX_OUTPUT_SIZE) -> bytes:
    """Keep the first ``limit`` bytes and append a warning.

    The cut is byte-exact: a multi-byte character or a markdown table can be
    split. Inputs at or below the limit come back untouched.
    """
    if limit < 0:
        raise ValueError("limit must be >= 0")
    size = len(data)
    if size <= limit:
        return data
    return data[:limit] + truncation_warning(size, limit)
