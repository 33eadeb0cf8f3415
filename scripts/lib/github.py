"""Create-or-update of the diff report PR comment.

The comment body file carries an HTML marker; a rerun finds the previous
comment by that marker and edits it instead of posting a duplicate.
"""
from __future__ import annotations

import json
import random
import subprocess
import time

from lib.gha import warn

TRANSIENT_CODES = ("502", "503", "504")


class CommentPermissionError(Exception):
    """Token lacks pull-requests: write permission."""


class TransientGitHubError(Exception):
    """GitHub API kept returning 5xx."""


def is_transient_error(stderr: str) -> bool:
    """Match both gh "(http 503)" and raw "HTTP 503" forms."""
    lower = stderr.lower()
    return any(f"http {code}" in lower for code in TRANSIENT_CODES)


def is_permission_error(stderr: str) -> bool:
    """Is permission error."""
    lower = stderr.lower()
    return any(s in lower for s in ("403", "resource not accessible", "insufficient"))


def _run_gh(
    args: list[str],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> subprocess.CompletedProcess[str]:
    """Run gh, retrying 5xx responses with exponential backoff.

    Raises:
        CommentPermissionError: 403 / resource not accessible.
        TransientGitHubError: still 5xx after ``max_retries`` attempts.
        subprocess.CalledProcessError: any other failure.
    """
    for attempt in range(max_retries):
        result = subprocess.run(["gh", *args], capture_output=True, text=True, check=False)
        if result.returncode == 0:
            return result

        stderr = result.stderr or ""
        if is_permission_error(stderr):
            raise CommentPermissionError(
                "Unable to post PR comment: token lacks pull-requests: write permission.\n"
                "Add this to your workflow:\n"
                "permissions:\n"
                "  contents: read\n"
                "  pull-requests: write"
            )

        if not is_transient_error(stderr):
            raise subprocess.CalledProcessError(
                result.returncode, result.args, result.stdout, result.stderr
            )

        if attempt == max_retries - 1:
            raise TransientGitHubError(
                f"GitHub API returned transient error after {max_retries} attempts: {stderr}"
            )
        delay = base_delay * (2 ** attempt) + random.uniform(0, 0.5)
        warn(
            f"GitHub API error (attempt {attempt + 1}/{max_retries}), "
            f"retrying in {delay:.1f}s..."
        )
        time.sleep(delay)

    raise RuntimeError("_run_gh retry loop exited unexpectedly")  # pragma: no cover


def fetch_comments(
    repo: str,
    pr_number: int,
    *,
    marker: str | None = None,
    per_page: int = 100,
    max_pages: int = 20,
) -> list[dict]:
    """Fetch issue comments page by page; stop early once ``marker`` shows up."""
    comments: list[dict] = []
    for page in range(1, max_pages + 1):
        endpoint = f"repos/{repo}/issues/{pr_number}/comments?per_page={per_page}&page={page}"
        result = _run_gh(["api", endpoint])
        try:
            payload = json.loads(result.stdout or "[]")
        except json.JSONDecodeError:
            break
        if not isinstance(payload, list) or not payload:
            break
        batch = [c for c in payload if isinstance(c, dict)]
        comments.extend(batch)
        if marker is not None and find_comment_by_marker(batch, marker) is not None:
            break
        if len(payload) < per_page:
            break
    return comments


def find_comment_by_marker(comments: list[dict], marker: str) -> int | None:
    """Numeric id of the first comment whose body contains ``marker``."""
    for comment in comments:
        if marker not in str(comment.get("body", "")):
            continue
        comment_id = comment.get("id")
        if isinstance(comment_id, int):
            return comment_id
    return None


def upsert_pr_comment(
    *,
    repo: str,
    pr_number: int,
    marker: str,
    body_file: str,
    comments: list[dict] | None = None,
) -> str:
    """PATCH the marked comment if present, else POST a new one.

    Returns "updated" or "created".
    """
    if comments is None:
        comments = fetch_comments(repo, pr_number, marker=marker)

    existing_id = find_comment_by_marker(comments, marker)
    if existing_id is not None:
        _run_gh([
            "api",
            f"repos/{repo}/issues/comments/{existing_id}",
            "-X", "PATCH",
            "-F", f"body=@{body_file}",
        ])
        return "updated"

    _run_gh([
        "api",
        f"repos/{repo}/issues/{pr_number}/comments",
        "-F", f"body=@{body_file}",
    ])
    return "created"
