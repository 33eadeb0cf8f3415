#!/usr/bin/env python3
"""Create or update the OpenAPI diff PR comment from the rendered body file.

Usage: post-diff-comment.py --repo owner/repo --pr 42 --body-file path
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path

from lib.action_config import ConfigError, config_path_from_env, load_tool_defaults
from lib.gha import error, warn
from lib.github import CommentPermissionError, TransientGitHubError, upsert_pr_comment


def main(argv: list[str] | None = None) -> int:
    """Main."""
    parser = argparse.ArgumentParser(description="Upsert the OpenAPI diff PR comment by marker.")
    parser.add_argument("--repo", required=True, help="owner/repo")
    parser.add_argument("--pr", type=int, required=True, help="PR number")
    parser.add_argument("--body-file", required=True, help="Comment body written by run-diff.py")
    parser.add_argument("--marker", default="", help="HTML marker (default: from defaults config)")
    args = parser.parse_args(argv)

    if not Path(args.body_file).is_file():
        print(f"body file not found: {args.body_file}", file=sys.stderr)
        return 2

    marker = args.marker
    if not marker:
        try:
            marker = load_tool_defaults(config_path_from_env()).comment_marker
        except ConfigError as exc:
            error(f"post-diff-comment: {exc}")
            return 2

    try:
        action = upsert_pr_comment(
            repo=args.repo,
            pr_number=args.pr,
            marker=marker,
            body_file=args.body_file,
        )
    except CommentPermissionError as exc:
        error(str(exc))
        return 1
    except TransientGitHubError as exc:
        # A GitHub outage should not block the merge; the job summary still has the report.
        warn(str(exc))
        return 0
    except subprocess.CalledProcessError as exc:
        print(f"gh command failed: {exc.stderr}", file=sys.stderr)
        return 1

    print(f"OpenAPI diff comment {action} on {args.repo}#{args.pr}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
