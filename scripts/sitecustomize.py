"""Start coverage in Python subprocesses launched from ./scripts.

The end-to-end tests run scripts/run-diff.py via ``sys.executable``; Python
imports ``sitecustomize`` from ``sys.path[0]`` (this directory) at startup.
Active only when COVERAGE_PROCESS_START is set.
"""

import os


def _maybe_start_coverage() -> None:
    if not os.environ.get("COVERAGE_PROCESS_START"):
        return
    try:
        import coverage
    except ImportError:
        return

    try:
        coverage.process_startup()
    except Exception:
        # Never break the script subprocess over a bad coverage config.
        return


_maybe_start_coverage()
