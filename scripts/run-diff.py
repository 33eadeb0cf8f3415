#!/usr/bin/env python3
"""Compare two OpenAPI specs and publish the result to GitHub Actions.

Pipeline: flatten both specs -> openapi-diff -> resolve state ->
restructure markdown -> truncate -> job summary, report copies, PR comment
body file. Step outputs: state, has_changes, is_breaking, pr_comment_file.

Inputs are read from INPUT_* environment variables (see action.yml).
"""

from __future__ import annotations

import argparse
import shlex
import sys
from pathlib import Path

from lib.action_config import (
    ActionInputs,
    ConfigError,
    ToolDefaults,
    config_path_from_env,
    load_action_inputs,
    load_tool_defaults,
)
from lib.diff_state import RawToolOutput, StateResolution, resolve_state
from lib.gha import error, group, output_path, summary_path, warn, write_outputs
from lib.sinks import deliver
from lib.tools import FORMAT_KEYS, DiffRequest, ToolError, build_diff_command, flatten_spec, run_diff
from lib.workspace import RunContext, default_workspace, run_context


def display_command(cmd: list[str]) -> str:
    """Shell-quoted command with header values masked."""
    shown: list[str] = []
    mask_next = False
    for arg in cmd:
        if mask_next:
            name = arg.split(":", 1)[0]
            shown.append(f"{name}: ***" if ":" in arg else "***")
            mask_next = False
            continue
        shown.append(arg)
        mask_next = arg == "--header"
    return shlex.join(shown)


def fail_message(inputs: ActionInputs, resolution: StateResolution, exit_code: int) -> str | None:
    """Error to fail the step with, or None.

    Only fails when openapi-diff itself exited non-zero, i.e. its own
    --fail-on-* policy tripped.
    """
    if exit_code == 0:
        return None
    if inputs.fail_on_breaking and resolution.is_breaking:
        return "Breaking changes detected in OpenAPI specification"
    if inputs.fail_on_changed and resolution.has_changes:
        return "Changes detected in OpenAPI specification"
    return None


def bool_output(value: bool) -> str:
    return "true" if value else "false"


def compare(ctx: RunContext, inputs: ActionInputs, defaults: ToolDefaults) -> RawToolOutput:
    """Flatten both specs and diff them.

    A flatten failure skips the diff; its message and exit code stand in
    for the diff output so the state still resolves and the run still
    reports.
    """
    try:
        with group("Flattening OpenAPI specs"):
            old_spec = flatten_spec(
                ctx, inputs.old_spec, "old-spec.json",
                image=defaults.flatten_image, headers=inputs.headers,
            )
            new_spec = flatten_spec(
                ctx, inputs.new_spec, "new-spec.json",
                image=defaults.flatten_image, headers=inputs.headers,
            )
    except ToolError as exc:
        error(str(exc))
        return RawToolOutput(text=str(exc), exit_code=exc.exit_code or 1)

    req = DiffRequest(
        old_spec=old_spec,
        new_spec=new_spec,
        formats=tuple(inputs.reports),
        fail_on_breaking=inputs.fail_on_breaking,
        fail_on_changed=inputs.fail_on_changed,
        log_level=inputs.log_level,
        headers=inputs.headers,
    )
    cmd = build_diff_command(ctx, req, image=defaults.diff_image)
    with group("Running OpenAPI Diff"):
        print(f"Command: {display_command(cmd)}")

    output = run_diff(cmd)
    with group("OpenAPI Diff Output"):
        print(output.text)
    return output


def run(ctx: RunContext, inputs: ActionInputs, defaults: ToolDefaults) -> int:
    """Run one comparison inside an owned workspace; returns the exit code."""
    outputs = output_path()

    output = compare(ctx, inputs, defaults)

    resolution = resolve_state(output)
    if not resolution.from_token:
        warn(
            f"openapi-diff printed no state line; inferred '{resolution.state}' "
            f"from exit code {output.exit_code} ({resolution.rule})"
        )

    print(f"Diff State: {resolution.state}")
    print(f"Has Changes: {bool_output(resolution.has_changes)}")
    print(f"Is Breaking: {bool_output(resolution.is_breaking)}")

    write_outputs(
        outputs,
        {
            "state": resolution.state,
            "has_changes": bool_output(resolution.has_changes),
            "is_breaking": bool_output(resolution.is_breaking),
        },
    )

    result = deliver(
        ctx,
        resolution.state,
        inputs.reports,
        comment_file=defaults.comment_file,
        marker=defaults.comment_marker,
        footer=defaults.comment_footer,
        summary=summary_path(),
        limit=defaults.max_output_size,
    )
    write_outputs(outputs, {"pr_comment_file": str(result.comment_file)})

    message = fail_message(inputs, resolution, output.exit_code)
    if message:
        error(message)
        return 1

    print(f"OpenAPI diff completed successfully. State: {resolution.state}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main."""
    parser = argparse.ArgumentParser(prog="run-diff.py", description=__doc__.splitlines()[0])
    parser.add_argument(
        "--workspace",
        default="",
        help="Repository checkout the spec paths are relative to (default: GITHUB_WORKSPACE or cwd).",
    )
    parser.add_argument(
        "--config",
        default="",
        help="Tool defaults YAML (default: OPENAPI_DIFF_CONFIG or defaults/config.yml).",
    )
    args = parser.parse_args(argv)

    try:
        inputs = load_action_inputs(formats=FORMAT_KEYS)
        defaults = load_tool_defaults(Path(args.config) if args.config else config_path_from_env())
    except ConfigError as exc:
        error(f"run-diff: {exc}")
        return 2

    workspace = Path(args.workspace) if args.workspace else default_workspace()

    with group("OpenAPI Diff Configuration"):
        print(f"Docker Image: {defaults.diff_image}")
        print(f"Old Spec: {inputs.old_spec}")
        print(f"New Spec: {inputs.new_spec}")

    with run_context(workspace.resolve()) as ctx:
        return run(ctx, inputs, defaults)


if __name__ == "__main__":
    sys.exit(main())
