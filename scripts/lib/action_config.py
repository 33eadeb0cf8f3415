"""Typed loaders for action inputs and defaults/config.yml.

Inputs come from the INPUT_* environment GitHub sets for action steps;
pinned tool images and delivery limits come from YAML.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from lib.truncate import MAX_OUTPUT_SIZE

REPO_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_PATH = REPO_ROOT / "defaults" / "config.yml"
CONFIG_ENV = "OPENAPI_DIFF_CONFIG"


class ConfigError(RuntimeError):
    """Invalid action inputs or defaults file."""
    pass


@dataclass(frozen=True)
class ToolDefaults:
    """Data class for Tool Defaults."""
    diff_image: str = "openapitools/openapi-diff:2.1.6"
    flatten_image: str = "tufin/oasdiff:v1.11.7"
    max_output_size: int = MAX_OUTPUT_SIZE
    comment_marker: str = "<!--openapi-diff-workflow-comment-->"
    comment_file: str = ".openapi-diff-pr-comment.md"
    comment_footer: str = (
        "*Generated by [openapi-diff-action](https://github.com/Shadowghost/openapi-diff-action)*"
    )


@dataclass(frozen=True)
class ActionInputs:
    """Data class for Action Inputs."""
    old_spec: str
    new_spec: str
    # format key -> destination path relative to the workspace
    reports: dict[str, str] = field(default_factory=dict)
    fail_on_breaking: bool = False
    fail_on_changed: bool = False
    log_level: str | None = None
    headers: list[str] = field(default_factory=list)

    def wants(self, fmt: str) -> bool:
        """Wants."""
        return fmt in self.reports


def _require_mapping(value: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{ctx}: expected mapping")
    return value


def _optional_mapping(value: Any, ctx: str) -> dict[str, Any]:
    if value is None:
        return {}
    return _require_mapping(value, ctx)


def _str_or(value: Any, default: str, ctx: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigError(f"{ctx}: expected string")
    s = value.strip()
    if not s:
        raise ConfigError(f"{ctx}: must be non-empty")
    return s


def _positive_int_or(value: Any, default: int, ctx: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{ctx}: expected integer")
    if value < 1:
        raise ConfigError(f"{ctx}: must be >= 1")
    return value


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(f"missing config file: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e


def load_tool_defaults(path: Path) -> ToolDefaults:
    """Load tool defaults."""
    raw = _load_yaml(path)
    if raw is None:
        return ToolDefaults()
    cfg = _require_mapping(raw, "config")
    base = ToolDefaults()

    tools = _optional_mapping(cfg.get("tools"), "config.tools")
    limits = _optional_mapping(cfg.get("limits"), "config.limits")
    comment = _optional_mapping(cfg.get("comment"), "config.comment")

    return ToolDefaults(
        diff_image=_str_or(tools.get("diff_image"), base.diff_image, "config.tools.diff_image"),
        flatten_image=_str_or(
            tools.get("flatten_image"), base.flatten_image, "config.tools.flatten_image"
        ),
        max_output_size=_positive_int_or(
            limits.get("max_output_size"), base.max_output_size, "config.limits.max_output_size"
        ),
        comment_marker=_str_or(comment.get("marker"), base.comment_marker, "config.comment.marker"),
        comment_file=_str_or(comment.get("file"), base.comment_file, "config.comment.file"),
        comment_footer=_str_or(comment.get("footer"), base.comment_footer, "config.comment.footer"),
    )


def config_path_from_env(env: Mapping[str, str] | None = None) -> Path:
    """Config path from env."""
    env = os.environ if env is None else env
    override = (env.get(CONFIG_ENV) or "").strip()
    return Path(override) if override else DEFAULT_CONFIG_PATH


def _input(env: Mapping[str, str], name: str) -> str:
    return (env.get(f"INPUT_{name}") or "").strip()


def _flag(env: Mapping[str, str], name: str) -> bool:
    return _input(env, name).lower() == "true"


def parse_headers(raw: str) -> list[str]:
    """Split the comma-separated headers input, dropping blanks."""
    return [h.strip() for h in raw.split(",") if h.strip()]


def load_action_inputs(
    env: Mapping[str, str] | None = None,
    *,
    formats: tuple[str, ...] = ("markdown", "json", "html", "asciidoc", "text"),
) -> ActionInputs:
    """Load action inputs."""
    env = os.environ if env is None else env

    old_spec = _input(env, "OLD_SPEC")
    if not old_spec:
        raise ConfigError("input old-spec: missing required value")
    new_spec = _input(env, "NEW_SPEC")
    if not new_spec:
        raise ConfigError("input new-spec: missing required value")

    reports: dict[str, str] = {}
    for fmt in formats:
        dest = _input(env, fmt.upper())
        if dest:
            reports[fmt] = dest

    return ActionInputs(
        old_spec=old_spec,
        new_spec=new_spec,
        reports=reports,
        fail_on_breaking=_flag(env, "FAIL_ON_BREAKING"),
        fail_on_changed=_flag(env, "FAIL_ON_CHANGED"),
        log_level=_input(env, "LOG_LEVEL") or None,
        headers=parse_headers(_input(env, "HEADERS")),
    )
