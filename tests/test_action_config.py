"""Tests for lib.action_config: INPUT_* parsing and defaults/config.yml."""

from pathlib import Path

import pytest

from lib.action_config import (
    CONFIG_ENV,
    DEFAULT_CONFIG_PATH,
    ConfigError,
    ToolDefaults,
    config_path_from_env,
    load_action_inputs,
    load_tool_defaults,
    parse_headers,
)


def _write_config(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "config.yml"
    p.write_text(content)
    return p


class TestLoadActionInputs:
    def test_minimal(self):
        inputs = load_action_inputs({"INPUT_OLD_SPEC": "old.yaml", "INPUT_NEW_SPEC": "new.yaml"})
        assert inputs.old_spec == "old.yaml"
        assert inputs.new_spec == "new.yaml"
        assert inputs.reports == {}
        assert inputs.fail_on_breaking is False
        assert inputs.fail_on_changed is False
        assert inputs.log_level is None
        assert inputs.headers == []

    def test_full(self):
        inputs = load_action_inputs(
            {
                "INPUT_OLD_SPEC": " https://api.example.com/openapi.json ",
                "INPUT_NEW_SPEC": "specs/openapi.yaml",
                "INPUT_MARKDOWN": "reports/diff.md",
                "INPUT_JSON": "reports/diff.json",
                "INPUT_HTML": "",
                "INPUT_TEXT": "reports/diff.txt",
                "INPUT_FAIL_ON_BREAKING": "true",
                "INPUT_FAIL_ON_CHANGED": "TRUE",
                "INPUT_LOG_LEVEL": "DEBUG",
                "INPUT_HEADERS": "Authorization: Bearer abc, X-Api-Key: k",
            }
        )
        assert inputs.old_spec == "https://api.example.com/openapi.json"
        assert inputs.reports == {
            "markdown": "reports/diff.md",
            "json": "reports/diff.json",
            "text": "reports/diff.txt",
        }
        assert inputs.wants("markdown")
        assert not inputs.wants("html")
        assert inputs.fail_on_breaking is True
        assert inputs.fail_on_changed is True
        assert inputs.log_level == "DEBUG"
        assert inputs.headers == ["Authorization: Bearer abc", "X-Api-Key: k"]

    def test_fail_flags_only_accept_true(self):
        inputs = load_action_inputs(
            {
                "INPUT_OLD_SPEC": "a",
                "INPUT_NEW_SPEC": "b",
                "INPUT_FAIL_ON_BREAKING": "yes",
                "INPUT_FAIL_ON_CHANGED": "1",
            }
        )
        assert inputs.fail_on_breaking is False
        assert inputs.fail_on_changed is False

    @pytest.mark.parametrize("missing", ["INPUT_OLD_SPEC", "INPUT_NEW_SPEC"])
    def test_missing_required(self, missing):
        env = {"INPUT_OLD_SPEC": "a", "INPUT_NEW_SPEC": "b"}
        env[missing] = "  "
        with pytest.raises(ConfigError, match="missing required value"):
            load_action_inputs(env)

    def test_reads_process_env(self, monkeypatch):
        monkeypatch.setenv("INPUT_OLD_SPEC", "x.yaml")
        monkeypatch.setenv("INPUT_NEW_SPEC", "y.yaml")
        monkeypatch.delenv("INPUT_MARKDOWN", raising=False)
        assert load_action_inputs().new_spec == "y.yaml"


class TestParseHeaders:
    def test_blank(self):
        assert parse_headers("") == []
        assert parse_headers(" , ,") == []

    def test_split_and_strip(self):
        assert parse_headers("A: 1,B: 2 ") == ["A: 1", "B: 2"]


class TestLoadToolDefaults:
    def test_repo_defaults_file(self):
        cfg = load_tool_defaults(DEFAULT_CONFIG_PATH)
        assert cfg.diff_image.startswith("openapitools/openapi-diff:")
        assert cfg.flatten_image.startswith("tufin/oasdiff:")
        assert cfg.max_output_size == 950000
        assert cfg.comment_marker == "<!--openapi-diff-workflow-comment-->"
        assert cfg.comment_file == ".openapi-diff-pr-comment.md"

    def test_partial_file_uses_builtin_defaults(self, tmp_path):
        cfg = load_tool_defaults(_write_config(tmp_path, "limits:\n  max_output_size: 1000\n"))
        assert cfg.max_output_size == 1000
        assert cfg.diff_image == ToolDefaults().diff_image

    def test_empty_file(self, tmp_path):
        assert load_tool_defaults(_write_config(tmp_path, "")) == ToolDefaults()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="missing config file"):
            load_tool_defaults(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_tool_defaults(_write_config(tmp_path, "tools: [unclosed\n"))

    def test_top_level_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="config: expected mapping"):
            load_tool_defaults(_write_config(tmp_path, "- a\n- b\n"))

    def test_bad_limit(self, tmp_path):
        with pytest.raises(ConfigError, match="config.limits.max_output_size: must be >= 1"):
            load_tool_defaults(_write_config(tmp_path, "limits:\n  max_output_size: 0\n"))

    def test_bool_limit_rejected(self, tmp_path):
        with pytest.raises(ConfigError, match="expected integer"):
            load_tool_defaults(_write_config(tmp_path, "limits:\n  max_output_size: true\n"))

    def test_empty_image_rejected(self, tmp_path):
        with pytest.raises(ConfigError, match="config.tools.diff_image: must be non-empty"):
            load_tool_defaults(_write_config(tmp_path, "tools:\n  diff_image: '  '\n"))

    def test_section_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="config.comment: expected mapping"):
            load_tool_defaults(_write_config(tmp_path, "comment: hello\n"))


class TestConfigPathFromEnv:
    def test_default(self):
        assert config_path_from_env({}) == DEFAULT_CONFIG_PATH

    def test_override(self, tmp_path):
        assert config_path_from_env({CONFIG_ENV: str(tmp_path / "c.yml")}) == tmp_path / "c.yml"
