"""Tests for lib.workspace: scoped temp dirs."""

from pathlib import Path

import pytest

from lib.workspace import RunContext, default_workspace, run_context


def test_dirs_exist_during_run_and_are_removed(tmp_path):
    with run_context(tmp_path) as ctx:
        assert ctx.workspace_dir == tmp_path
        assert ctx.specs_dir.is_dir()
        assert ctx.output_dir.is_dir()
        assert ctx.specs_dir != ctx.output_dir
        (ctx.output_dir / "diff.md").write_text("x")
        specs, output = ctx.specs_dir, ctx.output_dir
    assert not specs.exists()
    assert not output.exists()


def test_dirs_removed_on_error(tmp_path):
    with pytest.raises(RuntimeError):
        with run_context(tmp_path) as ctx:
            specs, output = ctx.specs_dir, ctx.output_dir
            raise RuntimeError("boom")
    assert not specs.exists()
    assert not output.exists()


def test_dirs_removed_on_keyboard_interrupt(tmp_path):
    with pytest.raises(KeyboardInterrupt):
        with run_context(tmp_path) as ctx:
            output = ctx.output_dir
            raise KeyboardInterrupt
    assert not output.exists()


def test_workspace_is_never_removed(tmp_path):
    with run_context(tmp_path):
        pass
    assert tmp_path.is_dir()


def test_paths():
    ctx = RunContext(workspace_dir=Path("/ws"), specs_dir=Path("/s"), output_dir=Path("/o"))
    assert ctx.workspace_path("reports/diff.md") == Path("/ws/reports/diff.md")
    assert ctx.report_path("diff.json") == Path("/o/diff.json")


def test_default_workspace(monkeypatch, tmp_path):
    monkeypatch.setenv("GITHUB_WORKSPACE", str(tmp_path))
    assert default_workspace() == tmp_path
    monkeypatch.delenv("GITHUB_WORKSPACE")
    monkeypatch.chdir(tmp_path)
    assert default_workspace() == Path.cwd()
