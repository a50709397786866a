from __future__ import annotations

import pytest

from pdf_quiz.core import workspace


def test_ensure_workspace_creates_directories(tmp_path, monkeypatch):
    root = tmp_path / "data"
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(root))

    layout = workspace.ensure_workspace()

    assert layout.home == root.absolute()
    assert set(layout.directories) == {"config", "logs"}
    for path in layout.directories.values():
        assert path.is_dir()
    assert layout.path_for("logs") == root / "logs"


def test_ensure_workspace_is_idempotent(tmp_path, monkeypatch):
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(tmp_path / "existing"))

    first = workspace.ensure_workspace()
    second = workspace.ensure_workspace()

    assert first.home == second.home
    assert dict(first.directories) == dict(second.directories)


def test_explicit_path_wins_over_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(tmp_path / "env"))
    custom = tmp_path / "custom-root"

    layout = workspace.ensure_workspace(path=custom)

    assert layout.home == custom.absolute()
    assert not (tmp_path / "env").exists()


def test_ensure_workspace_without_create(tmp_path):
    root = tmp_path / "deferred"

    layout = workspace.ensure_workspace(env={}, path=root, create=False)

    assert layout.home == root.absolute()
    assert not root.exists()


def test_ensure_workspace_defaults_to_home_directory(monkeypatch, tmp_path):
    monkeypatch.setattr(workspace, "DEFAULT_WORKSPACE", tmp_path / "dflt")

    layout = workspace.ensure_workspace(env={})

    assert layout.home == tmp_path / "dflt"


def test_workspace_rejects_file_in_place_of_home(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=blocker)


def test_path_for_unknown_key(tmp_path):
    layout = workspace.ensure_workspace(path=tmp_path / "ws")
    with pytest.raises(KeyError):
        layout.path_for("cache")
