"""
Tests para IndexManager (build / update / prune / forget).

Cubre:
- Idempotencia de build
- Repos anidados no indexados
- Conservación de entradas fuera del subárbol
- Poda de repos eliminados en update
- Refresco de last_seen
- Raíz inválida sin tocar el índice
"""

import errno
import itertools
import os
import shutil
from pathlib import Path

import pytest

from gcd.errors import InvalidRoot
from gcd.index.manager import IndexManager
from gcd.index.models import RepoRecord
from gcd.index.store import IndexStore


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def store(tmp_path: Path) -> IndexStore:
    return IndexStore(tmp_path / "cfg" / "index.json")


@pytest.fixture
def manager(store: IndexStore) -> IndexManager:
    """Manager con reloj fijo para que last_seen sea reproducible."""
    return IndexManager(store, clock=lambda: 1000.0)


@pytest.fixture
def workspace(tmp_path: Path, make_repo) -> Path:
    """Árbol con dos repos y uno anidado dentro del primero."""
    root = (tmp_path / "src").resolve()
    make_repo(root / "alpha")
    make_repo(root / "alpha" / "vendor" / "nested")
    make_repo(root / "team" / "beta")
    (root / "notes").mkdir(parents=True)
    return root


@pytest.fixture
def lock(monkeypatch):
    """Simula `chmod 000` sobre un directorio: ni se lista ni se inspecciona."""

    def _lock(directory: Path) -> None:
        real_scandir, real_lstat = os.scandir, os.lstat
        locked = str(directory)

        def denied(path):
            return PermissionError(errno.EACCES, "Permission denied", os.fspath(path))

        def fake_scandir(path="."):
            if os.fspath(path) == locked:
                raise denied(path)
            return real_scandir(path)

        def fake_lstat(path, *args, **kwargs):
            if os.fspath(path).startswith(locked + os.sep):
                raise denied(path)
            return real_lstat(path, *args, **kwargs)

        monkeypatch.setattr(os, "scandir", fake_scandir)
        monkeypatch.setattr(os, "lstat", fake_lstat)

    return _lock


def _paths(store: IndexStore) -> list[str]:
    return [r.path for r in store.load()]


# ── Tests: build ─────────────────────────────────────────────────────────


class TestBuild:
    """Tests para IndexManager.build()."""

    def test_indexes_and_persists(self, manager, store, workspace):
        report = manager.build(workspace)

        assert _paths(store) == [str(workspace / "alpha"), str(workspace / "team" / "beta")]
        assert sorted(report.added) == _paths(store)
        assert report.removed == []
        assert report.root == str(workspace)

    def test_records_have_name_and_timestamp(self, manager, store, workspace):
        manager.build(workspace)
        record = store.load().get(str(workspace / "team" / "beta"))
        assert record == RepoRecord(
            path=str(workspace / "team" / "beta"), name="beta", last_seen=1000.0
        )

    def test_nested_repository_skipped(self, manager, store, workspace):
        manager.build(workspace)
        assert str(workspace / "alpha" / "vendor" / "nested") not in store.load()

    def test_idempotent(self, manager, store, workspace):
        manager.build(workspace)
        first = store.load()
        first_bytes = store.path.read_bytes()

        report = manager.build(workspace)

        assert store.load() == first
        assert store.path.read_bytes() == first_bytes
        assert report.added == []
        assert len(report.refreshed) == 2

    def test_keeps_entries_outside_root(self, manager, store, tmp_path, workspace, make_repo):
        other = make_repo((tmp_path / "elsewhere" / "gamma").resolve())
        manager.build(other.parent)

        manager.build(workspace)

        assert str(other) in store.load()

    def test_replaces_entries_under_root(self, manager, store, workspace):
        manager.build(workspace)
        shutil.rmtree(workspace / "team")

        report = manager.build(workspace)

        assert _paths(store) == [str(workspace / "alpha")]
        assert report.removed == [str(workspace / "team" / "beta")]

    def test_drops_previously_indexed_nested_repo(self, manager, store, workspace):
        """build reemplaza todo el subárbol, incluidos repos anidados indexados aparte."""
        nested = workspace / "alpha" / "vendor" / "nested"
        manager.build(nested)
        assert str(nested) in store.load()

        manager.build(workspace)

        assert str(nested) not in store.load()

    def test_invalid_root_leaves_index_untouched(self, manager, store, workspace, tmp_path):
        manager.build(workspace)
        before = store.path.read_bytes()

        with pytest.raises(InvalidRoot):
            manager.build(tmp_path / "missing")

        assert store.path.read_bytes() == before

    def test_invalid_root_does_not_create_index(self, manager, store, tmp_path):
        with pytest.raises(InvalidRoot):
            manager.build(tmp_path / "missing")
        assert not store.path.exists()


# ── Tests: update ────────────────────────────────────────────────────────


class TestUpdate:
    """Tests para IndexManager.update()."""

    def test_adds_new_repositories(self, manager, store, workspace, make_repo):
        manager.update(workspace)
        new = make_repo(workspace / "gamma")

        report = manager.update(workspace)

        assert str(new) in store.load()
        assert report.added == [str(new)]

    def test_deleted_repository_is_pruned(self, manager, store, workspace):
        manager.update(workspace)
        shutil.rmtree(workspace / "team" / "beta")

        report = manager.update(workspace)

        reloaded = IndexStore(store.path).load()
        assert str(workspace / "team" / "beta") not in reloaded
        assert report.removed == [str(workspace / "team" / "beta")]

    def test_marker_removed_is_pruned(self, manager, store, workspace):
        manager.update(workspace)
        shutil.rmtree(workspace / "alpha" / ".git")

        manager.update(workspace)

        assert str(workspace / "alpha") not in store.load()

    def test_refreshes_last_seen(self, store, workspace):
        ticks = itertools.count(1)
        manager = IndexManager(store, clock=lambda: float(next(ticks)))

        manager.update(workspace)
        report = manager.update(workspace)

        assert {r.last_seen for r in store.load()} == {2.0}
        assert len(report.refreshed) == 2

    def test_keeps_entries_outside_root(self, manager, store, tmp_path, workspace, make_repo):
        other = make_repo((tmp_path / "elsewhere" / "gamma").resolve())
        manager.update(other)

        manager.update(workspace)

        assert str(other) in store.load()

    def test_keeps_unscanned_entry_still_on_disk(self, manager, store, workspace):
        """Un repo anidado indexado aparte sigue en el índice tras update del padre."""
        nested = workspace / "alpha" / "vendor" / "nested"
        manager.update(nested)

        manager.update(workspace)

        assert str(nested) in store.load()

    def test_unreadable_subtree_keeps_entries(self, manager, store, workspace, lock):
        manager.update(workspace)
        lock(workspace / "team")

        report = manager.update(workspace)

        assert [w.path for w in report.warnings] == [str(workspace / "team")]
        assert report.removed == []
        assert str(workspace / "team" / "beta") in store.load()

    def test_idempotent(self, manager, store, workspace):
        manager.update(workspace)
        first = store.load()
        manager.update(workspace)
        assert store.load() == first


# ── Tests: prune / forget ────────────────────────────────────────────────


class TestMaintenance:
    """Tests para prune() y forget()."""

    def test_prune_removes_vanished(self, manager, store, workspace):
        manager.build(workspace)
        shutil.rmtree(workspace / "alpha")

        removed = manager.prune()

        assert removed == [str(workspace / "alpha")]
        assert _paths(store) == [str(workspace / "team" / "beta")]

    def test_prune_without_changes(self, manager, store, workspace):
        manager.build(workspace)
        assert manager.prune() == []

    def test_prune_keeps_unreadable(self, manager, store, workspace, lock):
        manager.build(workspace)
        lock(workspace / "team")

        assert manager.prune() == []
        assert str(workspace / "team" / "beta") in store.load()

    def test_forget(self, manager, store, workspace):
        manager.build(workspace)

        assert manager.forget(str(workspace / "alpha")) is True
        assert str(workspace / "alpha") not in store.load()

    def test_forget_unknown(self, manager, workspace):
        manager.build(workspace)
        assert manager.forget("/not/indexed") is False
