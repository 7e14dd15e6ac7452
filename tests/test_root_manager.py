"""Tests for root manager module."""

import threading
from pathlib import Path

from pollwatcher.root_manager import RootManager, covers


class TestCovers:
    """Tests for covers."""

    def test_non_recursive_covers_root_and_children(self):
        root = Path("/data")
        assert covers(root, False, root)
        assert covers(root, False, Path("/data/a.txt"))
        assert not covers(root, False, Path("/data/sub/b.txt"))

    def test_recursive_covers_subtree(self):
        root = Path("/data")
        assert covers(root, True, Path("/data/sub/deep/c.txt"))
        assert not covers(root, True, Path("/other/c.txt"))


class TestRootManager:
    """Tests for RootManager class."""

    def test_create_empty_manager(self):
        manager = RootManager()
        assert len(manager) == 0
        assert dict(manager.get_roots()) == {}

    def test_add_root(self, tmp_path):
        manager = RootManager()
        result = manager.add_root(tmp_path, recursive=True)

        assert result is True
        assert len(manager) == 1
        assert manager.is_recursive(tmp_path) is True
        assert tmp_path in manager

    def test_add_existing_root_updates_flag(self, tmp_path):
        manager = RootManager()
        manager.add_root(tmp_path, recursive=False)

        result = manager.add_root(tmp_path, recursive=True)

        assert result is False
        assert len(manager) == 1
        assert manager.is_recursive(tmp_path) is True

    def test_remove_root(self, tmp_path):
        manager = RootManager()
        manager.add_root(tmp_path)

        assert manager.remove_root(tmp_path) is True
        assert len(manager) == 0

    def test_remove_nonexistent_root(self, tmp_path):
        manager = RootManager()
        assert manager.remove_root(tmp_path) is False

    def test_remove_under(self, tmp_path):
        manager = RootManager()
        manager.add_root(tmp_path / "a")
        manager.add_root(tmp_path / "a" / "b")
        manager.add_root(tmp_path / "c")

        removed = manager.remove_under(tmp_path / "a")

        assert removed == 2
        assert list(manager.get_roots()) == [tmp_path / "c"]

    def test_get_roots_is_read_only(self, tmp_path):
        manager = RootManager()
        manager.add_root(tmp_path)

        roots = manager.get_roots()

        try:
            roots[tmp_path / "x"] = True
            mutated = True
        except TypeError:
            mutated = False
        assert mutated is False

    def test_is_recursive_unknown_root(self, tmp_path):
        manager = RootManager()
        assert manager.is_recursive(tmp_path) is None

    def test_find_root_for_path(self, tmp_path):
        flat = tmp_path / "flat"
        deep = tmp_path / "deep"
        manager = RootManager()
        manager.add_root(flat, recursive=False)
        manager.add_root(deep, recursive=True)

        assert manager.find_root_for_path(flat / "a.txt") == flat
        assert manager.find_root_for_path(flat / "sub" / "a.txt") is None
        assert manager.find_root_for_path(deep / "sub" / "a.txt") == deep
        assert manager.find_root_for_path(tmp_path / "elsewhere") is None

    def test_clear(self, tmp_path):
        manager = RootManager()
        manager.add_root(tmp_path / "a")
        manager.add_root(tmp_path / "b")

        assert manager.clear() == 2
        assert len(manager) == 0

    def test_thread_safety(self, tmp_path):
        manager = RootManager()
        errors = []

        def add_roots(prefix):
            try:
                for i in range(50):
                    manager.add_root(tmp_path / f"{prefix}_{i}")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=add_roots, args=(f"t{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(manager) == 200
