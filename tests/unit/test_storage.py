"""Tests for FileStorage."""

from pathlib import Path

import pytest

from adr_manager.protocols import StorageProtocol
from adr_manager.storage import FileStorage


def test_get_returns_none_for_missing_key(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path)

    assert storage.get("mode") is None


def test_set_then_get_round_trips(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path)

    storage.set("mode", "advanced")

    assert storage.get("mode") == "advanced"
    assert (tmp_path / "mode.json").read_text() == "advanced"
    assert FileStorage(tmp_path).get("mode") == "advanced"


def test_set_skips_unchanged_value(tmp_path: Path) -> None:
    """Writing the same value again does not touch the file."""
    storage = FileStorage(tmp_path)
    storage.set("addedRepositories", "[]")
    mtime = (tmp_path / "addedRepositories.json").stat().st_mtime_ns

    storage.set("addedRepositories", "[]")

    assert storage.num_written == 1
    assert storage.num_same == 1
    assert (tmp_path / "addedRepositories.json").stat().st_mtime_ns == mtime


def test_set_leaves_no_temp_files(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path)

    storage.set("mode", "basic")
    storage.set("mode", "professional")

    assert sorted(p.name for p in tmp_path.iterdir()) == ["mode.json"]


def test_creates_missing_data_directory(tmp_path: Path) -> None:
    datadir = tmp_path / "nested" / "state"

    FileStorage(datadir).set("mode", "basic")

    assert (datadir / "mode.json").exists()


def test_dry_run_does_not_write(tmp_path: Path) -> None:
    datadir = tmp_path / "state"
    storage = FileStorage(datadir, dry_run=True)

    storage.set("mode", "basic")

    assert storage.num_written == 1
    assert not datadir.exists()


@pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
def test_rejects_keys_that_are_not_plain_names(tmp_path: Path, key: str) -> None:
    storage = FileStorage(tmp_path)

    with pytest.raises(ValueError, match="Invalid storage key"):
        storage.set(key, "x")


def test_file_storage_satisfies_protocol(tmp_path: Path) -> None:
    assert isinstance(FileStorage(tmp_path), StorageProtocol)
