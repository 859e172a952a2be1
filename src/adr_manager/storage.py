"""File-backed key/value storage for the persisted editor state."""

import os
import uuid
from pathlib import Path

from loguru import logger


class FileStorage:
    """Store each key as one file in a data directory.

    - Do not rewrite a file if its contents are the same.
    - Replace files atomically (temp file in the same directory, then rename).

    Edits are persisted after every keystroke, so repeated writes of an
    unchanged snapshot must cost a read and nothing else.
    """

    def __init__(self, datadir: str | Path, *, dry_run: bool = False) -> None:
        self.datadir = Path(datadir).expanduser().resolve()
        self.dry_run = dry_run
        self.num_written = 0
        self.num_same = 0

        if not dry_run:
            self.datadir.mkdir(parents=True, exist_ok=True)
        logger.debug("Storage ready, datadir {!r}, dry_run {!r}", str(self.datadir), dry_run)

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            msg = f"Invalid storage key: {key!r}"
            raise ValueError(msg)
        return self.datadir / f"{key}.json"

    def get(self, key: str) -> str | None:
        """Return the stored string, or None if the key was never written."""
        try:
            return self._path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        """Write ``value`` under ``key`` unless it is already stored."""
        path = self._path_for(key)
        if self.get(key) == value:
            self.num_same += 1
            return

        self.num_written += 1
        if self.dry_run:
            logger.info("dry-run: would write {!r}", str(path))
            return

        logger.debug("Writing {!r} ({} chars)", str(path), len(value))
        tmp_path = path.parent / f".{path.name}.tmp-{uuid.uuid4().hex}"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(path)
        finally:
            tmp_path.unlink(missing_ok=True)
