"""
On-disk persistence for the repository index.

The index is a single JSON file:

    {
      "version": 1,
      "repos": [
        {"path": "/home/u/src/gcd", "name": "gcd", "last_seen": 1760000000.0}
      ]
    }

Loading is forgiving so a user can always re-index: a missing or corrupt
file yields an empty Index. Unknown fields are ignored and missing optional
fields get defaults. The legacy layout `{"repos": {name: path}}` is still
accepted. Writes go through a temporary file and an atomic replace.
"""

import contextlib
import json
from pathlib import Path
from typing import Any

import structlog

from ..errors import IndexCorrupt, IndexIOError
from .models import Index, RepoRecord

logger = structlog.get_logger()

INDEX_VERSION = 1


class IndexStore:
    """Loads and saves an Index at a fixed path."""

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON index file.
        """
        self.path = Path(path).expanduser()

    def load(self) -> Index:
        """Load the index from disk.

        Returns:
            The stored Index, or an empty one if the file is missing or corrupt.

        Raises:
            IndexIOError: If the file exists but cannot be read.
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            logger.debug("index.missing", path=str(self.path))
            return Index()
        except OSError as e:
            raise IndexIOError(f"cannot read index {self.path}: {e.strerror or e}") from e

        try:
            index = self._decode(raw)
        except IndexCorrupt as e:
            logger.warning("index.corrupt", path=str(self.path), error=str(e))
            return Index()

        logger.debug("index.loaded", path=str(self.path), repos=len(index))
        return index

    def save(self, index: Index) -> None:
        """Persist the index atomically.

        Raises:
            IndexIOError: If the file cannot be written.
        """
        payload = {
            "version": INDEX_VERSION,
            "repos": [record.to_dict() for record in index.records()],
        }
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
                handle.write("\n")
            tmp.replace(self.path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise IndexIOError(f"cannot write index {self.path}: {e.strerror or e}") from e

        logger.debug("index.saved", path=str(self.path), repos=len(index))

    def _decode(self, raw: bytes) -> Index:
        """Decode file contents into an Index.

        Raises:
            IndexCorrupt: If the content is not a recognizable index.
        """
        try:
            data = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise IndexCorrupt(f"invalid UTF-8: {e}") from e
        except json.JSONDecodeError as e:
            raise IndexCorrupt(f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise IndexCorrupt("top-level value is not an object")

        repos: Any = data.get("repos", [])

        # Legacy layout: {"repos": {"name": "/path"}}
        if isinstance(repos, dict):
            return Index([
                RepoRecord.for_path(str(path))
                for path in repos.values()
                if isinstance(path, str) and path
            ])

        if not isinstance(repos, list):
            raise IndexCorrupt("'repos' is neither a list nor an object")

        records: list[RepoRecord] = []
        for entry in repos:
            if not isinstance(entry, dict):
                continue
            try:
                records.append(RepoRecord.from_dict(entry))
            except ValueError:
                continue
        return Index(records)
