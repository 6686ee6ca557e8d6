"""
Data model for the repository index.

An Index maps absolute working-directory paths to RepoRecord entries.
Paths are unique; names (basenames) may repeat across the index.
"""

import math
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterator


@dataclass
class RepoRecord:
    """An indexed working directory."""

    path: str           # Absolute path to the working-directory root
    name: str           # Last path segment, primary match key
    last_seen: float = 0.0

    @classmethod
    def for_path(cls, path: str, last_seen: float = 0.0) -> "RepoRecord":
        """Create a record deriving the name from the path."""
        return cls(path=path, name=repo_name(path), last_seen=last_seen)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepoRecord":
        """Create an instance from a deserialized dict.

        Unknown fields are ignored; a missing name is derived from the path
        and a missing or non-finite last_seen defaults to 0.0.

        Raises:
            ValueError: If the entry has no usable path.
        """
        path = data.get("path")
        if not isinstance(path, str) or not path:
            raise ValueError("record without a path")

        name = data.get("name")
        if not isinstance(name, str) or not name:
            name = repo_name(path)

        return cls(path=path, name=name, last_seen=_timestamp(data.get("last_seen")))


def _timestamp(value: Any) -> float:
    """Coerce a stored last_seen to a finite float (0.0 if unusable)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    try:
        value = float(value)
    except OverflowError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def repo_name(path: str) -> str:
    """Return the last segment of a path (ignoring trailing separators)."""
    stripped = path.rstrip("/\\") or path
    return os.path.basename(stripped) or stripped


def is_under(path: str, root: str) -> bool:
    """True if path is root itself or one of its descendants."""
    return Path(path).is_relative_to(root)


class Index:
    """In-memory set of RepoRecord keyed by path.

    The index is a plain value object: the IndexManager mutates it and
    hands it to an IndexStore to persist; the matcher only reads it.
    """

    def __init__(self, records: list[RepoRecord] | None = None) -> None:
        self._records: dict[str, RepoRecord] = {}
        for record in records or []:
            self.upsert(record)

    def get(self, path: str) -> RepoRecord | None:
        return self._records.get(path)

    def upsert(self, record: RepoRecord) -> bool:
        """Insert or replace the record for record.path.

        Returns:
            True if the path was not indexed before.
        """
        is_new = record.path not in self._records
        self._records[record.path] = record
        return is_new

    def remove(self, path: str) -> RepoRecord | None:
        return self._records.pop(path, None)

    def paths_under(self, root: str) -> list[str]:
        """Indexed paths inside the subtree rooted at root, sorted."""
        return sorted(p for p in self._records if is_under(p, root))

    def records(self) -> list[RepoRecord]:
        """All records sorted by path (deterministic order for output)."""
        return [self._records[p] for p in sorted(self._records)]

    def __iter__(self) -> Iterator[RepoRecord]:
        return iter(self.records())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, path: object) -> bool:
        return path in self._records

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Index):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"Index({len(self._records)} repos)"
