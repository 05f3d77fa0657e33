"""Staging index: file versions waiting for the next commit."""

import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import Corrupt, NotFound
from .kv.base import KVStore
from .logger import get_logger

INDEX_KEY = "index"

logger = get_logger(__name__)


@dataclass(frozen=True)
class StagingEntry:
    """A tracked file version: the path as given plus its content fingerprint."""

    path: str
    hash: str

    def to_json(self) -> dict[str, str]:
        return {"path": self.path, "hash": self.hash}

    @classmethod
    def from_json(cls, raw: Any, source: str) -> "StagingEntry":
        """Parse one ``{"path", "hash"}`` record, raising Corrupt on bad shape."""
        if (
            not isinstance(raw, dict)
            or not isinstance(raw.get("path"), str)
            or not isinstance(raw.get("hash"), str)
        ):
            raise Corrupt(source, f"bad file entry {raw!r}")
        return cls(path=raw["path"], hash=raw["hash"])


def dedupe(entries: Iterable[StagingEntry]) -> list[StagingEntry]:
    """Collapse entries to one per path.

    The latest fingerprint for a path wins; the path keeps the position
    of its first appearance.
    """
    by_path: dict[str, StagingEntry] = {}
    for entry in entries:
        by_path[entry.path] = entry
    return list(by_path.values())


class StagingIndex(Mapping[str, str]):
    """Ordered ``path -> fingerprint`` index persisted as a JSON array.

    Every mutation is written through to the backend immediately, and
    every read goes back to the backend, so the index never holds
    state the store does not.

    Staging a path that is already present replaces its fingerprint in
    place rather than appending a duplicate.
    """

    def __init__(self, store: KVStore) -> None:
        self.store = store

    # -- Lifecycle --

    def initialize(self) -> bool:
        """Create an empty index if none exists. Returns True if created."""
        created = self.store.cas(INDEX_KEY, _encode([]), expected=None)
        if created:
            logger.debug("Created empty staging index")
        return created

    @property
    def exists(self) -> bool:
        return INDEX_KEY in self.store

    # -- Read operations --

    def snapshot(self) -> tuple[StagingEntry, ...]:
        """The current entries, in add order."""
        return tuple(self._load())

    def __getitem__(self, path: str) -> str:
        for entry in self._load():
            if entry.path == path:
                return entry.hash
        raise KeyError(path)

    def __iter__(self) -> Iterator[str]:
        return iter([entry.path for entry in self._load()])

    def __len__(self) -> int:
        return len(self._load())

    # -- Write operations --

    def stage(self, path: str, fp: str) -> StagingEntry:
        """Record ``path`` at fingerprint ``fp`` and persist the index."""
        entries = self._load()
        entry = StagingEntry(path=path, hash=fp)
        for i, existing in enumerate(entries):
            if existing.path == path:
                if existing == entry:
                    logger.debug("%s already staged at %s", path, fp)
                    return entry
                entries[i] = entry
                break
        else:
            entries.append(entry)
        self._save(entries)
        logger.debug("Staged %s at %s", path, fp)
        return entry

    def clear(self) -> None:
        """Reset to an empty index and persist it."""
        self._save([])

    # -- Internal --

    def _load(self) -> list[StagingEntry]:
        raw = self.store.get(INDEX_KEY)
        if raw is None:
            raise NotFound(INDEX_KEY, "index")
        try:
            records = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise Corrupt(INDEX_KEY, str(e)) from e
        if not isinstance(records, list):
            raise Corrupt(INDEX_KEY, "expected a JSON array")
        return dedupe([StagingEntry.from_json(r, INDEX_KEY) for r in records])

    def _save(self, entries: list[StagingEntry]) -> None:
        self.store.set(INDEX_KEY, _encode(entries))


def _encode(entries: list[StagingEntry]) -> bytes:
    return json.dumps(
        [e.to_json() for e in entries], separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")
