"""Commit graph: commit records, the HEAD pointer, and history."""

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from .errors import Corrupt, NotFound
from .kv.base import KVStore
from .logger import get_logger
from .objects import ObjectStore
from .staging import StagingEntry, StagingIndex

HEAD_KEY = "HEAD"

Clock = Callable[[], datetime]
"""Returns the current time. Naive datetimes are taken as UTC."""

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(when: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. ``2024-01-01T00:00:00.000Z``."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    stamp = when.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


@dataclass(frozen=True)
class Commit:
    """An immutable snapshot of staged files plus a link to its parent."""

    timestamp: str
    message: str
    files: tuple[StagingEntry, ...] = field(default_factory=tuple)
    parent: str | None = None

    def to_bytes(self) -> bytes:
        """Deterministic serialization; the commit fingerprint hashes these bytes."""
        record = {
            "timeStamp": self.timestamp,
            "message": self.message,
            "files": [entry.to_json() for entry in self.files],
            "parent": self.parent,
        }
        return json.dumps(record, separators=(",", ":"), ensure_ascii=False).encode(
            "utf-8"
        )

    @classmethod
    def from_bytes(cls, data: bytes, fp: str = "<commit>") -> "Commit":
        """Parse a stored object as a commit.

        Raises:
            Corrupt: If the bytes are not a structurally valid commit
                record (for instance, raw file content).
        """
        try:
            record = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise Corrupt(fp, f"not a commit record: {e}") from e
        if not isinstance(record, dict):
            raise Corrupt(fp, "not a commit record")

        timestamp = record.get("timeStamp")
        message = record.get("message")
        files = record.get("files")
        parent = record.get("parent")
        if not isinstance(timestamp, str) or not isinstance(message, str):
            raise Corrupt(fp, "commit is missing timeStamp or message")
        if not isinstance(files, list):
            raise Corrupt(fp, "commit files must be a list")
        if "parent" not in record or not (parent is None or isinstance(parent, str)):
            raise Corrupt(fp, "commit parent must be a fingerprint or null")

        return cls(
            timestamp=timestamp,
            message=message,
            files=tuple(StagingEntry.from_json(f, fp) for f in files),
            # Older tools wrote an empty string for "no parent"
            parent=parent or None,
        )

    def find(self, path: str) -> StagingEntry | None:
        """First file entry with ``path``, in stored order."""
        for entry in self.files:
            if entry.path == path:
                return entry
        return None


class CommitGraph:
    """A linear commit log over an object store.

    Commits are stored as objects; HEAD lives outside the object
    namespace under its own key. ``commit()`` writes the commit object,
    then moves HEAD, then clears the staging index. A crash in between
    leaves HEAD on either the old commit or a fully written new one.
    """

    def __init__(
        self,
        store: KVStore,
        objects: ObjectStore | None = None,
        index: StagingIndex | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.objects = objects if objects is not None else ObjectStore(store)
        self.index = index if index is not None else StagingIndex(store)
        self._clock = clock or utc_now

    # -- HEAD --

    def initialize(self) -> bool:
        """Create an empty HEAD if none exists. Returns True if created."""
        created = self.store.cas(HEAD_KEY, b"", expected=None)
        if created:
            logger.debug("Created empty HEAD")
        return created

    @property
    def exists(self) -> bool:
        return HEAD_KEY in self.store

    def head(self) -> str | None:
        """Fingerprint of the latest commit, or None before the first commit."""
        raw = self.store.get(HEAD_KEY)
        if raw is None:
            return None
        try:
            value = raw.decode("ascii").strip()
        except UnicodeDecodeError as e:
            raise Corrupt(HEAD_KEY, str(e)) from e
        return value or None

    # -- Commits --

    def read_commit(self, fp: str) -> Commit:
        """Load and parse the commit stored under ``fp``.

        Raises:
            NotFound: If no object has that fingerprint.
            Corrupt: If the object is not a commit.
        """
        try:
            data = self.objects.get(fp)
        except NotFound:
            raise NotFound(fp, "commit") from None
        return Commit.from_bytes(data, fp)

    def commit(self, message: str) -> str:
        """Snapshot the staging index into a new commit on top of HEAD.

        Returns:
            The new commit's fingerprint.
        """
        record = Commit(
            timestamp=format_timestamp(self._clock()),
            message=message,
            files=self.index.snapshot(),
            parent=self.head(),
        )
        fp = self.objects.put(record.to_bytes())
        self.store.set(HEAD_KEY, fp.encode("ascii"))
        self.index.clear()

        logger.debug(
            "Committed %s with %d file(s), parent %s",
            fp,
            len(record.files),
            record.parent,
        )
        return fp

    # -- History --

    def history(self, start: str | None = None) -> Iterator[tuple[str, Commit]]:
        """Yield ``(fingerprint, commit)`` from newest to oldest.

        Starts at ``start`` (default: HEAD) and follows parent links
        until the root. Commits are read one at a time as the caller
        advances; a dangling parent raises from the generator after the
        earlier commits have been yielded.
        """
        current = start if start is not None else self.head()
        seen: set[str] = set()
        while current is not None:
            if current in seen:
                raise Corrupt(current, "parent chain loops back on itself")
            seen.add(current)
            commit = self.read_commit(current)
            yield current, commit
            current = commit.parent

    def initial_commit(self) -> str | None:
        """The root commit fingerprint, or None if there are no commits."""
        root = None
        for fp, _ in self.history():
            root = fp
        return root
