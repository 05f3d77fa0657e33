"""Content-addressable object store over a KV backend."""

import hashlib
import re
from collections.abc import Iterator

from .errors import NotFound
from .kv.base import KVStore
from .logger import get_logger

OBJECT_KEY = "objects/%s"
FINGERPRINT_RE = re.compile(r"[0-9a-f]{40}")

logger = get_logger(__name__)


def fingerprint(data: bytes) -> str:
    """SHA-1 hex digest identifying ``data``."""
    return hashlib.sha1(data).hexdigest()


def is_fingerprint(value: object) -> bool:
    """Whether ``value`` looks like a full fingerprint."""
    return isinstance(value, str) and FINGERPRINT_RE.fullmatch(value) is not None


class ObjectStore:
    """Write-once, read-many mapping from fingerprint to bytes.

    File contents and serialized commits share this one namespace.
    """

    def __init__(self, store: KVStore) -> None:
        self.store = store

    def initialize(self) -> None:
        """Create the object namespace, e.g. ``.trackit/objects/`` on disk."""
        self.store.prepare(OBJECT_KEY % "")

    def put(self, data: bytes) -> str:
        """Store ``data`` under its fingerprint and return the fingerprint.

        Writing content that is already present is a no-op. A stored
        object whose bytes no longer match its fingerprint (left by an
        interrupted write) is replaced with ``data``.
        """
        if not isinstance(data, bytes):
            raise TypeError(f"Expected bytes, got {type(data).__name__}")
        fp = fingerprint(data)
        key = OBJECT_KEY % fp
        if self.store.cas(key, data, expected=None):
            logger.debug("Stored object %s (%d bytes)", fp, len(data))
            return fp

        existing = self.store.get(key)
        if existing is not None and fingerprint(existing) == fp:
            logger.debug("Object %s already stored", fp)
        else:
            logger.warning("Object %s was damaged; rewriting it", fp)
            self.store.set(key, data)
        return fp

    def get(self, fp: str) -> bytes:
        """Return the bytes stored under ``fp``.

        Raises:
            NotFound: If no object has that fingerprint.
        """
        data = self.store.get(OBJECT_KEY % fp) if is_fingerprint(fp) else None
        if data is None:
            raise NotFound(fp)
        return data

    def __contains__(self, fp: str) -> bool:
        return is_fingerprint(fp) and (OBJECT_KEY % fp) in self.store

    def __iter__(self) -> Iterator[str]:
        prefix = OBJECT_KEY % ""
        for key in self.store.keys():
            if key.startswith(prefix):
                yield key[len(prefix):]

    def __len__(self) -> int:
        return sum(1 for _ in self)
