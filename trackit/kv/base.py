"""Abstract KV store interface shared by the repository backends."""

from abc import ABC, abstractmethod
from typing import Iterable


def check_key(key: str) -> str:
    """Reject keys no backend can hold: non-strings and the empty key."""
    if not isinstance(key, str) or not key:
        raise ValueError(f"Invalid key: {key!r}")
    return key


def check_value(value: bytes) -> bytes:
    if not isinstance(value, bytes):
        raise TypeError(f"Expected bytes, got {type(value).__name__}")
    return value


class KVStore(ABC):
    """Byte-valued store holding a repository's objects, HEAD and index.

    Keys are slash-separated names such as ``objects/<sha1>`` or ``HEAD``.
    Serialization is handled at higher layers (objects, staging index,
    commit graph). Writes replace a value whole: a reader sees either
    the previous value or the new one, never a partial write.
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Get bytes value for key, or None if not found."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Set bytes value for key."""

    @abstractmethod
    def keys(self) -> Iterable[str]:
        """Iterate over all keys."""

    @abstractmethod
    def __contains__(self, key: str) -> bool:
        """Check if key exists in store."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key if present."""

    @abstractmethod
    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        """Compare-and-swap.

        Set value only if current value equals expected.
        None means "key must not exist", which is how objects are
        written once.

        Returns True if swap succeeded, False otherwise.
        """

    def prepare(self, prefix: str) -> None:
        """Make room for keys under ``prefix`` (e.g. ``objects/``).

        Backends without a directory structure have nothing to do.
        """

    def close(self) -> None:
        """Release any handles held by the backend."""
