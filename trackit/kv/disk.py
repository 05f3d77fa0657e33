"""Disk-backed KV store using diskcache."""

from typing import Iterable, cast

from .base import KVStore, check_key, check_value

ONE_GB = 1024 * 1024 * 1024


class Disk(KVStore):
    """Repository storage in a single diskcache database (SQLite + mmap).

    Eviction is turned off: repository objects must never be culled,
    whatever the cache size. Each write is one SQLite transaction, so a
    crash never leaves a partial value behind.
    """

    def __init__(self, directory: str, size_limit: int = ONE_GB) -> None:
        from diskcache import Cache as DiskCache

        self.directory = directory
        self.cache = DiskCache(
            directory, size_limit=size_limit, eviction_policy="none"
        )

    def get(self, key: str) -> bytes | None:
        return cast(bytes | None, self.cache.get(check_key(key)))

    def set(self, key: str, value: bytes) -> None:
        self.cache.set(check_key(key), check_value(value))

    def keys(self) -> Iterable[str]:
        return sorted(str(key) for key in self.cache.iterkeys())

    def __contains__(self, key: str) -> bool:
        return check_key(key) in self.cache

    def remove(self, key: str) -> None:
        self.cache.delete(check_key(key))

    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        check_key(key)
        check_value(value)
        if expected is None:
            # add() only writes when the key is absent, in one statement
            return bool(self.cache.add(key, value))
        with self.cache.transact():
            if self.cache.get(key) != expected:
                return False
            self.cache.set(key, value)
            return True

    def close(self) -> None:
        self.cache.close()
