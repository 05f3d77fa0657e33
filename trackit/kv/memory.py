"""In-memory KV store for throwaway repositories."""

import threading
from typing import Iterable

from .base import KVStore, check_key, check_value


class Memory(KVStore):
    """Repository storage in a dict. Nothing survives the process.

    Every access holds one lock, so ``cas`` on an object key creates it
    at most once even with concurrent writers.
    """

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self.data.get(check_key(key))

    def set(self, key: str, value: bytes) -> None:
        check_value(value)
        with self._lock:
            self.data[check_key(key)] = value

    def keys(self) -> Iterable[str]:
        with self._lock:
            return sorted(self.data)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return check_key(key) in self.data

    def remove(self, key: str) -> None:
        with self._lock:
            self.data.pop(check_key(key), None)

    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        check_value(value)
        with self._lock:
            if self.data.get(check_key(key)) != expected:
                return False
            self.data[key] = value
            return True
