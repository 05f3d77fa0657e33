"""Plain-file KV store: one file per key under a root directory."""

import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Iterable

from .base import KVStore, check_key, check_value

TEMP_PREFIX = ".tmp-"


class Files(KVStore):
    """KV store laid out as ordinary files.

    Keys are POSIX-style relative paths, so ``objects/ab12...`` lands
    in ``<root>/objects/ab12...`` and ``HEAD`` in ``<root>/HEAD``.
    Parent directories are created on write.

    Values are written to a temporary file beside the target first and
    then moved into place, so an interrupted write leaves the old value
    (or no file) rather than a truncated one.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        posix = PurePosixPath(check_key(key))
        if posix.is_absolute() or any(part in (".", "..") for part in posix.parts):
            raise ValueError(f"Invalid key: {key!r}")
        if posix.name.startswith(TEMP_PREFIX):
            raise ValueError(f"Invalid key: {key!r}")
        return self.root.joinpath(*posix.parts)

    def _write_temp(self, path: Path, value: bytes) -> Path:
        """Write ``value`` to a fresh temporary file in ``path``'s directory."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(dir=path.parent, prefix=TEMP_PREFIX)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
        except BaseException:
            os.unlink(name)
            raise
        return Path(name)

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        check_value(value)
        path = self._path(key)
        temp = self._write_temp(path, value)
        try:
            os.replace(temp, path)
        except BaseException:
            temp.unlink(missing_ok=True)
            raise

    def keys(self) -> Iterable[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob("*")
            if path.is_file() and not path.name.startswith(TEMP_PREFIX)
        )

    def __contains__(self, key: str) -> bool:
        return self._path(key).is_file()

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        check_value(value)
        path = self._path(key)
        if expected is None:
            if path.exists():
                return False
            temp = self._write_temp(path, value)
            try:
                # link() refuses an existing target, so a racing writer loses
                os.link(temp, path)
            except FileExistsError:
                return False
            finally:
                temp.unlink(missing_ok=True)
            return True
        if self.get(key) != expected:
            return False
        self.set(key, value)
        return True

    def prepare(self, prefix: str) -> None:
        prefix = prefix.strip("/")
        if prefix:
            self._path(prefix).mkdir(parents=True, exist_ok=True)
        else:
            self.root.mkdir(parents=True, exist_ok=True)
