"""Repository facade and factory function."""

from collections.abc import Iterator
from pathlib import Path

from .commits import Clock, Commit, CommitGraph
from .config import DEFAULT_REPO_DIR
from .diff import CommitDiffer, FileDiff
from .errors import AlreadyInitialized, NotInitialized, SourceFileUnreadable
from .kv.base import KVStore
from .kv.memory import Memory
from .logger import get_logger
from .objects import ObjectStore
from .staging import StagingEntry, StagingIndex

logger = get_logger(__name__)


class Repository:
    """One repository: object store, staging index and commit graph over
    a single KV backend.

    Every operation except ``init`` requires an initialized repository.
    """

    def __init__(
        self,
        backend: KVStore | None = None,
        *,
        location: str = "<memory>",
        workdir: str | Path = ".",
        clock: Clock | None = None,
    ) -> None:
        if backend is None:
            backend = Memory()
        self.backend = backend
        self.location = location
        self.workdir = Path(workdir)
        self.objects = ObjectStore(backend)
        self.index = StagingIndex(backend)
        self.graph = CommitGraph(backend, self.objects, self.index, clock=clock)
        self.differ = CommitDiffer(self.graph)

    # -- Lifecycle --

    @property
    def is_initialized(self) -> bool:
        return self.graph.exists and self.index.exists

    def init(self) -> None:
        """Create the object namespace, an empty HEAD and an empty staging
        index, keeping whatever exists.

        Raises:
            AlreadyInitialized: If both were already present. Nothing
                is modified in that case.
        """
        self.objects.initialize()
        created_head = self.graph.initialize()
        created_index = self.index.initialize()
        if not (created_head or created_index):
            raise AlreadyInitialized(self.location)
        logger.debug("Initialized repository in %s", self.location)

    def close(self) -> None:
        """Release the backend (the diskcache database for ``disk``)."""
        self.backend.close()

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _require_init(self) -> None:
        if not self.is_initialized:
            raise NotInitialized(self.location)

    # -- Operations --

    def add(self, path: str | Path) -> StagingEntry:
        """Store a working-tree file's content and stage it under ``path``.

        Relative paths are read from ``workdir`` and staged as given.

        Raises:
            SourceFileUnreadable: If the file cannot be read.
        """
        self._require_init()
        try:
            data = (self.workdir / path).read_bytes()
        except OSError as e:
            raise SourceFileUnreadable(str(path), e.strerror or str(e)) from e
        fp = self.objects.put(data)
        return self.index.stage(Path(path).as_posix(), fp)

    def commit(self, message: str) -> str:
        """Commit the staging index. Returns the new commit fingerprint."""
        self._require_init()
        return self.graph.commit(message)

    def log(self) -> Iterator[tuple[str, Commit]]:
        """Commits from HEAD back to the root, newest first."""
        self._require_init()
        return self.graph.history()

    def diff(self, fp: str) -> Iterator[FileDiff]:
        """Per-file diffs of commit ``fp`` against its parent."""
        self._require_init()
        return self.differ.diff(fp)

    def head(self) -> str | None:
        self._require_init()
        return self.graph.head()

    def read_commit(self, fp: str) -> Commit:
        self._require_init()
        return self.graph.read_commit(fp)


def repository(
    kind: str = "files",
    *,
    path: str | Path = ".",
    repo_dir: str = DEFAULT_REPO_DIR,
    clock: Clock | None = None,
) -> Repository:
    """Create a Repository with sensible defaults.

    Args:
        kind: ``"files"`` (default) for one plain file per object under
            ``path/repo_dir``, ``"disk"`` for a diskcache database in
            that directory, or ``"memory"`` for a throwaway repository.
        path: Working directory holding the repository.
        repo_dir: Repository directory name inside ``path``.
        clock: Time source for commit timestamps.

    Returns:
        A ``Repository`` (not yet initialized if the location is new).
    """
    location = Path(path) / repo_dir
    if kind == "memory":
        return Repository(Memory(), workdir=path, clock=clock)
    if kind == "files":
        from .kv.files import Files

        backend: KVStore = Files(location)
    elif kind == "disk":
        from .kv.disk import Disk

        backend = Disk(str(location))
    else:
        raise ValueError(f"Unknown kind: {kind!r}")
    return Repository(
        backend, location=str(location), workdir=path, clock=clock
    )
