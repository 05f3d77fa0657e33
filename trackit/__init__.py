"""trackit: a minimal content-addressed version control core."""

from .commits import Commit, CommitGraph
from .diff import CommitDiffer, DiffSegment, FileDiff, diff_lines, reconstruct
from .errors import (
    AlreadyInitialized,
    Corrupt,
    NotFound,
    NotInitialized,
    SourceFileUnreadable,
    TrackitError,
)
from .kv.base import KVStore
from .objects import ObjectStore, fingerprint
from .repository import Repository, repository
from .staging import StagingEntry, StagingIndex

__all__ = [
    "AlreadyInitialized",
    "Commit",
    "CommitDiffer",
    "CommitGraph",
    "Corrupt",
    "DiffSegment",
    "FileDiff",
    "KVStore",
    "NotFound",
    "NotInitialized",
    "ObjectStore",
    "Repository",
    "SourceFileUnreadable",
    "StagingEntry",
    "StagingIndex",
    "TrackitError",
    "diff_lines",
    "fingerprint",
    "reconstruct",
    "repository",
]
