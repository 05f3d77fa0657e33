"""Line-level diffs of a commit's files against its parent."""

import difflib
from collections.abc import Iterator
from dataclasses import dataclass

from .commits import Commit, CommitGraph
from .logger import get_logger

ADDED = "added"
REMOVED = "removed"
UNCHANGED = "unchanged"

FIRST_COMMIT = "first_commit"
NEW_FILE = "new_file"
MODIFIED = "modified"

logger = get_logger(__name__)


@dataclass(frozen=True)
class DiffSegment:
    """A contiguous run of whole lines sharing one tag."""

    kind: str  # "added", "removed", "unchanged"
    text: str


@dataclass(frozen=True)
class FileDiff:
    """What a commit did to one file."""

    path: str
    hash: str
    content: str
    status: str  # "first_commit", "new_file", "modified"
    segments: tuple[DiffSegment, ...] = ()


def _append(segments: list[DiffSegment], kind: str, text: str) -> None:
    if not text:
        return
    if segments and segments[-1].kind == kind:
        segments[-1] = DiffSegment(kind, segments[-1].text + text)
    else:
        segments.append(DiffSegment(kind, text))


def diff_lines(before: str, after: str) -> tuple[DiffSegment, ...]:
    """Diff two texts line by line.

    Joining the ``removed`` and ``unchanged`` segments in order gives
    back ``before``; joining ``added`` and ``unchanged`` gives ``after``.
    Within a changed region, removals come before additions.
    """
    a = before.splitlines(keepends=True)
    b = after.splitlines(keepends=True)
    matcher = difflib.SequenceMatcher(None, a, b, autojunk=False)

    segments: list[DiffSegment] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            _append(segments, UNCHANGED, "".join(a[i1:i2]))
            continue
        # "replace", "delete" and "insert" all reduce to remove-then-add
        _append(segments, REMOVED, "".join(a[i1:i2]))
        _append(segments, ADDED, "".join(b[j1:j2]))
    return tuple(segments)


def reconstruct(segments: tuple[DiffSegment, ...], side: str) -> str:
    """Rebuild the ``"before"`` or ``"after"`` text from diff segments."""
    if side == "before":
        keep = {REMOVED, UNCHANGED}
    elif side == "after":
        keep = {ADDED, UNCHANGED}
    else:
        raise ValueError(f"Unknown side: {side!r}")
    return "".join(s.text for s in segments if s.kind in keep)


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


class CommitDiffer:
    """Reconstructs per-file diffs between a commit and its parent."""

    def __init__(self, graph: CommitGraph) -> None:
        self.graph = graph

    def diff(self, fp: str) -> Iterator[FileDiff]:
        """Diff every file recorded in commit ``fp`` against its parent.

        The commit and its parent are resolved up front, so a missing
        commit raises ``NotFound`` here. File contents are fetched
        lazily as the result is iterated; a missing blob raises from
        the iterator after earlier files have been produced.
        """
        commit = self.graph.read_commit(fp)
        parent = (
            self.graph.read_commit(commit.parent)
            if commit.parent is not None
            else None
        )
        logger.debug("Diffing %s against %s", fp, commit.parent)
        return self._file_diffs(commit, parent)

    def _file_diffs(
        self, commit: Commit, parent: Commit | None
    ) -> Iterator[FileDiff]:
        objects = self.graph.objects
        for entry in commit.files:
            content = _decode(objects.get(entry.hash))
            if parent is None:
                yield FileDiff(entry.path, entry.hash, content, FIRST_COMMIT)
                continue

            previous = parent.find(entry.path)
            if previous is None:
                yield FileDiff(entry.path, entry.hash, content, NEW_FILE)
                continue

            before = _decode(objects.get(previous.hash))
            yield FileDiff(
                entry.path,
                entry.hash,
                content,
                MODIFIED,
                diff_lines(before, content),
            )
