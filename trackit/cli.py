"""Command-line interface: init, add, commit, log, diff."""

import argparse
import sys
from collections.abc import Iterable

from rich.text import Text

from .commits import Commit
from .config import STORAGE_KINDS, Settings
from .diff import ADDED, FIRST_COMMIT, NEW_FILE, REMOVED, FileDiff
from .errors import AlreadyInitialized, TrackitError
from .logger import (
    LOG_LEVELS,
    console,
    error,
    get_logger,
    setup_logging,
    success,
)
from .repository import Repository, repository

logger = get_logger(__name__)

SEGMENT_STYLES = {
    ADDED: ("++ ", "green"),
    REMOVED: ("-- ", "red"),
}


# -- Rendering --


def render_log(entries: Iterable[tuple[str, Commit]]) -> None:
    """Print one block per commit: fingerprint, date, message."""
    for fp, commit in entries:
        console.print(Text.assemble(("Commit: ", "bold"), (fp, "yellow")))
        console.print(Text(f"Date: {commit.timestamp}"))
        console.print(Text(f"Message: {commit.message}"))
        console.print()


def render_file_diff(file_diff: FileDiff) -> None:
    """Print one file's diff with added lines green and removed lines red."""
    console.print(Text.assemble("- ", (file_diff.path, "bold")))
    if file_diff.status in (FIRST_COMMIT, NEW_FILE):
        console.print(Text(file_diff.content), end="")
        if file_diff.content and not file_diff.content.endswith("\n"):
            console.print()
        label = "First commit" if file_diff.status == FIRST_COMMIT else "New file"
        console.print(Text(label, style="cyan"))
        return

    console.print(Text("Diff:", style="bold"))
    text = Text()
    for segment in file_diff.segments:
        prefix, style = SEGMENT_STYLES.get(segment.kind, ("", "dim"))
        for line in segment.text.splitlines(keepends=True):
            text.append(prefix + line, style=style)
    console.print(text, end="")
    if not text.plain.endswith("\n"):
        console.print()


def render_diff(fp: str, file_diffs: Iterable[FileDiff]) -> None:
    console.print(Text(f"Changes in commit {fp}:"))
    for file_diff in file_diffs:
        render_file_diff(file_diff)


# -- Commands --


def cmd_init(repo: Repository, args: argparse.Namespace) -> int:
    try:
        repo.init()
    except AlreadyInitialized as e:
        logger.info(str(e))
        return 0
    success(f"Initialized empty trackit repository in {repo.location}")
    return 0


def cmd_add(repo: Repository, args: argparse.Namespace) -> int:
    repo.add(args.file)
    success(f"Added {args.file}")
    return 0


def cmd_commit(repo: Repository, args: argparse.Namespace) -> int:
    fp = repo.commit(args.message)
    success(f"Commit successfully created {fp}")
    return 0


def cmd_log(repo: Repository, args: argparse.Namespace) -> int:
    render_log(repo.log())
    return 0


def cmd_diff(repo: Repository, args: argparse.Namespace) -> int:
    render_diff(args.commit, repo.diff(args.commit))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trackit", description="A tiny content-addressed version control tool"
    )
    parser.add_argument(
        "--repo",
        default=".",
        help="Working directory holding the repository (default: .)",
    )
    parser.add_argument(
        "--storage",
        choices=STORAGE_KINDS,
        default="files",
        help="Storage backend (default: files)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create an empty repository")
    init_parser.set_defaults(func=cmd_init)

    add_parser = subparsers.add_parser("add", help="Stage a file")
    add_parser.add_argument("file", help="File to stage")
    add_parser.set_defaults(func=cmd_add)

    commit_parser = subparsers.add_parser("commit", help="Commit staged files")
    commit_parser.add_argument("message", help="Commit message")
    commit_parser.set_defaults(func=cmd_commit)

    log_parser = subparsers.add_parser("log", help="Show commit history")
    log_parser.set_defaults(func=cmd_log)

    diff_parser = subparsers.add_parser(
        "diff", help="Show what a commit changed relative to its parent"
    )
    diff_parser.add_argument("commit", help="Commit fingerprint")
    diff_parser.set_defaults(func=cmd_diff)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.from_args(args.repo, args.storage, args.log_level)
    except ValueError as e:
        error(str(e))
        return 1
    setup_logging(settings.log_level)

    repo = None
    try:
        repo = repository(
            settings.storage, path=settings.path, repo_dir=settings.repo_dir
        )
        return args.func(repo, args)
    except TrackitError as e:
        error(str(e))
        return 1
    finally:
        if repo is not None:
            repo.close()


if __name__ == "__main__":
    sys.exit(main())
