"""Runtime settings for the trackit CLI."""

import os
from dataclasses import dataclass
from pathlib import Path

from .logger import LOG_LEVELS

STORAGE_KINDS = ("files", "disk", "memory")
DEFAULT_REPO_DIR = ".trackit"


@dataclass(frozen=True)
class Settings:
    """Where the repository lives and how it is stored.

    Attributes:
        path: Working directory holding the repository.
        repo_dir: Name of the repository directory inside ``path``.
        storage: Backend kind, one of ``STORAGE_KINDS``.
        log_level: Logging level name, one of ``LOG_LEVELS``.
    """

    path: Path = Path(".")
    repo_dir: str = DEFAULT_REPO_DIR
    storage: str = "files"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.storage not in STORAGE_KINDS:
            raise ValueError(f"Unknown kind: {self.storage!r}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level!r}")

    @property
    def location(self) -> Path:
        """Directory holding the repository data."""
        return self.path / self.repo_dir

    @classmethod
    def from_args(
        cls,
        path: str | Path | None = None,
        storage: str | None = None,
        log_level: str | None = None,
    ) -> "Settings":
        """Build settings from CLI values, falling back to ``LOG_LEVEL``."""
        return cls(
            path=Path(path) if path is not None else Path("."),
            storage=storage or "files",
            log_level=(log_level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        )
