"""trackit error types."""


class TrackitError(Exception):
    """Base class for every error raised by trackit."""


class NotFound(TrackitError):
    """Raised when a referenced object is absent from the object store.

    Attributes:
        fingerprint: The fingerprint (or key) that could not be resolved.
        what: What was being looked up ("object", "commit", "index").
    """

    def __init__(self, fingerprint: str, what: str = "object") -> None:
        self.fingerprint = fingerprint
        self.what = what
        super().__init__(f"{what} not found: {fingerprint}")


class Corrupt(TrackitError):
    """Raised when stored bytes exist but do not parse as the expected shape.

    Attributes:
        fingerprint: The fingerprint (or key) holding the bad bytes.
        reason: Human-readable description of what failed to parse.
    """

    def __init__(self, fingerprint: str, reason: str) -> None:
        self.fingerprint = fingerprint
        self.reason = reason
        super().__init__(f"corrupt {fingerprint}: {reason}")


class AlreadyInitialized(TrackitError):
    """Raised by ``init`` when the repository state already exists.

    Callers treat this as an informational no-op.
    """

    def __init__(self, location: str) -> None:
        self.location = location
        super().__init__(f"trackit repository already initialized in {location}")


class NotInitialized(TrackitError):
    """Raised when an operation runs before ``init``."""

    def __init__(self, location: str) -> None:
        self.location = location
        super().__init__(f"not a trackit repository: {location} (run 'trackit init')")


class SourceFileUnreadable(TrackitError):
    """Raised when ``add`` cannot read the file being staged."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        message = f"cannot read {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
