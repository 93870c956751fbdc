"""Exceptions raised by the scan pipeline."""


class ScanError(Exception):
    """Base exception for errors that terminate a scan."""


class WalkError(ScanError):
    """Raised when directory traversal fails fatally.

    Attributes:
        path: Filesystem entry that could not be read.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class StatusError(ScanError):
    """Raised when the status of a repository cannot be determined.

    Attributes:
        path: Repository root that failed.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class ScanCancelledError(ScanError):
    """Raised when a scan is cancelled before it completes."""
