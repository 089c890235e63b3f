"""Source history provider exceptions."""

from typing import Optional


class SourceHistoryError(Exception):
    """Base exception for source history errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        """Initialize source history error.

        Args:
            message: Error message
            path: Source path involved, if any
        """
        super().__init__(message)
        self.path = path


class SourceUnavailableError(SourceHistoryError):
    """The source database cannot be opened or is misconfigured."""

    pass


class SourceItemNotFoundError(SourceHistoryError):
    """A file or project does not exist in the source database."""

    pass
