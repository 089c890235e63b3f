"""Migration exceptions."""

from typing import Optional


class MigrationError(Exception):
    """Base exception for migration errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        """Initialize migration error.

        Args:
            message: Error message
            detail: Additional diagnostic detail
        """
        super().__init__(message)
        self.detail = detail


class ConfigurationError(MigrationError):
    """Invalid configuration, reported before any processing begins."""

    pass


class PreconditionError(MigrationError):
    """Working directory is not in the state the run mode requires."""

    pass


class UnknownAuthorError(MigrationError):
    """An event references an author that is missing from the user map."""

    def __init__(self, author: str):
        super().__init__(f'Author is not registered in the user map: {author}')
        self.author = author


class UnrecognizedActionError(MigrationError):
    """A source action fell into the catch-all bucket."""

    def __init__(self, action_text: str, file_path: Optional[str] = None):
        message = f'Unrecognized source action: {action_text!r}'
        if file_path:
            message += f' ({file_path})'
        super().__init__(message)
        self.action_text = action_text
        self.file_path = file_path


class EmptyHistoryError(MigrationError):
    """No version events matched the configured project."""

    pass
