"""Target VCS backend exceptions."""

from typing import List, Optional


class VCSBackendError(Exception):
    """Base exception for backend errors."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
    ):
        """Initialize backend error.

        Args:
            message: Error message
            command: Command line that failed
            returncode: Exit status of the command
            stderr: Captured error output
        """
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class VCSCommandError(VCSBackendError):
    """A backend command exited with an error, timed out or is missing."""

    pass


class VCSParseError(VCSBackendError):
    """Backend output could not be parsed."""

    pass
