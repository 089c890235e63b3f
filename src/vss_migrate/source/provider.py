"""Source history provider interface."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from ..models.event import RawVersionRecord


class SourceHistoryProvider(ABC):
    """Supplies per-file version history and file content."""

    @abstractmethod
    def list_files(self, project_root: str) -> List[str]:
        """List every file below a project, recursively.

        Only leaf files are returned, never projects.
        """
        pass

    @abstractmethod
    def get_events_for_file(self, path: str) -> List[RawVersionRecord]:
        """Return the version history of one file."""
        pass

    @abstractmethod
    def fetch_content(
        self, path: str, version: Optional[int], working_dir: Path
    ) -> bool:
        """Write a file or project into the working directory.

        Args:
            path: Source path of a file or project
            version: Version number, or None for the latest version. The
                two request shapes are distinct and must not be merged.
            working_dir: Root of the target working area

        Returns:
            True on success, False if the content could not be written
        """
        pass

    def close(self) -> None:
        """Release the underlying connection."""
        pass
