"""Target VCS backend interface and command runner."""

import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from .exceptions import VCSCommandError

# Date of the repository's initial commit; predates any SourceSafe history
REPOSITORY_EPOCH = datetime(1980, 1, 1, tzinfo=timezone.utc)

SCC_IGNORE_PATTERN = '*.scc'

EMPTY_MESSAGE = '-'


@dataclass
class CommandResult:
    """Result of one backend command."""

    args: List[str]
    returncode: int
    stdout: str = ''
    stderr: str = ''

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass
class CommitInfo:
    """Latest commit on the current branch."""

    commit_id: str
    author: str
    timestamp: datetime


def format_date(timestamp: datetime) -> str:
    """Format a timestamp as ``YYYY-MM-DD HH:MM:SS +ZZZZ``."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.strftime('%Y-%m-%d %H:%M:%S %z')


class VCSBackend(ABC):
    """Executes version control operations in a working directory.

    Every operation runs one or more external commands synchronously and
    raises :class:`VCSCommandError` when a command fails.
    """

    name = ''
    executable = ''
    metadata_dir = ''
    ignore_file = ''

    def __init__(
        self,
        root: Path,
        committer_name: str = 'VSS Migration Tool',
        committer_email: str = 'migration@vss.local',
        timeout: Optional[int] = None,
    ):
        """Initialize backend.

        Args:
            root: Root of the target working directory
            committer_name: Identity for commits without an author
            committer_email: E-mail for commits without an author
            timeout: Per-command timeout in seconds, None for no limit
        """
        self.root = Path(root)
        self.committer_name = committer_name
        self.committer_email = committer_email
        self.timeout = timeout
        self.logger = logger.bind(component=f'{self.__class__.__name__}')

    @property
    def working_area(self) -> Path:
        """Directory the current branch is checked out in."""
        return self.root

    @property
    def committer(self) -> str:
        return f'{self.committer_name} <{self.committer_email}>'

    def has_metadata(self) -> bool:
        """Whether the root already holds a repository of this backend."""
        return (self.root / self.metadata_dir).exists()

    def is_workspace_empty(self) -> bool:
        """Whether the root directory has no entries at all."""
        if not self.root.exists():
            return True
        return not any(self.root.iterdir())

    def environment(self) -> Dict[str, str]:
        """Extra environment variables for every command."""
        return {}

    def _run(
        self,
        *args: str,
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        check: bool = True,
    ) -> CommandResult:
        """Run a backend command.

        Args:
            *args: Arguments after the executable
            cwd: Working directory, defaults to the working area
            env: Extra environment variables for this command
            check: Raise on a non-zero exit status

        Returns:
            Command result

        Raises:
            VCSCommandError: If the command fails and ``check`` is set, or
                cannot be started, or times out
        """
        cmd = [self.executable, *args]
        workdir = cwd or self.working_area

        command_env = os.environ.copy()
        command_env.update(self.environment())
        if env:
            command_env.update(env)

        self.logger.debug(f'Executing: {" ".join(cmd)} (in {workdir})')

        try:
            completed = subprocess.run(
                cmd,
                cwd=str(workdir),
                env=command_env,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise VCSCommandError(
                f'{self.executable} executable not found', command=cmd
            )
        except subprocess.TimeoutExpired:
            raise VCSCommandError(
                f'Command timed out after {self.timeout} seconds: {" ".join(cmd)}',
                command=cmd,
            )

        result = CommandResult(
            args=cmd,
            returncode=completed.returncode,
            stdout=completed.stdout or '',
            stderr=completed.stderr or '',
        )

        if check and not result.success:
            error_output = result.stderr.strip() or result.stdout.strip()
            raise VCSCommandError(
                f'Command failed ({result.returncode}): {" ".join(cmd)}: {error_output}',
                command=cmd,
                returncode=result.returncode,
                stderr=result.stderr,
            )

        return result

    def _write_ignore_file(self, lines: List[str], directory: Optional[Path] = None):
        path = (directory or self.working_area) / self.ignore_file
        with open(path, 'a', encoding='utf-8') as f:
            for line in lines:
                f.write(f'{line}\n')

    def clean_working_area(self) -> None:
        """Delete everything in the working area except repository metadata."""
        keep = {self.metadata_dir, self.ignore_file}
        for entry in self.working_area.iterdir():
            if entry.name in keep:
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        self.logger.debug(f'Cleaned working area {self.working_area}')

    def stage_all(self) -> None:
        """Stage every change in the working area."""
        self.stage()

    @abstractmethod
    def create_repository(self, message: str) -> None:
        """Initialize the repository on branch master with an initial commit."""
        pass

    @abstractmethod
    def create_branch(self, name: str, base: str) -> None:
        """Create a branch off ``base`` and switch to it."""
        pass

    @abstractmethod
    def switch_branch(self, name: str) -> None:
        pass

    @abstractmethod
    def stage(self, path: Optional[str] = None) -> None:
        """Stage one path, or every change when ``path`` is None."""
        pass

    @abstractmethod
    def commit(
        self, author: str, timestamp: Optional[datetime], message: str
    ) -> None:
        """Commit staged changes.

        An empty author commits as the configured committer; a missing
        timestamp commits at the current time.
        """
        pass

    @abstractmethod
    def merge(
        self, branch: str, author: str, timestamp: Optional[datetime], message: str
    ) -> None:
        """Merge ``branch`` into the current branch and commit the merge."""
        pass

    @abstractmethod
    def tag(self, name: str, author: str, timestamp: Optional[datetime]) -> None:
        """Tag the current revision, replacing an existing tag of that name."""
        pass

    @abstractmethod
    def has_changes(self) -> bool:
        """Whether the working area differs from the current revision."""
        pass

    @abstractmethod
    def has_tag(self, name: str) -> bool:
        pass

    @abstractmethod
    def pack(self) -> None:
        """Compact the repository."""
        pass

    @abstractmethod
    def verify(self) -> None:
        """Check repository integrity."""
        pass

    @abstractmethod
    def latest_commit_info(self) -> CommitInfo:
        """Return the latest commit of the current branch."""
        pass
