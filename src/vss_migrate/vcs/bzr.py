"""Bazaar backend."""

import re
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from .base import (
    EMPTY_MESSAGE,
    REPOSITORY_EPOCH,
    SCC_IGNORE_PATTERN,
    CommitInfo,
    VCSBackend,
    format_date,
)
from .exceptions import VCSParseError

MAX_FILE_SIZE = 50000000

_REVNO = re.compile(r'^revno:\s*(.*)$', re.MULTILINE)
_AUTHOR = re.compile(r'^(?:author|committer):\s*(.*)$', re.MULTILINE)
_TIMESTAMP = re.compile(r'^timestamp:\s*(.*)$', re.MULTILINE)


class BazaarBackend(VCSBackend):
    """Replays history into a Bazaar shared repository.

    Each branch lives in its own directory below the root, so the working
    area follows the current branch.
    """

    name = 'bzr'
    executable = 'bzr'
    metadata_dir = '.bzr'
    ignore_file = '.bzrignore'

    def __init__(self, root: Path, *args, **kwargs):
        super().__init__(root, *args, **kwargs)
        self.current_branch = 'master'

    @property
    def working_area(self) -> Path:
        return self.root / self.current_branch

    def environment(self) -> Dict[str, str]:
        return {'BZR_EMAIL': self.committer}

    def create_repository(self, message: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._run('init-repo', '.', cwd=self.root)
        self._run('config', f'add.maximum_file_size={MAX_FILE_SIZE}', cwd=self.root)
        (self.root / 'master').mkdir(exist_ok=True)
        self.switch_branch('master')
        self._run('init')
        self._run('ignore', SCC_IGNORE_PATTERN)
        self.stage()
        self.commit('', REPOSITORY_EPOCH, message)
        self.logger.info(f'Created bzr shared repository in {self.root}')

    def create_branch(self, name: str, base: str) -> None:
        self._run('branch', base, name, cwd=self.root)
        self.switch_branch(name)

    def switch_branch(self, name: str) -> None:
        self.current_branch = name

    def stage(self, path: Optional[str] = None) -> None:
        if path is None:
            self._run('add', '-q')
        else:
            self._run('add', '-q', path)

    def commit(
        self, author: str, timestamp: Optional[datetime], message: str
    ) -> None:
        args = ['commit', '-q', '-m', message or EMPTY_MESSAGE]
        if author:
            args += ['--author', author]
        if timestamp is not None:
            args += ['--commit-time', format_date(timestamp)]
        self._run(*args)

    def merge(
        self, branch: str, author: str, timestamp: Optional[datetime], message: str
    ) -> None:
        self._run('merge', str(self.root / branch))
        self.commit(author, timestamp, message)

    def tag(self, name: str, author: str, timestamp: Optional[datetime]) -> None:
        self._run('tag', '--force', name)

    def has_changes(self) -> bool:
        result = self._run('status', '-S')
        return bool(result.stdout.strip())

    def has_tag(self, name: str) -> bool:
        result = self._run('tags')
        # Lines are '<tag> <revno>'
        tags = {
            line.rsplit(None, 1)[0]
            for line in result.stdout.splitlines()
            if line.strip()
        }
        return name in tags

    def pack(self) -> None:
        self._run('pack')

    def verify(self) -> None:
        self._run('check')

    def latest_commit_info(self) -> CommitInfo:
        result = self._run('log', '-r-1')
        revno = _REVNO.search(result.stdout)
        author = _AUTHOR.search(result.stdout)
        stamp = _TIMESTAMP.search(result.stdout)
        if not (revno and author and stamp):
            raise VCSParseError(
                f'Unexpected bzr log output: {result.stdout!r}', command=result.args
            )
        try:
            timestamp = datetime.strptime(
                stamp.group(1).strip(), '%a %Y-%m-%d %H:%M:%S %z'
            )
        except ValueError:
            raise VCSParseError(
                f'Unparseable commit date: {stamp.group(1)!r}', command=result.args
            )
        return CommitInfo(
            commit_id=revno.group(1).strip(),
            author=author.group(1).strip(),
            timestamp=timestamp,
        )
