"""Mercurial backend."""

from datetime import datetime
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

LOG_TEMPLATE = '{node}\\n{author}\\n{date|isodatesec}\\n'


class MercurialBackend(VCSBackend):
    """Replays history into a Mercurial repository.

    Branches are named branches; creating one records a commit.
    """

    name = 'hg'
    executable = 'hg'
    metadata_dir = '.hg'
    ignore_file = '.hgignore'

    def environment(self) -> Dict[str, str]:
        # Stable, untranslated output for log parsing
        return {'HGPLAIN': '1', 'HGUSER': self.committer}

    def create_repository(self, message: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._run('init')
        self._run('branch', 'master')
        self._write_ignore_file(['syntax: glob', SCC_IGNORE_PATTERN])
        self.stage()
        self.commit('', REPOSITORY_EPOCH, message)
        self.logger.info(f'Created hg repository in {self.root}')

    def create_branch(self, name: str, base: str) -> None:
        self.switch_branch(base)
        self._run('branch', name)
        self.commit('', REPOSITORY_EPOCH, 'create branch')

    def switch_branch(self, name: str) -> None:
        self._run('update', '-C', name)

    def stage(self, path: Optional[str] = None) -> None:
        if path is None:
            self._run('addremove')
        else:
            self._run('add', path)

    def commit(
        self, author: str, timestamp: Optional[datetime], message: str
    ) -> None:
        args = ['commit', '-m', message or EMPTY_MESSAGE]
        args += ['--user', author or self.committer]
        if timestamp is not None:
            args += ['--date', format_date(timestamp)]
        self._run(*args)

    def merge(
        self, branch: str, author: str, timestamp: Optional[datetime], message: str
    ) -> None:
        self._run('merge', branch)
        self.commit(author, timestamp, message)

    def tag(self, name: str, author: str, timestamp: Optional[datetime]) -> None:
        args = ['tag', '-f', '--user', author or self.committer]
        if timestamp is not None:
            args += ['--date', format_date(timestamp)]
        args.append(name)
        self._run(*args)

    def has_changes(self) -> bool:
        result = self._run('status')
        return bool(result.stdout.strip())

    def has_tag(self, name: str) -> bool:
        result = self._run('tags', '-q')
        return name in (line.strip() for line in result.stdout.splitlines())

    def pack(self) -> None:
        self.logger.debug('Mercurial repositories need no packing')

    def verify(self) -> None:
        self._run('verify')

    def latest_commit_info(self) -> CommitInfo:
        result = self._run('log', '-r', '.', '--template', LOG_TEMPLATE)
        lines = result.stdout.strip().splitlines()
        if len(lines) < 3:
            raise VCSParseError(
                f'Unexpected hg log output: {result.stdout!r}', command=result.args
            )
        try:
            timestamp = datetime.strptime(lines[2].strip(), '%Y-%m-%d %H:%M:%S %z')
        except ValueError:
            raise VCSParseError(
                f'Unparseable commit date: {lines[2]!r}', command=result.args
            )
        return CommitInfo(commit_id=lines[0], author=lines[1], timestamp=timestamp)
