"""Git backend."""

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

LOG_FORMAT = '%H%n%an <%ae>%n%aI'


class GitBackend(VCSBackend):
    """Replays history into a git repository."""

    name = 'git'
    executable = 'git'
    metadata_dir = '.git'
    ignore_file = '.gitignore'

    def environment(self) -> Dict[str, str]:
        # Author identity for commits without an explicit --author
        return {
            'GIT_AUTHOR_NAME': self.committer_name,
            'GIT_AUTHOR_EMAIL': self.committer_email,
            'GIT_COMMITTER_NAME': self.committer_name,
            'GIT_COMMITTER_EMAIL': self.committer_email,
        }

    def create_repository(self, message: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._run('init', '-q')
        self._run('symbolic-ref', 'HEAD', 'refs/heads/master')
        self._write_ignore_file([SCC_IGNORE_PATTERN])
        self.stage()
        self.commit('', REPOSITORY_EPOCH, message)
        self.logger.info(f'Created git repository in {self.root}')

    def create_branch(self, name: str, base: str) -> None:
        self.switch_branch(base)
        self._run('branch', '-q', name)
        self.switch_branch(name)

    def switch_branch(self, name: str) -> None:
        self._run('checkout', '-q', name)

    def stage(self, path: Optional[str] = None) -> None:
        if path is None:
            self._run('add', '-A')
        else:
            self._run('add', '--', path)

    def commit(
        self, author: str, timestamp: Optional[datetime], message: str
    ) -> None:
        args = ['commit', '-q', '-m', message or EMPTY_MESSAGE]
        env = {}
        if author:
            args.append(f'--author={author}')
        if timestamp is not None:
            date = format_date(timestamp)
            args.append(f'--date={date}')
            env['GIT_COMMITTER_DATE'] = date
        self._run(*args, env=env)

    def merge(
        self, branch: str, author: str, timestamp: Optional[datetime], message: str
    ) -> None:
        self._run('merge', '--no-ff', '--no-commit', '-q', branch)
        self.commit(author, timestamp, message)

    def tag(self, name: str, author: str, timestamp: Optional[datetime]) -> None:
        self._run('tag', '-f', name)

    def has_changes(self) -> bool:
        result = self._run('status', '--porcelain')
        return bool(result.stdout.strip())

    def has_tag(self, name: str) -> bool:
        result = self._run(
            'rev-parse', '-q', '--verify', f'refs/tags/{name}', check=False
        )
        return result.success

    def pack(self) -> None:
        self._run('gc', '-q')

    def verify(self) -> None:
        self._run('fsck')

    def latest_commit_info(self) -> CommitInfo:
        result = self._run('log', '-n', '1', f'--format={LOG_FORMAT}')
        lines = result.stdout.strip().splitlines()
        if len(lines) < 3:
            raise VCSParseError(
                f'Unexpected git log output: {result.stdout!r}', command=result.args
            )
        try:
            timestamp = datetime.fromisoformat(lines[2].strip())
        except ValueError:
            raise VCSParseError(
                f'Unparseable commit date: {lines[2]!r}', command=result.args
            )
        return CommitInfo(commit_id=lines[0], author=lines[1], timestamp=timestamp)
