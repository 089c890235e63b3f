"""Target version control backends."""

from pathlib import Path
from typing import Dict, Optional, Type

from .base import VCSBackend, CommandResult, CommitInfo, REPOSITORY_EPOCH
from .git import GitBackend
from .hg import MercurialBackend
from .bzr import BazaarBackend
from .exceptions import VCSBackendError, VCSCommandError, VCSParseError

BACKENDS: Dict[str, Type[VCSBackend]] = {
    'git': GitBackend,
    'hg': MercurialBackend,
    'bzr': BazaarBackend,
}


def create_backend(
    name: str,
    root: Path,
    committer_name: str = 'VSS Migration Tool',
    committer_email: str = 'migration@vss.local',
    timeout: Optional[int] = None,
) -> VCSBackend:
    """Create the backend registered under ``name``.

    Raises:
        ValueError: If no backend has that name
    """
    try:
        backend_class = BACKENDS[name.lower()]
    except KeyError:
        raise ValueError(f'Unsupported VCS: {name} (choose from {list(BACKENDS)})')
    return backend_class(
        Path(root),
        committer_name=committer_name,
        committer_email=committer_email,
        timeout=timeout,
    )


__all__ = [
    'VCSBackend',
    'CommandResult',
    'CommitInfo',
    'REPOSITORY_EPOCH',
    'GitBackend',
    'MercurialBackend',
    'BazaarBackend',
    'VCSBackendError',
    'VCSCommandError',
    'VCSParseError',
    'BACKENDS',
    'create_backend',
]
