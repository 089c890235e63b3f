"""Visual SourceSafe history provider over COM automation.

Requires Windows, an installed SourceSafe client (6.0d or 2005, English)
and pywin32.
"""

import re
import time
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from loguru import logger

from ..config.config import SourceConfig
from ..models.event import RawVersionRecord
from .exceptions import SourceItemNotFoundError, SourceUnavailableError
from .provider import SourceHistoryProvider

# SourceSafe automation constants (ssauto.h)
VSSITEM_PROJECT = 0
VSSITEM_FILE = 1

VSSFLAG_REPREPLACE = 128
VSSFLAG_CMPFAIL = 2048
VSSFLAG_RECURSYES = 8192
VSSFLAG_FORCEDIRNO = 16384

GET_FLAGS = VSSFLAG_CMPFAIL | VSSFLAG_FORCEDIRNO | VSSFLAG_RECURSYES | VSSFLAG_REPREPLACE

# Seconds to wait before a project-wide get; freshly deleted files can
# still be locked on Windows
PROJECT_GET_DELAY = 2

_LINE_BREAK_PAIR = re.compile(r'[\r\n][\r\n]')


def clean_comment(text: Optional[str]) -> str:
    """Collapse doubled line breaks and drop one trailing line break."""
    text = _LINE_BREAK_PAIR.sub('\n', text or '')
    return _chomp(text)


def _chomp(text: str) -> str:
    if text.endswith('\r\n'):
        return text[:-2]
    if text.endswith(('\n', '\r')):
        return text[:-1]
    return text


def _to_datetime(value: Any) -> datetime:
    """Wall-clock time of a COM date, without timezone."""
    return datetime(
        value.year, value.month, value.day, value.hour, value.minute, value.second
    )


class VSSProvider(SourceHistoryProvider):
    """Reads history and content from a SourceSafe database."""

    def __init__(self, config: SourceConfig, database: Any = None):
        """Initialize the provider.

        Args:
            config: Source database configuration
            database: Already opened ``SourceSafe`` automation object
        """
        self.config = config
        self.project = config.project
        self._database = database
        self.logger = logger.bind(component='VSSProvider')

    @property
    def database(self) -> Any:
        if self._database is None:
            self.open()
        return self._database

    def open(self) -> None:
        """Open the SourceSafe database.

        Raises:
            SourceUnavailableError: If SourceSafe is missing, the database
                folder is invalid, the credentials are rejected or the
                database settings are incompatible
        """
        if self._database is not None:
            return

        ini_path = self.config.ini_path
        if not ini_path.is_file():
            raise SourceUnavailableError(f'Invalid VSS database folder: {ini_path}')

        try:
            import win32com.client
        except ImportError:
            raise SourceUnavailableError(
                'pywin32 is required to read a SourceSafe database'
            )

        try:
            database = win32com.client.Dispatch('SourceSafe')
        except Exception as e:
            raise SourceUnavailableError(f'Visual SourceSafe is not installed: {e}')

        try:
            database.Open(str(ini_path), self.config.user, self.config.password)
        except Exception as e:
            raise SourceUnavailableError(f'Invalid user name or password: {e}')

        self.check_settings(database)
        self._database = database
        self.logger.info(f'Opened VSS database {ini_path} as {self.config.user}')

    def check_settings(self, database: Any) -> None:
        """Reject databases that rewrite working folders on get.

        ``GetSetting`` only exists on SourceSafe 2005; on 6.0 the check
        is skipped.
        """
        try:
            force_dir = database.GetSetting('Force_Dir')
            force_prj = database.GetSetting('Force_Prj')
        except Exception:
            self.logger.info(
                'VSS version may be 6.0, skipping Force_Dir/Force_Prj validation'
            )
            return

        if force_dir == 'Yes':
            raise SourceUnavailableError(
                'VSS setting error: "Assume working folder based on current '
                'project" must be off (Tools -> Options -> Command Line Options)'
            )
        if force_prj == 'Yes':
            raise SourceUnavailableError(
                'VSS setting error: "Assume project based on working folder" '
                'must be off (Tools -> Options -> Command Line Options)'
            )

    def close(self) -> None:
        if self._database is not None:
            try:
                self._database.Close()
            except Exception as e:
                self.logger.debug(f'Closing VSS database failed: {e}')
            self._database = None

    def get_item(self, spec: str) -> Optional[Any]:
        """Look up a file or project; None if it cannot be handled."""
        try:
            return self.database.VSSItem(spec, False)
        except SourceUnavailableError:
            raise
        except Exception as e:
            self.logger.warning(f'Cannot handle the file: {spec}: {e}')
            return None

    def list_files(self, project_root: str) -> List[str]:
        """List every file below a project, unique and sorted."""
        files = sorted(set(self._walk(project_root)))
        self.logger.info(f'Made file list: {len(files)} files')
        return files

    def _walk(self, project: str) -> List[str]:
        root = self.get_item(project)
        if root is None:
            if project == self.project:
                raise SourceItemNotFoundError(
                    f'Project not found: {project}', path=project
                )
            return []

        files = []
        for item in root.Items(False):
            if item.Type == VSSITEM_PROJECT:
                files.extend(self._walk(f'{project}{item.Name}/'))
            else:
                files.append(item.Spec)
        return files

    def get_events_for_file(self, path: str) -> List[RawVersionRecord]:
        """Return one record per version of a file."""
        item = self.get_item(path)
        if item is None:
            return []

        latest = item.VersionNumber
        records = []
        for version in item.Versions:
            self.logger.debug(
                f'{path} v{version.VersionNumber}: {version.Action} '
                f'by {version.Username} at {version.Date}'
            )
            records.append(
                RawVersionRecord(
                    file_path=path,
                    version_number=version.VersionNumber,
                    action_text=str(version.Action or ''),
                    author=str(version.Username or '').lower(),
                    timestamp=_to_datetime(version.Date),
                    message=clean_comment(version.Comment),
                    tag=_chomp(str(version.Label or '')),
                    is_latest_version=(version.VersionNumber == latest),
                )
            )
        return records

    def local_path(self, spec: str, working_dir: Path) -> Path:
        """Map a source path below the project to the working directory."""
        relative = spec[len(self.project) :] if spec.startswith(self.project) else ''
        relative = relative.strip('/')
        return working_dir.joinpath(*relative.split('/')) if relative else working_dir

    def fetch_content(
        self, path: str, version: Optional[int], working_dir: Path
    ) -> bool:
        """Get a file or project into the working directory.

        ``version=None`` requests the latest version. Asking for the
        latest version by its number does not behave the same in
        SourceSafe, so the two are kept apart.
        """
        item = self.get_item(path)
        if item is None:
            return False

        try:
            if version is not None:
                item = item.Version(version)
                if item is None:
                    self.logger.warning(f'Cannot get file: {path}: v{version}')
                    return False

            local = self.local_path(path, Path(working_dir))
            if item.Type == VSSITEM_PROJECT:
                local.mkdir(parents=True, exist_ok=True)
                time.sleep(PROJECT_GET_DELAY)
            else:
                local.parent.mkdir(parents=True, exist_ok=True)

            self.logger.debug(f'Get {path} v{version or "latest"} -> {local}')
            item.Get(str(local), GET_FLAGS)
            return True

        except Exception as e:
            self.logger.warning(f'Cannot get file: {path}: v{version}: {e}')
            return False
