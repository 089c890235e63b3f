"""Configuration management for VSS Migration Tool."""

from typing import Optional, Dict, Any
from pathlib import Path
import os

from pydantic import BaseModel, Field, validator
import yaml
from dotenv import load_dotenv

SUPPORTED_VCS = ('git', 'hg', 'bzr')


class SourceConfig(BaseModel):
    """Configuration for the Visual SourceSafe database."""

    database_dir: str = Field(..., description='Folder that contains srcsafe.ini')
    user: str = Field(..., description='VSS user name')
    password: str = Field(default='', description='VSS password')
    project: str = Field(default='$/', description='VSS project path, e.g. $/project/')

    @validator('project')
    def validate_project(cls, v):
        """Normalize the project path to `$/.../`."""
        if v == '':
            return '$/'
        if not v.startswith('$/') or '\\' in v:
            raise ValueError(f'Invalid VSS project path: {v}')
        if not v.endswith('/'):
            v += '/'
        return v

    @property
    def ini_path(self) -> Path:
        """Path of the database's srcsafe.ini."""
        return Path(self.database_dir) / 'srcsafe.ini'


class TargetConfig(BaseModel):
    """Target repository configuration."""

    vcs: str = Field(default='git', description='Target VCS: git, hg or bzr')
    working_dir: str = Field(
        default='.', description='Root of the target working directory'
    )
    branch_model: int = Field(
        default=0,
        description='0: single branch, 1: master=production + develop, '
        '2: master=develop + product',
    )
    email_domain: Optional[str] = Field(
        default=None, description='Domain used to synthesize author e-mails'
    )
    user_map: Optional[str] = Field(
        default=None, description='User map file (JSON or YAML)'
    )
    committer_name: str = Field(
        default='VSS Migration Tool', description='Identity for unattributed commits'
    )
    committer_email: str = Field(
        default='migration@vss.local', description='E-mail for unattributed commits'
    )
    timeout: Optional[int] = Field(
        default=None, description='Per-command timeout in seconds'
    )

    @validator('vcs')
    def validate_vcs(cls, v):
        """Validate the target VCS name."""
        v = v.lower()
        if v not in SUPPORTED_VCS:
            raise ValueError(f'VCS must be one of: {list(SUPPORTED_VCS)}')
        return v

    @validator('branch_model')
    def validate_branch_model(cls, v):
        """Validate the branching model index."""
        if not 0 <= v <= 2:
            raise ValueError('Branch model must be 0, 1 or 2')
        return v

    @validator('user_map')
    def validate_user_map(cls, v):
        """Validate the user map file exists."""
        if v is not None and not Path(v).is_file():
            raise ValueError(f'User map file does not exist: {v}')
        return v

    @validator('timeout')
    def validate_timeout(cls, v):
        """Validate timeout is positive."""
        if v is not None and v <= 0:
            raise ValueError('Timeout must be positive')
        return v


class MigrationConfig(BaseModel):
    """History reconstruction settings."""

    time_shift: int = Field(
        default=0, description='Hours added to every source timestamp'
    )
    changeset_window: int = Field(
        default=600,
        description='Seconds between commented edits grouped into one changeset',
    )
    quiet_window: int = Field(
        default=120,
        description='Seconds between uncommented edits grouped into one changeset',
    )
    verify: bool = Field(
        default=False, description='Check repository integrity after writing'
    )

    @validator('time_shift')
    def validate_time_shift(cls, v):
        """Validate time shift range."""
        if not -12 <= v <= 12:
            raise ValueError('Time shift must be between -12 and 12 hours')
        return v

    @validator('changeset_window', 'quiet_window')
    def validate_windows(cls, v):
        """Validate grouping windows are positive."""
        if v <= 0:
            raise ValueError('Grouping windows must be positive')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Console log format')

    @validator('level')
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for VSS Migration Tool."""

    source: SourceConfig = Field(..., description='Source VSS database')
    target: TargetConfig = Field(
        default_factory=TargetConfig, description='Target repository'
    )
    migration: MigrationConfig = Field(
        default_factory=MigrationConfig, description='Migration settings'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    class Config:
        """Pydantic configuration."""

        extra = 'forbid'

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            raise ValueError(f'Configuration file is not a mapping: {config_path}')

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        load_dotenv()

        config_data = {
            'source': {
                'database_dir': os.getenv('VSS_DATABASE_DIR'),
                'user': os.getenv('VSS_USER'),
                'password': os.getenv('VSS_PASSWORD'),
                'project': os.getenv('VSS_PROJECT'),
            },
            'target': {
                'vcs': os.getenv('TARGET_VCS'),
                'working_dir': os.getenv('TARGET_WORKING_DIR'),
                'branch_model': os.getenv('TARGET_BRANCH_MODEL'),
                'email_domain': os.getenv('TARGET_EMAIL_DOMAIN'),
                'user_map': os.getenv('TARGET_USER_MAP'),
                'timeout': os.getenv('TARGET_TIMEOUT'),
            },
            'migration': {
                'time_shift': os.getenv('MIGRATION_TIME_SHIFT'),
                'verify': os.getenv('MIGRATION_VERIFY'),
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        config_data = cls._remove_none_values(config_data)

        return cls(**config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                self.dict(), f, default_flow_style=False, indent=2, sort_keys=False
            )

    @staticmethod
    def create_template(output_path: str) -> None:
        """Create a configuration template file."""
        template_config = {
            'source': {
                'database_dir': 'C:\\VSS\\database',
                'user': 'admin',
                'password': '',
                'project': '$/',
            },
            'target': {
                'vcs': 'git',
                'working_dir': '.',
                'branch_model': 0,
                'email_domain': 'example.com',
                'user_map': None,
                'committer_name': 'VSS Migration Tool',
                'committer_email': 'migration@vss.local',
            },
            'migration': {
                'time_shift': 0,
                'changeset_window': 600,
                'quiet_window': 120,
                'verify': False,
            },
            'logging': {
                'level': 'INFO',
                'file': 'migration.log',
            },
        }

        config_file = Path(output_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                template_config, f, default_flow_style=False, indent=2, sort_keys=False
            )
