"""Configuration package."""

from .config import (
    Config,
    SourceConfig,
    TargetConfig,
    MigrationConfig,
    LoggingConfig,
    SUPPORTED_VCS,
)

__all__ = [
    'Config',
    'SourceConfig',
    'TargetConfig',
    'MigrationConfig',
    'LoggingConfig',
    'SUPPORTED_VCS',
]
