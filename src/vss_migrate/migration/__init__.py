"""Migration orchestration."""

from .context import MigrationContext, RunMode
from .driver import MigrationDriver, is_portable_tag
from .engine import MigrationEngine
from .results import (
    AnalysisReport,
    ChangesetResult,
    ChangesetStatus,
    MigrationSummary,
)

__all__ = [
    'MigrationContext',
    'RunMode',
    'MigrationDriver',
    'is_portable_tag',
    'MigrationEngine',
    'AnalysisReport',
    'ChangesetResult',
    'ChangesetStatus',
    'MigrationSummary',
]
