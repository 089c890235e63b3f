"""Run results and reports."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.event import TargetAction
from .context import RunMode


class ChangesetStatus(str, Enum):
    """Outcome of replaying one changeset."""

    COMPLETED = 'completed'
    FAILED = 'failed'
    SKIPPED = 'skipped'


class ChangesetResult(BaseModel):
    """Result of replaying one changeset."""

    index: int = Field(..., description='1-based position in the changeset list')
    timestamp: datetime = Field(..., description='Anchor event time')
    author: str = Field(..., description='Anchor event author')
    action: TargetAction = Field(..., description='Terminal action')
    status: ChangesetStatus = Field(
        default=ChangesetStatus.COMPLETED, description='Replay status'
    )

    event_count: int = Field(default=0, description='Events in the changeset')
    files_fetched: int = Field(default=0, description='Files written')
    files_failed: int = Field(default=0, description='Files that could not be got')
    tag: Optional[str] = Field(default=None, description='Tag applied')

    errors: List[str] = Field(default_factory=list, description='Errors')
    warnings: List[str] = Field(default_factory=list, description='Warnings')


class MigrationSummary(BaseModel):
    """Summary of a migration run."""

    mode: RunMode = Field(..., description='Run mode')
    started_at: datetime = Field(..., description='Run start time')
    completed_at: Optional[datetime] = Field(
        default=None, description='Run completion time'
    )

    total_changesets: int = Field(default=0, description='Changesets reconstructed')
    replayed: int = Field(default=0, description='Changesets replayed')
    skipped: int = Field(default=0, description='Changesets not replayed')
    failed: int = Field(default=0, description='Changesets with backend errors')

    commits: int = Field(default=0, description='Commits created')
    files_fetched: int = Field(default=0, description='Files written')
    files_failed: int = Field(default=0, description='Files that could not be got')
    tags_applied: int = Field(default=0, description='Tags applied')
    tags_skipped: int = Field(default=0, description='Tags with invalid names')

    cursor: Optional[datetime] = Field(
        default=None, description='Latest target commit time before the run'
    )
    aborted: bool = Field(default=False, description='Run stopped early')
    abort_reason: Optional[str] = Field(default=None, description='Why it stopped')

    errors: List[str] = Field(default_factory=list, description='Run-level errors')
    results: List[ChangesetResult] = Field(
        default_factory=list, description='Per-changeset results'
    )

    def record(self, result: ChangesetResult) -> None:
        """Fold one changeset result into the totals."""
        self.results.append(result)
        if result.status == ChangesetStatus.SKIPPED:
            self.skipped += 1
        else:
            self.replayed += 1
        self.files_fetched += result.files_fetched
        self.files_failed += result.files_failed
        if result.status == ChangesetStatus.FAILED:
            self.failed += 1


class AnalysisReport(BaseModel):
    """Statistics about the source history."""

    project_root: str = Field(..., description='Source project path')
    file_count: int = Field(default=0, description='Files below the project')
    record_count: int = Field(default=0, description='Raw history records')
    event_count: int = Field(default=0, description='Events after normalization')
    changeset_count: int = Field(default=0, description='Changesets reconstructed')

    action_counts: Dict[str, int] = Field(
        default_factory=dict, description='Records per source action'
    )
    authors: List[str] = Field(
        default_factory=list, description='Source authors, first-seen order'
    )
    user_map: Dict[str, List[str]] = Field(
        default_factory=dict, description='Effective user map'
    )
    anomalies: List[str] = Field(
        default_factory=list, description='Records with unrecognized actions'
    )
