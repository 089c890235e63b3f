"""Version event models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, validator


class SourceAction(str, Enum):
    """Normalized classification of a SourceSafe history entry."""

    ADDED = 'Added'
    ARCHIVED_VERSIONS_OF = 'ArchivedVersionsOf'
    ARCHIVED = 'Archived'
    BRANCHED_AT_VERSION = 'BranchedAtVersion'
    CHECKED_IN = 'CheckedIn'
    CREATED = 'Created'
    DELETED = 'Deleted'
    DESTROYED = 'Destroyed'
    LABELED = 'Labeled'
    MOVED_FROM = 'MovedFrom'
    MOVED_TO = 'MovedTo'
    PINNED_TO_VERSION = 'PinnedToVersion'
    PURGED = 'Purged'
    RECOVERED = 'Recovered'
    RENAMED_TO = 'RenamedTo'
    RESTORED = 'Restored'
    ROLLBACK_TO_VERSION = 'RollbackToVersion'
    SHARED = 'Shared'
    UNPINNED = 'Unpinned'
    OTHER = 'Other'


class TargetAction(str, Enum):
    """Operation a history entry turns into on the target repository."""

    ADD = 'ADD'
    TAG = 'TAG'
    UNMAPPED = 'UNMAPPED'


class RawVersionRecord(BaseModel):
    """One history entry as reported by the source provider."""

    file_path: str = Field(..., description='Source repository path')
    version_number: int = Field(..., description='Version number within the file')
    action_text: str = Field(..., description='Raw action description')
    author: str = Field(..., description='Source user name')
    timestamp: datetime = Field(..., description='Time of the change')
    message: str = Field(default='', description='Check-in comment')
    tag: str = Field(default='', description='Label text')
    is_latest_version: bool = Field(
        default=False, description='Newest version of its file'
    )

    class Config:
        """Pydantic configuration."""

        frozen = True

    @validator('version_number')
    def validate_version_number(cls, v):
        """Version numbers start at 1."""
        if v < 1:
            raise ValueError('Version number must be positive')
        return v


class VersionEvent(BaseModel):
    """One historical change to one file, after normalization."""

    file_path: str = Field(..., description='Source repository path')
    version_number: int = Field(..., description='Version number within the file')
    author: str = Field(..., description='Target identity, "name <email>"')
    timestamp: datetime = Field(..., description='UTC time, shifted')
    message: str = Field(default='', description='Commit message')
    tag: str = Field(default='', description='Tag name for TAG events')
    is_latest_version: bool = Field(
        default=False, description='Newest version of its file'
    )
    action: TargetAction = Field(..., description='Target action')
    source_action: Optional[SourceAction] = Field(
        default=None, description='Source action the target action came from'
    )

    class Config:
        """Pydantic configuration."""

        frozen = True

    @property
    def sort_key(self):
        """Composite key that orders the global timeline."""
        return (self.timestamp, self.author, self.message, self.file_path)

    def __str__(self) -> str:
        return f'{self.file_path}@{self.version_number}'
