"""Changeset model."""

from datetime import datetime
from typing import Tuple

from pydantic import BaseModel, Field, validator

from .event import TargetAction, VersionEvent


class Changeset(BaseModel):
    """Ordered group of version events replayed as one commit or tag."""

    events: Tuple[VersionEvent, ...] = Field(..., description='Member events')

    class Config:
        """Pydantic configuration."""

        frozen = True

    @validator('events')
    def validate_events(cls, v):
        """A changeset always has at least one event."""
        if not v:
            raise ValueError('Changeset must contain at least one event')
        return v

    @property
    def anchor(self) -> VersionEvent:
        """First event; carries the changeset's reporting time and author."""
        return self.events[0]

    @property
    def last(self) -> VersionEvent:
        """Last event; decides the changeset's terminal action."""
        return self.events[-1]

    @property
    def timestamp(self) -> datetime:
        return self.anchor.timestamp

    @property
    def author(self) -> str:
        return self.anchor.author

    @property
    def action(self) -> TargetAction:
        return self.last.action

    def __len__(self) -> int:
        return len(self.events)
