"""Per-run migration state."""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field

from ..history.changeset import CHANGESET_WINDOW, QUIET_WINDOW
from ..models.branch import BranchTopology
from ..models.user import UserIdentity, UserMap


class RunMode(str, Enum):
    """What a run does with the reconstructed history."""

    ANALYZE = 'analyze'
    FULL = 'full'
    CONTINUOUS = 'continuous'


class MigrationContext(BaseModel):
    """Settings and state threaded through one run.

    A context is created per run and discarded afterwards; nothing in it
    is persisted.
    """

    mode: RunMode = Field(..., description='Run mode')
    project_root: str = Field(default='$/', description='Source project path')
    topology: BranchTopology = Field(
        default_factory=lambda: BranchTopology.from_model(0),
        description='Branch names for commits and tags',
    )

    # History reconstruction
    time_shift: int = Field(default=0, description='Hours added to timestamps')
    changeset_window: int = Field(
        default=CHANGESET_WINDOW, description='Window for commented edits'
    )
    quiet_window: int = Field(
        default=QUIET_WINDOW, description='Window for uncommented edits'
    )

    # Authors
    base_users: Dict[str, UserIdentity] = Field(
        default_factory=dict, description='Entries loaded from the user map file'
    )
    email_domain: Optional[str] = Field(
        default=None, description='Domain for synthesized e-mails'
    )
    user_map: Optional[UserMap] = Field(
        default=None, description='Completed user map, set during the run'
    )

    verify: bool = Field(
        default=False, description='Check repository integrity after writing'
    )

    # Continuous migration
    cursor: Optional[datetime] = Field(
        default=None, description='Latest commit time on the target'
    )

    class Config:
        """Pydantic configuration."""

        arbitrary_types_allowed = True
