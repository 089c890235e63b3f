"""Data models for history reconstruction."""

from .event import SourceAction, TargetAction, RawVersionRecord, VersionEvent
from .changeset import Changeset
from .user import UserIdentity, UserMap
from .branch import BranchModel, BranchTopology

__all__ = [
    'SourceAction',
    'TargetAction',
    'RawVersionRecord',
    'VersionEvent',
    'Changeset',
    'UserIdentity',
    'UserMap',
    'BranchModel',
    'BranchTopology',
]
