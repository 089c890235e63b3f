"""History reconstruction: action mapping, normalization and grouping."""

from .actions import map_source_action, map_to_target_action
from .analysis import count_actions, distinct_authors, unrecognized_actions
from .changeset import (
    ChangesetBuilder,
    build_changesets,
    CHANGESET_WINDOW,
    QUIET_WINDOW,
)
from .collector import collect_history
from .normalizer import HistoryNormalizer, normalize

__all__ = [
    'map_source_action',
    'map_to_target_action',
    'count_actions',
    'distinct_authors',
    'unrecognized_actions',
    'ChangesetBuilder',
    'build_changesets',
    'CHANGESET_WINDOW',
    'QUIET_WINDOW',
    'collect_history',
    'HistoryNormalizer',
    'normalize',
]
