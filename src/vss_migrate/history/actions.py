"""Translation of SourceSafe action descriptions.

SourceSafe reports each history entry as free text such as
``"Checked in $/project/file.c"`` or ``"Labeled v1.2"``. The tables below
classify that text into a :class:`SourceAction` and then into the
:class:`TargetAction` replayed on the target repository. Both tables are
ordered and evaluated first-match-wins; ``archived versions of`` must be
tried before ``archived``.
"""

import re
from typing import Dict, Optional, Pattern, Tuple

from ..models.event import SourceAction, TargetAction

SOURCE_ACTION_PATTERNS: Tuple[Tuple[Pattern, SourceAction], ...] = (
    (re.compile(r'added'), SourceAction.ADDED),
    (re.compile(r'archived versions of'), SourceAction.ARCHIVED_VERSIONS_OF),
    (re.compile(r'archived'), SourceAction.ARCHIVED),
    (re.compile(r'branched at version'), SourceAction.BRANCHED_AT_VERSION),
    (re.compile(r'checked in'), SourceAction.CHECKED_IN),
    (re.compile(r'created'), SourceAction.CREATED),
    (re.compile(r'deleted'), SourceAction.DELETED),
    (re.compile(r'destroyed'), SourceAction.DESTROYED),
    (re.compile(r'labeled'), SourceAction.LABELED),
    (re.compile(r'moved from'), SourceAction.MOVED_FROM),
    (re.compile(r'moved to'), SourceAction.MOVED_TO),
    (re.compile(r'pinned to version'), SourceAction.PINNED_TO_VERSION),
    (re.compile(r'purged'), SourceAction.PURGED),
    (re.compile(r'recovered'), SourceAction.RECOVERED),
    (re.compile(r'renamed to'), SourceAction.RENAMED_TO),
    (re.compile(r'restored'), SourceAction.RESTORED),
    (re.compile(r'rollback to version'), SourceAction.ROLLBACK_TO_VERSION),
    (re.compile(r'shared'), SourceAction.SHARED),
    (re.compile(r'unpinned'), SourceAction.UNPINNED),
    (re.compile(r'.*', re.DOTALL), SourceAction.OTHER),
)

# None: no meaning on the target, the event is dropped before grouping
TARGET_ACTIONS: Dict[SourceAction, Optional[TargetAction]] = {
    SourceAction.ADDED: None,
    SourceAction.ARCHIVED_VERSIONS_OF: TargetAction.ADD,
    SourceAction.ARCHIVED: None,
    SourceAction.BRANCHED_AT_VERSION: None,
    SourceAction.CHECKED_IN: TargetAction.ADD,
    SourceAction.CREATED: TargetAction.ADD,
    SourceAction.DELETED: None,
    SourceAction.DESTROYED: None,
    SourceAction.LABELED: TargetAction.TAG,
    SourceAction.MOVED_FROM: None,
    SourceAction.MOVED_TO: None,
    SourceAction.PINNED_TO_VERSION: None,
    SourceAction.PURGED: None,
    SourceAction.RECOVERED: None,
    SourceAction.RENAMED_TO: None,
    SourceAction.RESTORED: None,
    SourceAction.ROLLBACK_TO_VERSION: None,
    SourceAction.SHARED: None,
    SourceAction.UNPINNED: None,
    SourceAction.OTHER: TargetAction.UNMAPPED,
}


def map_source_action(action_text: str) -> SourceAction:
    """Classify a raw SourceSafe action description.

    Text that matches none of the known actions falls into
    ``SourceAction.OTHER``.
    """
    text = action_text.lower()
    for pattern, action in SOURCE_ACTION_PATTERNS:
        if pattern.search(text):
            return action
    return SourceAction.OTHER


def map_to_target_action(action: SourceAction) -> Optional[TargetAction]:
    """Translate a source action into the target action vocabulary.

    Returns ``None`` for actions with no target meaning and
    ``TargetAction.UNMAPPED`` for ``SourceAction.OTHER``.
    """
    return TARGET_ACTIONS[action]
