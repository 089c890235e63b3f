"""Statistics over raw history."""

from typing import Dict, Iterable, List

from ..models.event import RawVersionRecord, SourceAction
from .actions import map_source_action


def count_actions(records: Iterable[RawVersionRecord]) -> Dict[SourceAction, int]:
    """Count records per source action; every action is listed."""
    counts = {action: 0 for action in SourceAction}
    for record in records:
        counts[map_source_action(record.action_text)] += 1
    return counts


def distinct_authors(records: Iterable[RawVersionRecord]) -> List[str]:
    """Source authors in first-seen order."""
    authors: Dict[str, None] = {}
    for record in records:
        authors.setdefault(record.author, None)
    return list(authors)


def unrecognized_actions(records: Iterable[RawVersionRecord]) -> List[RawVersionRecord]:
    """Records whose action text matched no known action."""
    return [
        record
        for record in records
        if map_source_action(record.action_text) == SourceAction.OTHER
    ]
