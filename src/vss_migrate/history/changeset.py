"""Grouping of normalized events into changesets.

SourceSafe records every file separately, so a multi-file check-in shows
up as several events a few seconds apart. Events are sorted by
``(timestamp, author, message, file_path)`` and scanned once; an event
joins the open changeset when it has the same author and message as the
previous event and follows it within the grouping window. The window is
measured from the most recent member, so long runs of edits chain.

Labels are point-in-time markers: each distinct tag value opens its own
changeset once, repeats of a value already seen are dropped.
"""

from datetime import datetime
from typing import Callable, List, Optional, Sequence, Set

from loguru import logger

from ..models.changeset import Changeset
from ..models.event import TargetAction, VersionEvent

# Seconds between two events of the same author and non-empty message
CHANGESET_WINDOW = 600
# Seconds between two events of the same author and empty message
QUIET_WINDOW = 120


class ChangesetBuilder:
    """Clusters a normalized event list into ordered changesets."""

    def __init__(
        self,
        changeset_window: int = CHANGESET_WINDOW,
        quiet_window: int = QUIET_WINDOW,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
    ):
        self.changeset_window = changeset_window
        self.quiet_window = quiet_window
        self.on_progress = on_progress
        self.logger = logger.bind(component='ChangesetBuilder')

    def window_for(self, message: str) -> int:
        """Grouping window in seconds for a shared message."""
        return self.changeset_window if message else self.quiet_window

    def build(self, events: Sequence[VersionEvent]) -> List[Changeset]:
        """Sort and cluster events.

        An empty input yields an empty list; callers treat that as "no
        history matched".
        """
        if not events:
            return []

        ordered = sorted(events, key=lambda event: event.sort_key)

        changesets: List[Changeset] = []
        seen_tags: Set[str] = set()

        first = ordered[0]
        current = [first]
        if first.action == TargetAction.TAG:
            seen_tags.add(first.tag)

        last_author = first.author
        last_message = first.message
        last_time: datetime = first.timestamp

        for index, event in enumerate(ordered[1:], start=2):
            if self.on_progress:
                self.on_progress(index, len(ordered), 'Building changesets')

            if event.action == TargetAction.TAG:
                if event.tag in seen_tags:
                    continue
                seen_tags.add(event.tag)
                same_changeset = False
            elif event.author == last_author and event.message == last_message:
                elapsed = (event.timestamp - last_time).total_seconds()
                same_changeset = elapsed <= self.window_for(event.message)
            else:
                same_changeset = False

            if same_changeset:
                current.append(event)
            else:
                changesets.append(Changeset(events=tuple(current)))
                current = [event]
                last_author = event.author
                last_message = event.message
            last_time = event.timestamp

        changesets.append(Changeset(events=tuple(current)))

        self.logger.info(
            f'Built {len(changesets)} changesets from {len(ordered)} events'
        )
        return changesets


def build_changesets(
    events: Sequence[VersionEvent],
    changeset_window: int = CHANGESET_WINDOW,
    quiet_window: int = QUIET_WINDOW,
) -> List[Changeset]:
    """Group events into changesets with the given windows."""
    return ChangesetBuilder(changeset_window, quiet_window).build(events)
