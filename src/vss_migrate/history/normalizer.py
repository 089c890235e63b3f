"""History normalization: author mapping, time shift and action translation."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List

from loguru import logger

from ..exceptions import ConfigurationError, UnrecognizedActionError
from ..models.event import RawVersionRecord, TargetAction, VersionEvent
from ..models.user import UserMap
from .actions import map_source_action, map_to_target_action

MAX_TIME_SHIFT_HOURS = 12


def to_utc(timestamp: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


class HistoryNormalizer:
    """Turns raw provider records into normalized version events.

    Events whose source action has no target meaning are dropped here so
    that the changeset builder only ever sees ADD and TAG events. Order
    is preserved; sorting is the builder's job.
    """

    def __init__(self, user_map: UserMap, time_shift_hours: int = 0):
        if not -MAX_TIME_SHIFT_HOURS <= time_shift_hours <= MAX_TIME_SHIFT_HOURS:
            raise ConfigurationError(
                f'Time shift must be between -{MAX_TIME_SHIFT_HOURS} and '
                f'{MAX_TIME_SHIFT_HOURS} hours: {time_shift_hours}'
            )
        self.user_map = user_map
        self.time_shift = timedelta(hours=time_shift_hours)
        self.logger = logger.bind(component='HistoryNormalizer')

    def normalize(self, records: Iterable[RawVersionRecord]) -> List[VersionEvent]:
        """Normalize raw records.

        Raises:
            UnknownAuthorError: If a record's author is not in the user map
            UnrecognizedActionError: If a record's action is unknown
        """
        events = []
        dropped = 0

        for record in records:
            source_action = map_source_action(record.action_text)
            target_action = map_to_target_action(source_action)

            if target_action is None:
                dropped += 1
                continue
            if target_action == TargetAction.UNMAPPED:
                raise UnrecognizedActionError(record.action_text, record.file_path)

            identity = self.user_map.resolve(record.author)

            events.append(
                VersionEvent(
                    file_path=record.file_path,
                    version_number=record.version_number,
                    author=identity.signature,
                    timestamp=to_utc(record.timestamp) + self.time_shift,
                    message=record.message,
                    tag=record.tag,
                    is_latest_version=record.is_latest_version,
                    action=target_action,
                    source_action=source_action,
                )
            )

        self.logger.debug(
            f'Normalized {len(events)} events, dropped {dropped} without target meaning'
        )
        return events


def normalize(
    records: Iterable[RawVersionRecord], user_map: UserMap, time_shift_hours: int = 0
) -> List[VersionEvent]:
    """Normalize raw records with the given user map and time shift."""
    return HistoryNormalizer(user_map, time_shift_hours).normalize(records)
