"""Collection of raw history from a source provider."""

from typing import Callable, List, Optional

from loguru import logger

from ..models.event import RawVersionRecord
from ..source.provider import SourceHistoryProvider


def collect_history(
    provider: SourceHistoryProvider,
    project_root: str,
    on_progress: Optional[Callable[[int, int, str], None]] = None,
) -> List[RawVersionRecord]:
    """Gather every version record below a project root.

    Files are visited in the order the provider lists them; records of a
    file keep the provider's order.

    Args:
        provider: Source history provider
        project_root: Project path, e.g. ``$/project/``
        on_progress: Optional ``(current, total, description)`` callback

    Returns:
        Flat list of raw version records
    """
    log = logger.bind(component='HistoryCollector')

    files = provider.list_files(project_root)
    log.info(f'Found {len(files)} files under {project_root}')

    records: List[RawVersionRecord] = []
    for index, path in enumerate(files, start=1):
        records.extend(provider.get_events_for_file(path))
        if on_progress:
            on_progress(index, len(files), 'Reading history')

    log.info(f'Collected {len(records)} history records')
    return records
