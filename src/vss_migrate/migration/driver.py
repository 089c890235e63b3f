"""Migration driver: replays reconstructed changesets through a backend."""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, Union

from loguru import logger

from .. import __version__
from ..exceptions import EmptyHistoryError, PreconditionError
from ..history.analysis import count_actions, distinct_authors, unrecognized_actions
from ..history.changeset import ChangesetBuilder
from ..history.collector import collect_history
from ..history.normalizer import HistoryNormalizer
from ..models.branch import MASTER_BRANCH
from ..models.changeset import Changeset
from ..models.event import RawVersionRecord, TargetAction, VersionEvent
from ..models.user import UserMap
from ..source.exceptions import SourceHistoryError
from ..source.provider import SourceHistoryProvider
from ..vcs.base import VCSBackend
from ..vcs.exceptions import VCSBackendError
from .context import MigrationContext, RunMode
from .results import (
    AnalysisReport,
    ChangesetResult,
    ChangesetStatus,
    MigrationSummary,
)

INITIAL_COMMIT_MESSAGE = f'vss-migrate: Version {__version__}'
SYNC_COMMIT_MESSAGE = 'vss-migrate: sync with latest SourceSafe snapshot'

ProgressCallback = Callable[[int, int, str], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_portable_tag(tag: str) -> bool:
    """Tags must be non-empty ASCII to be accepted by every backend."""
    return bool(tag) and tag.isascii()


class MigrationDriver:
    """Runs one analysis, full migration or continuous migration.

    The driver owns the backend working area for the whole run. Setup
    steps (repository creation, branch layout, reading the cursor) are
    fatal when they fail; failures while replaying a changeset are logged
    and counted, and the run moves on to the next changeset.
    """

    def __init__(
        self,
        provider: SourceHistoryProvider,
        backend: VCSBackend,
        context: MigrationContext,
        clock: Callable[[], datetime] = utc_now,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """Initialize migration driver.

        Args:
            provider: Source history provider
            backend: Target VCS backend
            context: Run settings and state
            clock: Returns the current time (aware)
            on_progress: Optional ``(current, total, description)`` callback
        """
        self.provider = provider
        self.backend = backend
        self.context = context
        self.clock = clock
        self.on_progress = on_progress
        self.logger = logger.bind(component='MigrationDriver')

    @property
    def topology(self):
        return self.context.topology

    def run(self) -> Union[AnalysisReport, MigrationSummary]:
        """Execute the configured run mode.

        Raises:
            PreconditionError: If the working directory does not suit the mode
            EmptyHistoryError: If the project has no history
            UnknownAuthorError: If the user map is inconsistent
            UnrecognizedActionError: If the history has unknown actions
        """
        mode = self.context.mode
        self.logger.info(f'Starting run in {mode.value} mode')

        self.check_preconditions()

        records = collect_history(
            self.provider, self.context.project_root, self.on_progress
        )
        if not records:
            raise EmptyHistoryError(
                f'No history found below {self.context.project_root}'
            )

        report, changesets = self.reconstruct(records)

        if mode == RunMode.ANALYZE:
            return report
        if mode == RunMode.FULL:
            return self.full_migration(changesets)
        return self.continuous_migration(changesets)

    def check_preconditions(self) -> None:
        """Validate the working directory for the run mode.

        Raises:
            PreconditionError: If a full migration targets a non-empty
                directory, or a continuous migration finds no repository
        """
        mode = self.context.mode
        backend = self.backend

        if mode == RunMode.FULL:
            if backend.has_metadata():
                raise PreconditionError(
                    f'{backend.name} repository already exists in {backend.root}'
                )
            if not backend.is_workspace_empty():
                raise PreconditionError(
                    f'Working directory must be empty: {backend.root}'
                )
        elif mode == RunMode.CONTINUOUS:
            if not backend.has_metadata():
                raise PreconditionError(
                    f'No local {backend.name} repository in {backend.root}'
                )

    def reconstruct(
        self, records: List[RawVersionRecord]
    ) -> Tuple[AnalysisReport, List[Changeset]]:
        """Analyze raw records and rebuild the changeset stream."""
        authors = distinct_authors(records)
        user_map = UserMap.build(
            authors, self.context.base_users, self.context.email_domain
        )
        self.context.user_map = user_map

        anomalies = unrecognized_actions(records)
        report = AnalysisReport(
            project_root=self.context.project_root,
            file_count=len({record.file_path for record in records}),
            record_count=len(records),
            action_counts={
                action.value: count for action, count in count_actions(records).items()
            },
            authors=authors,
            user_map=user_map.to_json_dict(),
            anomalies=[
                f'{record.file_path}@{record.version_number}: {record.action_text}'
                for record in anomalies
            ],
        )
        self.logger.info(
            f'History: {report.record_count} records in {report.file_count} files '
            f'by {len(authors)} authors'
        )
        for anomaly in report.anomalies:
            self.logger.error(f'Unrecognized source action: {anomaly}')

        # Analysis still reports the statistics; migrations stop in the normalizer
        if report.anomalies and self.context.mode == RunMode.ANALYZE:
            return report, []

        normalizer = HistoryNormalizer(user_map, self.context.time_shift)
        events = normalizer.normalize(records)

        builder = ChangesetBuilder(
            self.context.changeset_window,
            self.context.quiet_window,
            on_progress=self.on_progress,
        )
        changesets = builder.build(events)

        report.event_count = len(events)
        report.changeset_count = len(changesets)
        return report, changesets

    def full_migration(self, changesets: List[Changeset]) -> MigrationSummary:
        """Create the repository and replay every changeset."""
        summary = self._new_summary(changesets)
        develop = self.topology.develop_branch

        self.backend.create_repository(INITIAL_COMMIT_MESSAGE)
        secondary = self.topology.secondary_branch
        if secondary:
            self.backend.create_branch(secondary, MASTER_BRANCH)
        self.backend.switch_branch(develop)

        for index, changeset in enumerate(changesets, start=1):
            self.replay_changeset(index, changeset, summary)

        self.commit_latest_snapshot(summary)
        self._pack(summary)
        self._verify(summary)
        return self._finish(summary)

    def continuous_migration(self, changesets: List[Changeset]) -> MigrationSummary:
        """Replay changesets newer than the latest target commit.

        The run stops without error when the source changed within the
        grouping window, since that check-in may still be in progress.
        """
        summary = self._new_summary(changesets)

        self.backend.switch_branch(self.topology.develop_branch)
        cursor = self.backend.latest_commit_info().timestamp
        self.context.cursor = cursor
        summary.cursor = cursor
        self.logger.info(f'Latest commit on target: {cursor}')

        latest = self._latest_event_time(changesets)
        if latest is not None:
            age = (self.clock() - latest).total_seconds()
            if age <= self.context.changeset_window:
                summary.aborted = True
                summary.abort_reason = (
                    f'Source updated within {self.context.changeset_window} seconds'
                )
                summary.skipped = len(changesets)
                self.logger.info(f'Skipping update: {summary.abort_reason}')
                return self._finish(summary)

        for index, changeset in enumerate(changesets, start=1):
            if changeset.timestamp <= cursor or self._is_tagged(changeset):
                summary.skipped += 1
                continue
            self.replay_changeset(index, changeset, summary)

        if summary.replayed:
            self._pack(summary)
            self._verify(summary)
        else:
            self.logger.info('Target is up to date')
        return self._finish(summary)

    def replay_changeset(
        self, index: int, changeset: Changeset, summary: MigrationSummary
    ) -> ChangesetResult:
        """Materialize a changeset's files and apply its terminal action."""
        total = summary.total_changesets
        result = ChangesetResult(
            index=index,
            timestamp=changeset.timestamp,
            author=changeset.author,
            action=changeset.action,
            event_count=len(changeset),
        )
        self.logger.info(
            f'No. {index} / {total} ({changeset.timestamp} / {changeset.author})'
        )

        for event in changeset.events:
            if event.action != TargetAction.ADD:
                continue
            if self._fetch(event):
                result.files_fetched += 1
            else:
                result.files_failed += 1
                result.warnings.append(f'Cannot get file: {event}')

        last = changeset.last
        try:
            if last.action == TargetAction.ADD:
                self.backend.stage_all()
                if self.backend.has_changes():
                    self.backend.commit(last.author, last.timestamp, last.message)
                    summary.commits += 1
                    self.logger.debug(
                        f'Changeset {index} / {total}: '
                        f'committed {result.files_fetched} files'
                    )
                else:
                    result.warnings.append('Nothing to commit')
                    self.logger.info(f'Changeset {index} / {total}: nothing to commit')
            elif last.action == TargetAction.TAG:
                self._apply_tag(last, result, summary)
        except VCSBackendError as e:
            result.status = ChangesetStatus.FAILED
            result.errors.append(str(e))
            self.logger.error(f'Changeset {index} / {total} failed: {e}')

        if self.on_progress:
            self.on_progress(index, total, 'Replaying changesets')

        summary.record(result)
        return result

    def commit_latest_snapshot(self, summary: MigrationSummary) -> None:
        """Replace the working area with the latest source snapshot and commit it."""
        self.logger.info('Committing latest files')
        try:
            self.backend.switch_branch(self.topology.develop_branch)
            self.backend.clean_working_area()
            try:
                fetched = self.provider.fetch_content(
                    self.context.project_root, None, self.backend.working_area
                )
            except SourceHistoryError as e:
                self.logger.warning(f'Cannot get {self.context.project_root}: {e}')
                fetched = False
            if not fetched:
                summary.errors.append(
                    f'Cannot get latest files of {self.context.project_root}'
                )
                self.logger.warning(summary.errors[-1])
            self.backend.stage_all()
            if self.backend.has_changes():
                self.backend.commit('', None, SYNC_COMMIT_MESSAGE)
                summary.commits += 1
            else:
                self.logger.info('Latest files match the replayed history')
        except (VCSBackendError, OSError) as e:
            summary.errors.append(f'Latest snapshot commit failed: {e}')
            self.logger.error(summary.errors[-1])

    def _fetch(self, event: VersionEvent) -> bool:
        # The latest version must be requested without a version number
        version = None if event.is_latest_version else event.version_number
        try:
            return self.provider.fetch_content(
                event.file_path, version, self.backend.working_area
            )
        except SourceHistoryError as e:
            self.logger.warning(f'Cannot get file: {event}: {e}')
            return False

    def _apply_tag(
        self, event: VersionEvent, result: ChangesetResult, summary: MigrationSummary
    ) -> None:
        tag = event.tag
        if not is_portable_tag(tag):
            message = f'Illegal tag: {tag!r}'
            result.warnings.append(message)
            result.status = ChangesetStatus.SKIPPED
            summary.tags_skipped += 1
            self.logger.warning(message)
            return

        if not self.topology.has_production_branch:
            self.backend.tag(tag, event.author, event.timestamp)
        else:
            production = self.topology.production_branch
            develop = self.topology.develop_branch
            self.backend.switch_branch(production)
            try:
                try:
                    self.backend.merge(
                        develop,
                        event.author,
                        event.timestamp,
                        f'Merge {develop} into {production} for {tag}',
                    )
                except VCSBackendError as e:
                    result.warnings.append(f'Merge before tag {tag} failed: {e}')
                    self.logger.warning(result.warnings[-1])
                self.backend.tag(tag, event.author, event.timestamp)
            finally:
                self.backend.switch_branch(develop)

        result.tag = tag
        summary.tags_applied += 1
        self.logger.info(f'Tag: {tag}')

    def _pack(self, summary: MigrationSummary) -> None:
        self.logger.info('Pack repository')
        try:
            self.backend.pack()
        except VCSBackendError as e:
            summary.errors.append(f'Pack failed: {e}')
            self.logger.warning(summary.errors[-1])

    def _verify(self, summary: MigrationSummary) -> None:
        if not self.context.verify:
            return
        self.logger.info('Verify repository')
        try:
            self.backend.verify()
        except VCSBackendError as e:
            summary.errors.append(f'Verify failed: {e}')
            self.logger.error(summary.errors[-1])

    def _is_tagged(self, changeset: Changeset) -> bool:
        """Whether a tag changeset was applied by an earlier run.

        Tags add no commit on the develop branch, so the cursor alone
        cannot tell whether they were replayed.
        """
        if changeset.action != TargetAction.TAG:
            return False
        tag = changeset.last.tag
        return is_portable_tag(tag) and self.backend.has_tag(tag)

    @staticmethod
    def _latest_event_time(changesets: List[Changeset]) -> Optional[datetime]:
        times = [event.timestamp for cs in changesets for event in cs.events]
        return max(times) if times else None

    def _new_summary(self, changesets: List[Changeset]) -> MigrationSummary:
        return MigrationSummary(
            mode=self.context.mode,
            started_at=self.clock(),
            total_changesets=len(changesets),
        )

    def _finish(self, summary: MigrationSummary) -> MigrationSummary:
        summary.completed_at = self.clock()
        self.logger.info(
            f'Run finished: {summary.replayed} replayed, {summary.skipped} skipped, '
            f'{summary.failed} failed, {summary.files_failed} files not fetched'
        )
        return summary
