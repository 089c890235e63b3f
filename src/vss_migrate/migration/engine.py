"""Migration engine - main entry point for migration operations."""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from loguru import logger

from ..config.config import Config
from ..models.branch import BranchTopology
from ..models.user import UserMap
from ..source.provider import SourceHistoryProvider
from ..source.vss import VSSProvider
from ..vcs import VCSBackend, create_backend
from .context import MigrationContext, RunMode
from .driver import MigrationDriver, ProgressCallback, utc_now
from .results import AnalysisReport, MigrationSummary


class MigrationEngine:
    """Builds providers and backends from configuration and runs the driver."""

    def __init__(
        self,
        config: Config,
        provider: Optional[SourceHistoryProvider] = None,
        backend: Optional[VCSBackend] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize migration engine.

        Args:
            config: Migration configuration
            provider: Source history provider (built from config if not provided)
            backend: Target VCS backend (built from config if not provided)
            clock: Returns the current time (aware)
        """
        self.config = config
        self.clock = clock
        self.logger = logger.bind(component='MigrationEngine')

        self.provider = provider or VSSProvider(config.source)
        self.backend = backend or create_backend(
            config.target.vcs,
            Path(config.target.working_dir),
            committer_name=config.target.committer_name,
            committer_email=config.target.committer_email,
            timeout=config.target.timeout,
        )

    def create_context(self, mode: RunMode) -> MigrationContext:
        """Create the per-run context from configuration.

        Raises:
            ConfigurationError: If the user map file cannot be loaded
        """
        target = self.config.target
        base_users = UserMap.load_entries(target.user_map) if target.user_map else {}

        return MigrationContext(
            mode=mode,
            project_root=self.config.source.project,
            topology=BranchTopology.from_model(target.branch_model),
            time_shift=self.config.migration.time_shift,
            changeset_window=self.config.migration.changeset_window,
            quiet_window=self.config.migration.quiet_window,
            base_users=base_users,
            email_domain=target.email_domain,
            verify=self.config.migration.verify,
        )

    def run(
        self, mode: RunMode, on_progress: Optional[ProgressCallback] = None
    ) -> Union[AnalysisReport, MigrationSummary]:
        """Execute one run.

        Args:
            mode: Run mode
            on_progress: Optional ``(current, total, description)`` callback

        Returns:
            Analysis report for analyze runs, migration summary otherwise
        """
        self.logger.info(
            f'Source: {self.config.source.project} in {self.config.source.database_dir}'
        )
        self.logger.info(
            f'Target: {self.backend.name} in {self.backend.root} '
            f'(branch model {self.config.target.branch_model})'
        )

        try:
            context = self.create_context(mode)
            driver = MigrationDriver(
                self.provider,
                self.backend,
                context,
                clock=self.clock,
                on_progress=on_progress,
            )
            result = driver.run()
            self.logger.info(f'{mode.value.capitalize()} run completed')
            return result

        except Exception as e:
            self.logger.error(f'{mode.value.capitalize()} run failed: {e}')
            raise
        finally:
            self.provider.close()

    def analyze(self, on_progress: Optional[ProgressCallback] = None) -> AnalysisReport:
        """Report on the source history without writing to the target."""
        return self.run(RunMode.ANALYZE, on_progress)

    def migrate(
        self, on_progress: Optional[ProgressCallback] = None
    ) -> MigrationSummary:
        """Create a new repository from the complete history."""
        return self.run(RunMode.FULL, on_progress)

    def sync(self, on_progress: Optional[ProgressCallback] = None) -> MigrationSummary:
        """Bring an existing repository up to date with the source."""
        return self.run(RunMode.CONTINUOUS, on_progress)
