"""Tests for the migration engine."""

import json
import pytest
import tempfile
import os
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock, patch

from vss_migrate.config.config import Config
from vss_migrate.exceptions import PreconditionError
from vss_migrate.migration.context import RunMode
from vss_migrate.migration.engine import MigrationEngine
from vss_migrate.models.branch import PRODUCT_BRANCH
from vss_migrate.models.event import RawVersionRecord
from vss_migrate.source.provider import SourceHistoryProvider
from vss_migrate.source.vss import VSSProvider
from vss_migrate.vcs import BazaarBackend, GitBackend, VCSBackend


def make_config(**target):
    return Config(
        source={'database_dir': 'C:\\VSS', 'user': 'admin', 'project': '$/p'},
        target=target,
        migration={'time_shift': 1},
    )


def make_provider():
    provider = Mock(spec=SourceHistoryProvider)
    provider.list_files.return_value = ['$/p/a.c']
    provider.get_events_for_file.return_value = [
        RawVersionRecord(
            file_path='$/p/a.c',
            version_number=1,
            action_text='Created',
            author='jdoe',
            timestamp=datetime(2020, 1, 1, 12, 0, 0),
            message='initial',
            is_latest_version=True,
        )
    ]
    return provider


def make_backend(has_metadata=False):
    backend = Mock(spec=VCSBackend)
    backend.name = 'git'
    backend.root = Path('/srv/repo')
    backend.working_area = Path('/srv/repo')
    backend.has_metadata.return_value = has_metadata
    backend.is_workspace_empty.return_value = True
    backend.has_changes.return_value = True
    backend.has_tag.return_value = False
    return backend


class TestMigrationEngine:
    """Test engine wiring."""

    def test_builds_components_from_config(self):
        """Test the provider and backend come from configuration."""
        engine = MigrationEngine(
            make_config(vcs='bzr', working_dir='/srv/repo', timeout=60)
        )

        assert isinstance(engine.provider, VSSProvider)
        assert isinstance(engine.backend, BazaarBackend)
        assert engine.backend.root == Path('/srv/repo')
        assert engine.backend.timeout == 60

    def test_create_context(self):
        """Test the run context reflects configuration."""
        engine = MigrationEngine(
            make_config(branch_model=2, email_domain='example.com'),
            provider=make_provider(),
            backend=Mock(spec=VCSBackend),
        )

        context = engine.create_context(RunMode.FULL)

        assert context.mode == RunMode.FULL
        assert context.project_root == '$/p/'
        assert context.topology.production_branch == PRODUCT_BRANCH
        assert context.time_shift == 1
        assert context.changeset_window == 600
        assert context.quiet_window == 120
        assert context.email_domain == 'example.com'
        assert context.base_users == {}

    def test_verify_setting_reaches_context(self):
        """Test the integrity check setting is passed to the run."""
        config = make_config()
        config.migration.verify = True
        engine = MigrationEngine(
            config, provider=make_provider(), backend=make_backend()
        )

        assert engine.create_context(RunMode.FULL).verify is True
        assert engine.create_context(RunMode.ANALYZE).mode == RunMode.ANALYZE

    def test_user_map_file_is_loaded(self):
        """Test entries from the user map file reach the report."""
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.json', delete=False
        ) as f:
            json.dump({'JDoe': ['John Doe', 'john@example.com']}, f)
            map_path = f.name

        try:
            provider = make_provider()
            engine = MigrationEngine(
                make_config(user_map=map_path),
                provider=provider,
                backend=make_backend(),
            )

            report = engine.analyze()
        finally:
            os.unlink(map_path)

        assert report.user_map == {'jdoe': ['John Doe', 'john@example.com']}
        assert report.changeset_count == 1
        provider.close.assert_called_once()

    def test_provider_closed_on_failure(self):
        """Test the provider is released when a run fails."""
        provider = make_provider()
        engine = MigrationEngine(
            make_config(), provider=provider, backend=make_backend()
        )

        with pytest.raises(PreconditionError):
            engine.sync()

        provider.close.assert_called_once()
        provider.list_files.assert_not_called()

    def test_migrate_runs_full_mode(self):
        """Test migrate delegates to a full run."""
        engine = MigrationEngine(
            make_config(), provider=make_provider(), backend=Mock(spec=GitBackend)
        )

        with patch.object(engine, 'run') as mock_run:
            engine.migrate()

        mock_run.assert_called_once_with(RunMode.FULL, None)

    def test_clock_is_passed_to_driver(self):
        """Test the injected clock stamps the summary."""
        now = datetime(2021, 6, 1, tzinfo=timezone.utc)
        engine = MigrationEngine(
            make_config(), provider=make_provider(), backend=make_backend(),
            clock=lambda: now,
        )

        summary = engine.migrate()

        assert summary.started_at == now
        assert summary.completed_at == now
        assert summary.replayed == 1
