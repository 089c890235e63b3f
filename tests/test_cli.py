"""Tests for CLI interface."""

import pytest
from datetime import datetime, timezone
from unittest.mock import Mock, patch
from click.testing import CliRunner
import tempfile
import os

from vss_migrate.cli.main import _apply_overrides, _load_config, cli
from vss_migrate.config.config import Config, SourceConfig
from vss_migrate.migration.context import RunMode
from vss_migrate.migration.results import (
    AnalysisReport,
    ChangesetResult,
    MigrationSummary,
)
from vss_migrate.models.event import TargetAction

STARTED = datetime(2021, 1, 1, tzinfo=timezone.utc)


def make_config(**target):
    return Config(
        source=SourceConfig(database_dir='C:\\VSS', user='admin', project='$/p'),
        target=target,
    )


class TestCLI:
    """Test CLI commands."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_cli_help(self):
        """Test CLI help command."""
        result = self.runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        assert 'VSS Migration Tool' in result.output
        for command in ('init', 'analyze', 'migrate', 'sync', 'status'):
            assert command in result.output

    def test_cli_version(self):
        """Test CLI version command."""
        result = self.runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert '0.1.0' in result.output

    def test_run_command_help_lists_overrides(self):
        """Test run commands accept the override options."""
        result = self.runner.invoke(cli, ['migrate', '--help'])

        assert result.exit_code == 0
        for option in (
            '--vcs',
            '--branch-model',
            '--time-shift',
            '--working-dir',
            '--email-domain',
            '--user-map',
        ):
            assert option in result.output

    def test_init_command(self):
        """Test init command."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = os.path.join(temp_dir, 'test_config.yaml')

            result = self.runner.invoke(cli, ['init', '--output', config_path])

            assert result.exit_code == 0
            assert 'Configuration template created' in result.output
            assert os.path.exists(config_path)

            with open(config_path, 'r') as f:
                content = f.read()
                assert 'source:' in content
                assert 'target:' in content
                assert 'migration:' in content

    def test_init_command_default_output(self):
        """Test init command with default output."""
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['init'])

            assert result.exit_code == 0
            assert os.path.exists('config.yaml')

    @patch('vss_migrate.cli.main.MigrationEngine')
    @patch('vss_migrate.cli.main._load_config')
    def test_analyze_command(self, mock_load_config, mock_engine_class):
        """Test analyze prints statistics and the user map."""
        mock_load_config.return_value = make_config()
        mock_engine = Mock()
        mock_engine.run.return_value = AnalysisReport(
            project_root='$/p/',
            file_count=3,
            record_count=6,
            event_count=5,
            changeset_count=4,
            action_counts={'CheckedIn': 2, 'Deleted': 0},
            authors=['alice'],
            user_map={'alice': ['alice', 'alice@example.com']},
        )
        mock_engine_class.return_value = mock_engine

        result = self.runner.invoke(cli, ['analyze'])

        assert result.exit_code == 0
        assert 'Analyzing SourceSafe history' in result.output
        assert 'CheckedIn' in result.output
        assert 'Deleted' not in result.output
        assert 'alice@example.com' in result.output
        assert mock_engine.run.call_args.args[0] == RunMode.ANALYZE

    @patch('vss_migrate.cli.main.MigrationEngine')
    @patch('vss_migrate.cli.main._load_config')
    def test_analyze_unrecognized_actions(self, mock_load_config, mock_engine_class):
        """Test unknown actions are listed with the statistics and exit 1."""
        mock_load_config.return_value = make_config()
        mock_engine_class.return_value.run.return_value = AnalysisReport(
            project_root='$/p/',
            file_count=2,
            record_count=3,
            action_counts={'CheckedIn': 2, 'Other': 1},
            authors=['alice'],
            user_map={'alice': ['alice', 'alice@example.com']},
            anomalies=['$/p/d.c@1: Teleported'],
        )

        result = self.runner.invoke(cli, ['analyze'])

        assert result.exit_code == 1
        assert 'CheckedIn' in result.output
        assert 'alice@example.com' in result.output
        assert 'Unrecognized actions (1)' in result.output
        assert '$/p/d.c@1: Teleported' in result.output
        assert 'unrecognized actions' in result.output

    @patch('vss_migrate.cli.main.MigrationEngine')
    @patch('vss_migrate.cli.main._load_config')
    def test_verify_flag(self, mock_load_config, mock_engine_class):
        """Test --verify enables the integrity check."""
        mock_load_config.return_value = make_config()
        mock_engine_class.return_value.run.return_value = MigrationSummary(
            mode=RunMode.CONTINUOUS, started_at=STARTED
        )

        result = self.runner.invoke(cli, ['sync', '--verify'])

        assert result.exit_code == 0
        config = mock_engine_class.call_args.args[0]
        assert config.migration.verify is True

    def test_analyze_has_no_verify_flag(self):
        """Test analyze does not accept --verify."""
        result = self.runner.invoke(cli, ['analyze', '--verify'])

        assert result.exit_code == 2

    @patch('vss_migrate.cli.main.MigrationEngine')
    @patch('vss_migrate.cli.main._load_config')
    def test_migrate_command(self, mock_load_config, mock_engine_class):
        """Test migrate runs a full migration and prints the summary."""
        mock_load_config.return_value = make_config()
        mock_engine = Mock()
        summary = MigrationSummary(
            mode=RunMode.FULL,
            started_at=STARTED,
            completed_at=STARTED,
            total_changesets=2,
            replayed=2,
            commits=3,
        )
        summary.results.append(
            ChangesetResult(
                index=1,
                timestamp=STARTED,
                author='alice <>',
                action=TargetAction.ADD,
                warnings=['Cannot get file: $/p/a.c@1'],
            )
        )
        mock_engine.run.return_value = summary
        mock_engine_class.return_value = mock_engine

        result = self.runner.invoke(cli, ['migrate'])

        assert result.exit_code == 0
        assert 'Starting full migration' in result.output
        assert 'Migration Summary' in result.output
        assert 'Cannot get file' in result.output
        assert mock_engine.run.call_args.args[0] == RunMode.FULL

    @patch('vss_migrate.cli.main.MigrationEngine')
    @patch('vss_migrate.cli.main._load_config')
    def test_sync_command_aborted(self, mock_load_config, mock_engine_class):
        """Test sync reports a skipped run."""
        mock_load_config.return_value = make_config()
        mock_engine = Mock()
        mock_engine.run.return_value = MigrationSummary(
            mode=RunMode.CONTINUOUS,
            started_at=STARTED,
            aborted=True,
            abort_reason='Source updated within 600 seconds',
        )
        mock_engine_class.return_value = mock_engine

        result = self.runner.invoke(cli, ['sync'])

        assert result.exit_code == 0
        assert 'Source updated within 600 seconds' in result.output
        assert mock_engine.run.call_args.args[0] == RunMode.CONTINUOUS

    @patch('vss_migrate.cli.main.MigrationEngine')
    @patch('vss_migrate.cli.main._load_config')
    def test_overrides_reach_engine(self, mock_load_config, mock_engine_class):
        """Test command line overrides are applied before the engine is built."""
        mock_load_config.return_value = make_config()
        mock_engine_class.return_value.run.return_value = MigrationSummary(
            mode=RunMode.FULL, started_at=STARTED
        )

        result = self.runner.invoke(
            cli,
            ['migrate', '--vcs', 'hg', '--branch-model', '1', '--time-shift', '-9'],
        )

        assert result.exit_code == 0
        config = mock_engine_class.call_args.args[0]
        assert config.target.vcs == 'hg'
        assert config.target.branch_model == 1
        assert config.migration.time_shift == -9

    def test_invalid_override_value(self):
        """Test out-of-range overrides are rejected by the parser."""
        result = self.runner.invoke(cli, ['migrate', '--branch-model', '5'])

        assert result.exit_code == 2

    @patch('vss_migrate.cli.main._load_config')
    def test_migrate_command_config_not_found(self, mock_load_config):
        """Test migrate command when config is not found."""
        mock_load_config.side_effect = FileNotFoundError('Configuration file not found')

        result = self.runner.invoke(cli, ['migrate'])

        assert result.exit_code == 1
        assert 'Full run failed' in result.output

    @patch('vss_migrate.cli.main.MigrationEngine')
    @patch('vss_migrate.cli.main._load_config')
    def test_run_failure_exit_code(self, mock_load_config, mock_engine_class):
        """Test fatal run errors exit with status 1."""
        mock_load_config.return_value = make_config()
        mock_engine_class.return_value.run.side_effect = Exception('repository exists')

        result = self.runner.invoke(cli, ['sync'])

        assert result.exit_code == 1
        assert 'repository exists' in result.output

    @patch('vss_migrate.cli.main._load_config')
    def test_status_command_success(self, mock_load_config):
        """Test successful status command."""
        mock_load_config.return_value = make_config(vcs='bzr', branch_model=2)

        result = self.runner.invoke(cli, ['status'])

        assert result.exit_code == 0
        assert 'Migration Configuration' in result.output
        assert 'bzr' in result.output
        assert '$/p/' in result.output

    @patch('vss_migrate.cli.main._load_config')
    def test_status_command_failure(self, mock_load_config):
        """Test status command failure."""
        mock_load_config.side_effect = Exception('Failed to load status')

        result = self.runner.invoke(cli, ['status'])

        assert result.exit_code == 1
        assert 'Failed to load status' in result.output

    def test_config_loading_with_file(self):
        """Test configuration loading with specified file."""
        config_content = """
source:
  database_dir: C:\\VSS
  user: admin
  project: $/from-file/
"""

        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(config_content)
            f.flush()

        try:
            result = self.runner.invoke(cli, ['--config', f.name, 'status'])

            assert result.exit_code == 0
            assert '$/from-file/' in result.output
        finally:
            os.unlink(f.name)

    def test_verbose_flag(self):
        """Test verbose flag."""
        result = self.runner.invoke(cli, ['--verbose', '--help'])

        assert result.exit_code == 0

    @patch('vss_migrate.cli.main.console.print_exception')
    def test_error_handling_with_verbose(self, mock_print_exception):
        """Test error handling with verbose flag."""
        with patch(
            'vss_migrate.cli.main._load_config',
            side_effect=Exception('Test error'),
        ):
            result = self.runner.invoke(cli, ['--verbose', 'migrate'])

            assert result.exit_code == 1
            mock_print_exception.assert_called_once()


class TestConfigLoading:
    """Test configuration loading functions."""

    @patch('vss_migrate.config.config.Config.from_file')
    def test_load_config_with_file(self, mock_from_file):
        """Test loading config from specified file."""
        mock_config = Mock(spec=Config)
        mock_from_file.return_value = mock_config

        mock_ctx = Mock()
        mock_ctx.obj = {'config_path': '/path/to/config.yaml'}

        with patch('pathlib.Path.exists', return_value=True):
            config = _load_config(mock_ctx)

            assert config == mock_config
            mock_from_file.assert_called_once_with('/path/to/config.yaml')

    @patch('vss_migrate.config.config.Config.from_file')
    def test_load_config_default_locations(self, mock_from_file):
        """Test loading config from default locations."""
        mock_config = Mock(spec=Config)
        mock_from_file.return_value = mock_config

        mock_ctx = Mock()
        mock_ctx.obj = {}

        with patch(
            'pathlib.Path.exists',
            autospec=True,
            side_effect=lambda path: str(path) == 'config.yml',
        ):
            config = _load_config(mock_ctx)

            assert config == mock_config
            mock_from_file.assert_called_once_with('config.yml')

    @patch('vss_migrate.config.config.Config.from_env')
    def test_load_config_from_env(self, mock_from_env):
        """Test loading config from environment variables."""
        mock_config = Mock(spec=Config)
        mock_from_env.return_value = mock_config

        mock_ctx = Mock()
        mock_ctx.obj = {}

        with patch('pathlib.Path.exists', return_value=False):
            config = _load_config(mock_ctx)

            assert config == mock_config
            mock_from_env.assert_called_once()

    def test_load_config_not_found(self):
        """Test loading config when no config is found."""
        mock_ctx = Mock()
        mock_ctx.obj = {}

        with patch('pathlib.Path.exists', return_value=False):
            with patch(
                'vss_migrate.config.config.Config.from_env',
                side_effect=Exception(),
            ):
                with pytest.raises(FileNotFoundError):
                    _load_config(mock_ctx)


class TestApplyOverrides:
    """Test command line overrides."""

    def test_no_overrides(self):
        """Test an empty override set leaves the configuration alone."""
        config = make_config(vcs='hg')

        result = _apply_overrides(config, {'vcs': None, 'time_shift': None})

        assert result.target.vcs == 'hg'
        assert result.migration.time_shift == 0

    def test_overrides_are_validated(self):
        """Test overridden values go through validation."""
        config = make_config()

        with pytest.raises(ValueError):
            _apply_overrides(config, {'user_map': '/nonexistent/users.json'})

    def test_working_dir_and_domain(self):
        """Test target overrides keep other target settings."""
        config = make_config(vcs='bzr')

        result = _apply_overrides(
            config, {'working_dir': '/srv/repo', 'email_domain': 'corp.com'}
        )

        assert result.target.vcs == 'bzr'
        assert result.target.working_dir == '/srv/repo'
        assert result.target.email_domain == 'corp.com'
