"""Tests for genrarr/cli.py - Command line entry point"""

import sys
from datetime import datetime, timedelta
from unittest.mock import Mock, patch

import pytest
import yaml

from genrarr import cli
from genrarr.config import PluginConfiguration
from genrarr.library import CatalogError
from genrarr.plugin import PinsNotSupportedError
from tasks.base import TaskCancelledError
from tasks.genre_collections import ReconcileStats
from tasks.pins import PinStats

GUID_A = "3f2504e0-4f89-11d3-9a0c-0305e82c3301"


@pytest.fixture
def plugin():
    plugin = Mock()
    plugin.configuration = PluginConfiguration()
    task = Mock()
    task.name = "Create Genre Collections"
    task.execute.return_value = ReconcileStats(movies_total=2, links_added=2)
    plugin.get_scheduled_tasks.return_value = [task]
    plugin.apply_pins.return_value = PinStats(users=1, pinned=1)
    plugin.update_configuration.return_value = PinStats(users=1, pinned=1)
    return plugin


@pytest.fixture
def wired(plugin):
    """Patch config loading, log files, and plugin construction around main()."""
    with patch('genrarr.cli.load_config', return_value={}) as mock_load, \
            patch('genrarr.cli.setup_log_file', return_value=False), \
            patch('genrarr.cli.setup_logging') as mock_logging, \
            patch('genrarr.cli.GenreCollectionsPlugin.from_config_path', return_value=plugin):
        mock_logging.return_value = Mock()
        yield mock_load


class TestBuildParser:
    """Tests for build_parser function"""

    def test_default_command_is_none(self):
        args = cli.build_parser().parse_args([])
        assert args.command is None
        assert args.debug is False

    def test_pin_requires_ids(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(['pin'])

    def test_pin_ids(self):
        args = cli.build_parser().parse_args(['--config', 'c.yml', 'pin', 'a', 'b'])
        assert args.ids == ['a', 'b']
        assert args.config == 'c.yml'


class TestMain:
    """Tests for main() dispatch and exit codes"""

    def test_run_is_default(self, wired, plugin, capsys):
        assert cli.main(['--config', 'x.yml']) == 0

        task = plugin.get_scheduled_tasks.return_value[0]
        task.execute.assert_called_once()
        out = capsys.readouterr().out
        assert "summary" in out
        assert "Done." in out

    def test_config_error(self, plugin):
        with patch('genrarr.cli.load_config', side_effect=OSError("missing")):
            assert cli.main(['--config', 'missing.yml']) == 1

    def test_invalid_yaml(self, plugin):
        with patch('genrarr.cli.load_config', side_effect=yaml.YAMLError("bad")):
            assert cli.main(['--config', 'bad.yml']) == 1

    def test_value_error_is_configuration_error(self, wired, capsys):
        with patch('genrarr.cli.GenreCollectionsPlugin.from_config_path',
                   side_effect=ValueError("Jellyfin URL is required")):
            assert cli.main(['run']) == 1
        assert "Configuration error" in capsys.readouterr().out

    def test_library_error(self, wired, plugin, capsys):
        plugin.get_scheduled_tasks.return_value[0].execute.side_effect = CatalogError("down")

        assert cli.main(['run']) == 1
        assert "Media server error" in capsys.readouterr().out

    def test_cancelled_run_exits_cleanly(self, wired, plugin):
        plugin.get_scheduled_tasks.return_value[0].execute.side_effect = TaskCancelledError()
        assert cli.main(['run']) == 0

    def test_pins_lists_saved_ids(self, wired, plugin, capsys):
        plugin.configuration = PluginConfiguration(pinned_collection_ids=[GUID_A])

        assert cli.main(['pins']) == 0
        assert GUID_A in capsys.readouterr().out

    def test_pins_empty(self, wired, capsys):
        assert cli.main(['pins']) == 0
        assert "No pinned collections" in capsys.readouterr().out

    def test_pin_saves_normalized_ids(self, wired, plugin):
        assert cli.main(['pin', GUID_A.upper(), 'junk']) == 0

        saved = plugin.update_configuration.call_args[0][0]
        assert saved.pinned_collection_ids == [GUID_A]

    def test_pin_rejects_only_invalid_ids(self, wired, plugin):
        assert cli.main(['pin', 'junk']) == 1
        plugin.update_configuration.assert_not_called()

    def test_apply_pins(self, wired, plugin):
        assert cli.main(['apply-pins']) == 0
        plugin.apply_pins.assert_called_once()

    def test_apply_pins_unsupported(self, wired, plugin):
        plugin.apply_pins.side_effect = PinsNotSupportedError("plex")
        assert cli.main(['apply-pins']) == 1

    def test_schedule(self, wired, plugin):
        with patch('genrarr.cli.TaskScheduler') as mock_scheduler:
            assert cli.main(['schedule']) == 0

        mock_scheduler.return_value.start.assert_called_once()
        mock_scheduler.return_value.wait.assert_called_once()
        assert mock_scheduler.call_args.kwargs['trigger'].seconds == 24 * 3600

    def test_schedule_interrupted(self, wired, plugin):
        with patch('genrarr.cli.TaskScheduler') as mock_scheduler:
            mock_scheduler.return_value.wait.side_effect = KeyboardInterrupt
            assert cli.main(['schedule']) == 0

        mock_scheduler.return_value.stop.assert_called_once()


class TestProgressPrinter:
    """Tests for make_progress_printer function"""

    def test_skips_repeated_values(self):
        with patch('genrarr.cli.show_progress') as mock_show:
            report = cli.make_progress_printer("Genres")
            report(0)
            report(0)
            report(50)

        assert [c.args for c in mock_show.call_args_list] == [("Genres", 0), ("Genres", 50)]


class TestLogFile:
    """Tests for setup_log_file and teardown_log_file"""

    def test_disabled_with_zero_retention(self, tmp_path):
        assert cli.setup_log_file(str(tmp_path), 0) is False
        assert list(tmp_path.iterdir()) == []

    def test_tee_and_restore(self, tmp_path):
        original = sys.stdout
        try:
            assert cli.setup_log_file(str(tmp_path / 'logs'), 7, command='apply_pins') is True
            print("hello log")
        finally:
            cli.teardown_log_file(original)

        assert sys.stdout is original
        logs = list((tmp_path / 'logs').iterdir())
        assert len(logs) == 1
        assert logs[0].name.startswith("genrarr_apply_pins_")
        assert "hello log" in logs[0].read_text(encoding='utf-8')

    def test_teardown_without_tee_is_noop(self):
        original = sys.stdout
        cli.teardown_log_file(original)
        assert sys.stdout is original


class TestPrintRuntime:
    """Tests for print_runtime function"""

    def test_format(self, capsys):
        cli.print_runtime(datetime.now() - timedelta(hours=1, minutes=2, seconds=3))
        assert "Total runtime: 01:02:03" in capsys.readouterr().out
