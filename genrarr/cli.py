"""
Command line entry point for Genrarr.
Runs the genre collection task once or on its schedule, and manages pinned collections.
"""

import argparse
import dataclasses
import os
import signal
import sys
from datetime import datetime
from typing import List, Optional

import yaml

from tasks.base import CancellationToken, IntervalTrigger, TaskCancelledError

from .config import __version__, get_interval_hours, get_log_retention_days, load_config, normalize_collection_ids
from .display import (
    CYAN, GREEN, RESET,
    TeeLogger,
    format_summary,
    log_error, log_warning,
    setup_logging,
    show_progress,
)
from .helpers import cleanup_old_logs, get_project_root
from .library import LibraryError
from .plugin import GenreCollectionsPlugin, PinsNotSupportedError
from .scheduler import TaskScheduler


def get_default_config_path() -> str:
    return os.path.join(get_project_root(), 'config', 'config.yml')


def setup_log_file(log_dir: str, log_retention_days: int, command: str = 'run') -> bool:
    """
    Set up log file with TeeLogger for capturing output.

    Args:
        log_dir: Directory for log files
        log_retention_days: Days to retain logs (0 = don't log to file)
        command: Command name used as the log file prefix

    Returns:
        True if logging was set up, False otherwise
    """
    if log_retention_days <= 0:
        return False

    try:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_path = os.path.join(log_dir, f"genrarr_{command}_{timestamp}.log")
        lf = open(log_file_path, "w", encoding="utf-8")
        sys.stdout = TeeLogger(lf)
        cleanup_old_logs(log_dir, log_retention_days)
        return True
    except OSError as e:
        log_error(f"Could not set up logging: {e}")
        return False


def teardown_log_file(original_stdout):
    """
    Close the log file and restore stdout.

    Args:
        original_stdout: Original sys.stdout to restore
    """
    if sys.stdout is not original_stdout:
        try:
            sys.stdout.logfile.close()
        except (AttributeError, OSError) as e:
            log_warning(f"Error closing log file: {e}")
        sys.stdout = original_stdout


def print_runtime(start_time: datetime):
    """Print formatted runtime duration."""
    runtime = datetime.now() - start_time
    hours = runtime.seconds // 3600
    minutes = (runtime.seconds % 3600) // 60
    seconds = runtime.seconds % 60
    print(f"Total runtime: {hours:02d}:{minutes:02d}:{seconds:02d}")


def make_progress_printer(prefix: str):
    """Build a progress callback that redraws one console line."""
    last = {'value': None}

    def report(value: float):
        if value == last['value']:
            return
        last['value'] = value
        show_progress(prefix, value)

    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='genrarr',
        description='Create a collection for every movie genre and pin collections as favorites.'
    )
    parser.add_argument('--config', default=None, help='Path to config.yml (default: config/config.yml)')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command')
    subparsers.add_parser('run', help='Reconcile genre collections once (default)')
    subparsers.add_parser('schedule', help='Reconcile on the configured interval until interrupted')
    subparsers.add_parser('pins', help='Show the saved pinned collection ids')
    pin = subparsers.add_parser('pin', help='Replace the pinned collection ids, save, and apply them')
    pin.add_argument('ids', nargs='+', help='Collection ids to pin')
    subparsers.add_parser('apply-pins', help='Re-apply the saved pinned collection ids')
    return parser


def run_once(plugin: GenreCollectionsPlugin) -> int:
    """Run the genre collection task once. Ctrl+C cancels after the current movie."""
    task = plugin.get_scheduled_tasks()[0]
    token = CancellationToken()

    def _cancel(_signum, _frame):
        log_warning("Cancellation requested, stopping after the current movie...")
        token.cancel()

    previous_handler = signal.signal(signal.SIGINT, _cancel)
    try:
        stats = task.execute(make_progress_printer(task.name), token)
    except TaskCancelledError:
        log_warning(f"'{task.name}' was cancelled. Changes made so far are kept.")
        return 0
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    print(format_summary(f"{task.name} summary", stats.summary()))
    return 0


def run_scheduled(plugin: GenreCollectionsPlugin, config: dict) -> int:
    """Run the genre collection task on its interval until Ctrl+C."""
    task = plugin.get_scheduled_tasks()[0]
    scheduler = TaskScheduler(
        task,
        trigger=IntervalTrigger.every(get_interval_hours(config)),
        on_result=lambda stats: print(format_summary(f"{task.name} summary", stats.summary())),
    )
    scheduler.start()
    try:
        scheduler.wait()
    except KeyboardInterrupt:
        log_warning("Stopping scheduler...")
        scheduler.stop(timeout=60)
    return 0


def show_pins(plugin: GenreCollectionsPlugin) -> int:
    pinned = plugin.configuration.pinned_collection_ids
    if not pinned:
        print("No pinned collections configured.")
        return 0
    print(f"{CYAN}Pinned collections:{RESET}")
    for collection_id in pinned:
        print(f"  {collection_id}")
    return 0


def set_pins(plugin: GenreCollectionsPlugin, ids: List[str]) -> int:
    pinned = normalize_collection_ids(ids)
    if not pinned:
        log_error("None of the given ids is a valid collection id.")
        return 1

    configuration = dataclasses.replace(plugin.configuration, pinned_collection_ids=pinned)
    stats = plugin.update_configuration(configuration)
    if stats is not None:
        print(format_summary("Pinned collections", stats.summary()))
    return 0


def apply_saved_pins(plugin: GenreCollectionsPlugin) -> int:
    stats = plugin.apply_pins()
    print(format_summary("Pinned collections", stats.summary()))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Common main entry point.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    command = args.command or 'run'
    config_path = args.config or get_default_config_path()

    start_time = datetime.now()
    print(f"{CYAN}Genre Collections v{__version__}{RESET}")
    print("-" * 50)

    try:
        config = load_config(config_path)
    except (OSError, yaml.YAMLError) as e:
        log_error(f"Could not load config: {e}")
        log_warning(f"Looking for config at: {config_path}")
        return 1

    original_stdout = sys.stdout
    log_dir = os.path.join(get_project_root(), 'logs')
    setup_log_file(log_dir, get_log_retention_days(config), command=command.replace('-', '_'))
    logger = setup_logging(debug=args.debug, config=config)
    logger.debug("Debug logging enabled")

    try:
        plugin = GenreCollectionsPlugin.from_config_path(config, config_path)

        if command == 'run':
            exit_code = run_once(plugin)
        elif command == 'schedule':
            exit_code = run_scheduled(plugin, config)
        elif command == 'pins':
            exit_code = show_pins(plugin)
        elif command == 'pin':
            exit_code = set_pins(plugin, args.ids)
        else:
            exit_code = apply_saved_pins(plugin)

    except (ValueError, PinsNotSupportedError) as e:
        log_error(f"Configuration error: {e}")
        exit_code = 1
    except LibraryError as e:
        log_error(f"Media server error: {e}")
        exit_code = 1
    finally:
        print_runtime(start_time)
        teardown_log_file(original_stdout)

    if exit_code == 0:
        print(f"{GREEN}Done.{RESET}")
    return exit_code
