"""
Display and logging utilities for Genrarr.
Handles colored output, progress indicators, and log files.
"""

import sys
import re
import logging

# ANSI color codes
RED = '\033[91m'
GREEN = '\033[92m'
YELLOW = '\033[93m'
CYAN = '\033[96m'
RESET = '\033[0m'

# ANSI pattern for stripping color codes from log files
ANSI_PATTERN = re.compile(r'\x1b\[[0-9;]*m')

LOGGER_NAME = 'genrarr'


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels"""

    LEVEL_COLORS = {
        logging.DEBUG: CYAN,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, '')
        original = record.levelname
        record.levelname = f"{color}{original}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class TeeLogger:
    """
    A simple 'tee' class that writes to both console and a file,
    stripping ANSI color codes for the file.
    """
    def __init__(self, logfile, stream=None):
        self.logfile = logfile
        self.stream = stream or sys.stdout

    def write(self, text):
        self.stream.write(text)
        self.logfile.write(ANSI_PATTERN.sub('', text))

    def flush(self):
        self.stream.flush()
        self.logfile.flush()


def setup_logging(debug: bool = False, config: dict = None, colored: bool = True) -> logging.Logger:
    """
    Configure logging for the genre collection jobs.

    Args:
        debug: If True, set level to DEBUG. Otherwise use config or default to INFO.
        config: Optional config dict that may contain logging.level setting.
        colored: Colorize level names on the console.

    Returns:
        Configured project logger.
    """
    if debug:
        level = logging.DEBUG
    elif config and (config.get('logging') or {}).get('level'):
        level_str = str(config['logging']['level']).upper()
        level = getattr(logging, level_str, logging.INFO)
    else:
        level = logging.INFO

    # Write to whatever sys.stdout is at call time so a TeeLogger picks it up
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter_class = ColoredFormatter if colored else logging.Formatter
    handler.setFormatter(formatter_class(
        fmt='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Remove existing handlers to avoid duplicates
    root_logger.handlers = []
    root_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('plexapi').setLevel(logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    return logger


def log_warning(message: str):
    """Log warning and print with yellow color"""
    logging.getLogger(LOGGER_NAME).warning(message)
    print(f"{YELLOW}{message}{RESET}")


def log_error(message: str):
    """Log error and print with red color"""
    logging.getLogger(LOGGER_NAME).error(message)
    print(f"{RED}{message}{RESET}")


def show_progress(prefix: str, percent: float):
    """
    Display a percentage progress indicator on the same line.

    Args:
        prefix: Text prefix for progress display
        percent: Completion in [0, 100]
    """
    pct = max(0.0, min(100.0, float(percent)))
    sys.stdout.write(f"\r{CYAN}{prefix} {pct:5.1f}%{RESET}")
    sys.stdout.flush()
    if pct >= 100.0:
        sys.stdout.write("\n")


def format_summary(title: str, summary: dict) -> str:
    """
    Format a flat stats summary for console output.

    Args:
        title: Heading line
        summary: Mapping of label -> value

    Returns:
        Multi-line string
    """
    lines = [f"{CYAN}{title}{RESET}"]
    width = max((len(str(k)) for k in summary), default=0)
    for key, value in summary.items():
        if isinstance(value, list):
            value = len(value)
        lines.append(f"  {str(key).replace('_', ' ').ljust(width)} : {value}")
    return "\n".join(lines)
