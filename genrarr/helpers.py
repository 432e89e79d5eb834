"""
Miscellaneous helper utilities for Genrarr.
"""

import logging
import os
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Callable, Optional

from .config import NAME_MATCHING_CASE_INSENSITIVE, NAME_MATCHING_EXACT

logger = logging.getLogger('genrarr')


@lru_cache(maxsize=1)
def get_project_root() -> str:
    """
    Get the project root directory path.

    Returns:
        Absolute path to the project root (parent of genrarr/).
    """
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def normalize_genre_name(genre: Optional[str]) -> Optional[str]:
    """
    Turn a raw genre tag into a collection name.

    Surrounding whitespace is trimmed; case and inner spacing are preserved.

    Args:
        genre: Raw genre tag from the catalog

    Returns:
        Trimmed name, or None for empty/whitespace-only tags
    """
    if genre is None:
        return None
    name = str(genre).strip()
    return name or None


def get_name_key_func(policy: str = NAME_MATCHING_EXACT) -> Callable[[str], str]:
    """
    Get the function that maps a collection name to its lookup key.

    Args:
        policy: 'exact' or 'case_insensitive'

    Returns:
        Callable producing the comparison key for a name
    """
    if policy == NAME_MATCHING_EXACT:
        return lambda name: name
    if policy == NAME_MATCHING_CASE_INSENSITIVE:
        return lambda name: name.casefold()
    raise ValueError(f"Unknown name matching policy: {policy}")


def cleanup_old_logs(log_dir: str, retention_days: int) -> None:
    """
    Remove log files older than specified retention period.

    Args:
        log_dir: Directory containing log files
        retention_days: Number of days to retain logs (0 = keep all)
    """
    if retention_days <= 0:
        return

    try:
        cutoff_time = datetime.now() - timedelta(days=retention_days)

        for filename in os.listdir(log_dir):
            if not filename.endswith('.log'):
                continue

            filepath = os.path.join(log_dir, filename)
            try:
                file_mtime = datetime.fromtimestamp(os.path.getmtime(filepath))
                if file_mtime < cutoff_time:
                    os.remove(filepath)
                    logger.info(f"Removed old log: {filename} (age: {(datetime.now() - file_mtime).days} days)")
            except OSError as e:
                logger.warning(f"Failed to remove old log {filename}: {e}")

    except OSError as e:
        logger.warning(f"Error during log cleanup: {e}")
