"""
Genrarr - Scheduled jobs for genre collections and pinned favorites.
"""

from .base import CancellationToken, IntervalTrigger, ScheduledTask, TaskCancelledError
from .genre_collections import CollectionIndex, GenreCollectionTask, ReconcileStats
from .pins import PinStats, PinSynchronizer

__all__ = [
    'CancellationToken',
    'CollectionIndex',
    'GenreCollectionTask',
    'IntervalTrigger',
    'PinStats',
    'PinSynchronizer',
    'ReconcileStats',
    'ScheduledTask',
    'TaskCancelledError',
]
