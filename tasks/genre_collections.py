"""
Genre collection reconciliation.

Scans every movie in the catalog and makes sure that, for each genre tag on a
movie, a collection named after the (trimmed) genre exists and contains the
movie. The pass is additive and idempotent: nothing is ever unlinked or
deleted, and re-running on an unchanged catalog performs no writes.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from genrarr.config import NAME_MATCHING_EXACT
from genrarr.helpers import get_name_key_func, normalize_genre_name
from genrarr.library import (
    Catalog,
    CollectionCreateError,
    CollectionLinkError,
    CollectionStore,
)
from genrarr.models import Collection, Movie

from .base import CancellationToken, ProgressCallback, ScheduledTask

logger = logging.getLogger('genrarr')


@dataclass
class ReconcileStats:
    """Track statistics for a reconciliation run."""

    movies_total: int = 0
    movies_processed: int = 0
    movies_without_genres: int = 0
    collections_created: int = 0
    links_added: int = 0
    links_existing: int = 0
    failures: List[str] = field(default_factory=list)

    def has_activity(self) -> bool:
        return any((self.collections_created, self.links_added, self.failures))

    def summary(self) -> Dict[str, int]:
        return {
            'movies_total': self.movies_total,
            'movies_processed': self.movies_processed,
            'movies_without_genres': self.movies_without_genres,
            'collections_created': self.collections_created,
            'links_added': self.links_added,
            'links_existing': self.links_existing,
            'failures': len(self.failures),
        }


class CollectionIndex:
    """
    Name -> collection lookup for one run.

    Loaded once from the full collection listing. When several collections
    share a name key, the first one listed is canonical.
    """

    def __init__(self, name_key: Callable[[str], str]):
        self._name_key = name_key
        self._by_key: Dict[str, Collection] = {}

    def load(self, collections: List[Collection]) -> None:
        for collection in collections:
            key = self._name_key(collection.name)
            if key in self._by_key:
                logger.debug(
                    f"Ignoring duplicate collection '{collection.name}' ({collection.id}); "
                    f"using {self._by_key[key].id}"
                )
                continue
            self._by_key[key] = collection

    def get(self, name: str) -> Optional[Collection]:
        return self._by_key.get(self._name_key(name))

    def add(self, collection: Collection) -> None:
        self._by_key.setdefault(self._name_key(collection.name), collection)

    def discard(self, collection: Collection) -> None:
        key = self._name_key(collection.name)
        if key in self._by_key and self._by_key[key].id == collection.id:
            del self._by_key[key]

    def __len__(self) -> int:
        return len(self._by_key)


class GenreCollectionTask(ScheduledTask):
    """The scheduled task that creates and fills genre collections."""

    name = "Create Genre Collections"
    key = "GenreCollectionsCreation"
    description = "Scans the movie library and creates collections based on genres."
    category = "Library"

    def __init__(self, catalog: Catalog, collection_store: CollectionStore,
                 name_matching: str = NAME_MATCHING_EXACT):
        """
        Args:
            catalog: Source of movies and collections
            collection_store: Creates collections and links movies into them
            name_matching: 'exact' or 'case_insensitive' genre/collection matching
        """
        self.catalog = catalog
        self.collection_store = collection_store
        self.name_matching = name_matching
        self._name_key = get_name_key_func(name_matching)

    def execute(self, progress: ProgressCallback, cancellation_token: CancellationToken) -> ReconcileStats:
        """
        Reconcile genre collections with the movie catalog.

        Catalog read failures (CatalogError) and cancellation
        (TaskCancelledError) propagate. Create and link failures are logged,
        recorded in the returned stats, and skipped.
        """
        logger.info("Genre Collections task started.")
        stats = ReconcileStats()
        progress(0)

        movies = self.catalog.list_movies()
        stats.movies_total = len(movies)
        logger.info(f"Found {len(movies)} movies to process.")

        if not movies:
            progress(100)
            logger.info("No movies found. Genre Collections task finished.")
            return stats

        index = CollectionIndex(self._name_key)
        index.load(self.catalog.list_collections())
        logger.debug(f"Indexed {len(index)} existing collections.")

        total = len(movies)
        for position, movie in enumerate(movies, start=1):
            cancellation_token.raise_if_cancelled()
            self._process_movie(movie, index, stats)
            stats.movies_processed = position
            progress(position / total * 100)

        progress(100)
        logger.info(
            f"Genre Collections task finished: {stats.collections_created} collections created, "
            f"{stats.links_added} movies linked, {len(stats.failures)} failures."
        )
        return stats

    def _process_movie(self, movie: Movie, index: CollectionIndex, stats: ReconcileStats) -> None:
        if not movie.genres:
            logger.debug(f"Movie '{movie.name}' has no genres, skipping.")
            stats.movies_without_genres += 1
            return

        for genre in movie.genres:
            collection_name = normalize_genre_name(genre)
            if collection_name is None:
                continue

            collection = index.get(collection_name)
            if collection is None:
                collection, seeded = self._find_or_create(collection_name, movie, index, stats)
                if collection is None or seeded:
                    continue

            self._ensure_linked(collection, movie, index, stats)

    def _find_or_create(self, collection_name: str, movie: Movie,
                        index: CollectionIndex, stats: ReconcileStats) -> Tuple[Optional[Collection], bool]:
        """
        Look the name up on the server, creating the collection if it is missing.

        Returns:
            (collection or None, whether the movie was linked by the creation)
        """
        # Picks up collections created since the index was loaded
        existing = self.catalog.find_collection(collection_name)
        if existing is not None:
            index.add(existing)
            return existing, False

        logger.info(f"Creating new collection: '{collection_name}'")
        try:
            created = self.collection_store.create_collection(collection_name, [movie.id])
        except CollectionCreateError as e:
            logger.warning(f"Failed to create or find collection for genre '{collection_name}': {e}")
            stats.failures.append(f"create '{collection_name}': {e}")
            return None, False

        if created is None:
            logger.warning(f"Failed to create or find collection for genre '{collection_name}'.")
            stats.failures.append(f"create '{collection_name}': no collection returned")
            return None, False

        index.add(created)
        stats.collections_created += 1
        seeded = created.contains(movie.id)
        if seeded:
            stats.links_added += 1
        return created, seeded

    def _ensure_linked(self, collection: Collection, movie: Movie,
                       index: CollectionIndex, stats: ReconcileStats) -> None:
        """Link the movie unless the collection's current members already include it."""
        current = self.catalog.get_collection(collection.id)
        if current is None:
            logger.warning(
                f"Collection '{collection.name}' ({collection.id}) disappeared, "
                f"skipping '{movie.name}'."
            )
            index.discard(collection)
            stats.failures.append(f"link '{movie.name}' -> '{collection.name}': collection missing")
            return

        if current.contains(movie.id):
            stats.links_existing += 1
            return

        logger.debug(f"Adding movie '{movie.name}' to collection '{current.name}'.")
        try:
            self.collection_store.add_to_collection(current.id, [movie.id])
        except CollectionLinkError as e:
            logger.warning(f"Failed to add '{movie.name}' to collection '{current.name}': {e}")
            stats.failures.append(f"link '{movie.name}' -> '{current.name}': {e}")
            return
        stats.links_added += 1
