"""
Plex-specific utilities for Genrarr.
Reads the movie catalog and manages collections in one Plex movie library.

Plex has no per-user favorites, so this backend provides the Catalog and
CollectionStore services only.
"""

import logging
import requests
import urllib3
import plexapi.server
import plexapi.exceptions

from typing import Any, Dict, Iterable, List, Optional

# Suppress InsecureRequestWarning when users explicitly set verify_ssl=False for local Plex servers
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

from .config import get_config_section
from .library import (
    Catalog,
    CatalogError,
    CollectionCreateError,
    CollectionLinkError,
    CollectionStore,
)
from .models import Collection, Item, ItemKind, Movie

logger = logging.getLogger('genrarr')

# Plex item TYPE -> library item kind
PLEX_KINDS = {
    'movie': ItemKind.MOVIE,
    'collection': ItemKind.COLLECTION,
}

PLEX_ERRORS = (plexapi.exceptions.PlexApiException, requests.RequestException)


def init_plex(config: dict) -> plexapi.server.PlexServer:
    """
    Initialize connection to Plex server.

    Args:
        config: Configuration dictionary with plex.url and plex.token

    Returns:
        PlexServer instance
    """
    plex = get_config_section(config, 'plex')
    if not plex.get('url'):
        raise ValueError("Plex URL is required (plex.url or PLEX_URL)")
    if not plex.get('token'):
        raise ValueError("Plex token is required (plex.token or PLEX_TOKEN)")

    try:
        # Create session with SSL verification settings
        session = requests.Session()
        session.verify = plex.get('verify_ssl', True)

        return plexapi.server.PlexServer(plex['url'], plex['token'], session=session)
    except PLEX_ERRORS as e:
        logger.error(f"Error connecting to Plex server: {e}")
        raise


def extract_genres(item) -> Optional[List[str]]:
    """
    Extract raw genre tags from a Plex item.

    Args:
        item: Plex media item

    Returns:
        Genre tags as stored in Plex, or None if the item has no genre data
    """
    genres = getattr(item, 'genres', None)
    if genres is None:
        return None
    return [g.tag if hasattr(g, 'tag') else str(g) for g in genres]


class PlexLibrary(Catalog, CollectionStore):
    """Catalog and collection store over a single Plex movie library section."""

    def __init__(self, section: Any, reload_items: bool = True):
        """
        Args:
            section: PlexAPI movie library section
            reload_items: Reload each movie before reading genres. Plex
                listings only carry the first few genre tags.
        """
        self.section = section
        self.reload_items = reload_items

    def _fetch(self, item_id: str) -> Optional[Any]:
        try:
            return self.section.fetchItem(int(item_id))
        except (ValueError, plexapi.exceptions.NotFound):
            return None

    def _to_collection(self, plex_collection, with_members: bool = False) -> Collection:
        member_ids = frozenset()
        if with_members:
            member_ids = frozenset(str(item.ratingKey) for item in plex_collection.items())
        return Collection(
            id=str(plex_collection.ratingKey),
            name=plex_collection.title,
            member_ids=member_ids
        )

    # Catalog

    def list_movies(self) -> List[Movie]:
        try:
            movies = []
            for item in self.section.search(libtype='movie'):
                if self.reload_items:
                    item.reload()
                movies.append(Movie(
                    id=str(item.ratingKey),
                    name=item.title,
                    genres=extract_genres(item)
                ))
            return movies
        except PLEX_ERRORS as e:
            raise CatalogError(f"Could not list movies from Plex: {e}") from e

    def list_collections(self) -> List[Collection]:
        try:
            # Smart collections are filter-driven and cannot hold manual members
            return [
                self._to_collection(c)
                for c in self.section.collections()
                if not getattr(c, 'smart', False)
            ]
        except PLEX_ERRORS as e:
            raise CatalogError(f"Could not list Plex collections: {e}") from e

    def find_collection(self, name: str) -> Optional[Collection]:
        try:
            for c in self.section.collections(title=name):
                if c.title == name and not getattr(c, 'smart', False):
                    return self._to_collection(c, with_members=True)
        except PLEX_ERRORS as e:
            raise CatalogError(f"Could not search Plex collections for '{name}': {e}") from e
        return None

    def get_collection(self, collection_id: str) -> Optional[Collection]:
        try:
            item = self._fetch(collection_id)
            if item is None or getattr(item, 'TYPE', None) != 'collection':
                return None
            return self._to_collection(item, with_members=True)
        except PLEX_ERRORS as e:
            raise CatalogError(f"Could not read Plex collection {collection_id}: {e}") from e

    def get_item(self, item_id: str) -> Optional[Item]:
        try:
            item = self._fetch(item_id)
        except PLEX_ERRORS as e:
            raise CatalogError(f"Could not read Plex item {item_id}: {e}") from e
        if item is None:
            return None
        plex_type = getattr(item, 'TYPE', '')
        return Item(
            id=str(item.ratingKey),
            name=item.title,
            kind=PLEX_KINDS.get(plex_type, plex_type)
        )

    # CollectionStore

    def create_collection(self, name: str, item_ids: Iterable[str] = ()) -> Collection:
        item_ids = [str(i) for i in item_ids]
        if not item_ids:
            raise CollectionCreateError(f"Plex cannot create an empty collection ('{name}')")

        try:
            items = [self._fetch(i) for i in item_ids]
            if any(item is None for item in items):
                raise CollectionCreateError(f"Seed items for collection '{name}' no longer exist")
            created = self.section.createCollection(title=name, items=items)
        except PLEX_ERRORS as e:
            raise CollectionCreateError(f"Could not create Plex collection '{name}': {e}") from e

        return Collection(id=str(created.ratingKey), name=name, member_ids=frozenset(item_ids))

    def add_to_collection(self, collection_id: str, item_ids: Iterable[str]) -> None:
        try:
            collection = self._fetch(collection_id)
            if collection is None:
                raise CollectionLinkError(f"Plex collection {collection_id} no longer exists")
            items = [item for item in (self._fetch(i) for i in item_ids) if item is not None]
            if items:
                collection.addItems(items)
        except PLEX_ERRORS as e:
            raise CollectionLinkError(f"Could not add items to Plex collection {collection_id}: {e}") from e


def create_plex_library(config: Dict) -> PlexLibrary:
    """
    Connect to Plex and open the configured movie library.

    Args:
        config: Root config dict with a 'plex' section

    Returns:
        PlexLibrary for plex.movie_library (default 'Movies')
    """
    plex_config = get_config_section(config, 'plex')
    library_name = plex_config.get('movie_library', 'Movies')

    try:
        plex = init_plex(config)
        section = plex.library.section(library_name)
    except plexapi.exceptions.NotFound as e:
        raise ValueError(f"Plex library '{library_name}' not found") from e
    except PLEX_ERRORS as e:
        raise CatalogError(f"Could not connect to Plex: {e}") from e

    return PlexLibrary(section, reload_items=plex_config.get('reload_items', True))
