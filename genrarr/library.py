"""
Interfaces to the media server the jobs run against.

The jobs never talk to a server directly. A backend (Jellyfin, Plex) provides
some or all of these services:

- Catalog: read movies, collections and arbitrary items
- CollectionStore: create collections and link items into them
- UserRegistry: enumerate users
- FavoritesStore: per-user favorite flags
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from .models import Collection, Item, Movie, User


class LibraryError(Exception):
    """Base class for media server failures."""
    pass


class CatalogError(LibraryError):
    """Raised when the catalog cannot be read. Fatal for a run."""
    pass


class CollectionCreateError(LibraryError):
    """Raised when a collection could not be created."""
    pass


class CollectionLinkError(LibraryError):
    """Raised when items could not be added to a collection."""
    pass


class FavoritesError(LibraryError):
    """Raised when a favorite flag could not be read or written."""
    pass


class Catalog(ABC):

    @abstractmethod
    def list_movies(self) -> List[Movie]:
        """Return all non-virtual movies, searched recursively."""

    @abstractmethod
    def list_collections(self) -> List[Collection]:
        """
        Return every collection in server order.

        Member ids may be left empty; use get_collection for current membership.
        """

    @abstractmethod
    def find_collection(self, name: str) -> Optional[Collection]:
        """Return the first collection whose name equals `name` exactly."""

    @abstractmethod
    def get_collection(self, collection_id: str) -> Optional[Collection]:
        """Return the current state of a collection, or None if it is gone."""

    @abstractmethod
    def get_item(self, item_id: str) -> Optional[Item]:
        """Resolve any item by id."""


class CollectionStore(ABC):

    @abstractmethod
    def create_collection(self, name: str, item_ids: Iterable[str] = ()) -> Collection:
        """
        Create a collection, optionally seeded with initial members.

        Raises:
            CollectionCreateError: If the server refuses or fails
        """

    @abstractmethod
    def add_to_collection(self, collection_id: str, item_ids: Iterable[str]) -> None:
        """
        Link items into a collection. Adding an existing member is a no-op.

        Raises:
            CollectionLinkError: If the server refuses or fails
        """


class UserRegistry(ABC):

    @abstractmethod
    def list_users(self) -> List[User]:
        pass


class FavoritesStore(ABC):

    @abstractmethod
    def is_favorite(self, user: User, item: Item) -> bool:
        pass

    @abstractmethod
    def set_favorite(self, user: User, item: Item, favorite: bool) -> None:
        pass
