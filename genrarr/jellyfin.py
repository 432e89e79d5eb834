"""
Jellyfin API client for Genrarr.
Reads the movie catalog, manages collections (BoxSets) and per-user favorites.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from .api_client import APIError, BaseAPIClient
from .config import DEFAULT_PAGE_SIZE, get_config_section
from .library import (
    Catalog,
    CatalogError,
    CollectionCreateError,
    CollectionLinkError,
    CollectionStore,
    FavoritesError,
    FavoritesStore,
    LibraryError,
    UserRegistry,
)
from .models import Collection, Item, ItemKind, Movie, User

logger = logging.getLogger('genrarr')


def _movie_from_json(data: Dict) -> Movie:
    return Movie(
        id=data['Id'],
        name=data.get('Name', ''),
        genres=data.get('Genres'),
    )


def _join_ids(item_ids: Iterable[str]) -> str:
    return ','.join(str(item_id) for item_id in item_ids)


class JellyfinClient(BaseAPIClient, Catalog, CollectionStore, UserRegistry, FavoritesStore):
    """
    Jellyfin API client.

    Uses API key authentication via the X-Emby-Token header.
    """

    api_name = "Jellyfin"

    def __init__(self, url: str, api_key: str, verify_ssl: bool = True,
                 page_size: int = DEFAULT_PAGE_SIZE):
        """
        Initialize Jellyfin client.

        Args:
            url: Jellyfin base URL (e.g., http://localhost:8096)
            api_key: Jellyfin API key (Dashboard -> API Keys)
            verify_ssl: Verify TLS certificates
            page_size: Items requested per catalog page
        """
        super().__init__(url, verify_ssl=verify_ssl)
        self.api_key = api_key
        self.page_size = max(1, int(page_size))

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests."""
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Emby-Token": self.api_key
        }

    def _query_items(self, params: Dict) -> Iterator[Dict]:
        """
        Page through /Items for the given query.

        Args:
            params: Query parameters (paging keys are added here)

        Yields:
            Raw item dicts in server order
        """
        start_index = 0
        while True:
            page_params = dict(params, StartIndex=start_index, Limit=self.page_size)
            result = self._make_request("GET", "Items", params=page_params) or {}
            items = result.get('Items') or []
            yield from items

            start_index += len(items)
            total = result.get('TotalRecordCount', 0)
            if not items or start_index >= total:
                break

    def _get_member_ids(self, collection_id: str) -> frozenset:
        children = self._query_items({'ParentId': collection_id})
        return frozenset(child['Id'] for child in children)

    def _get_raw_item(self, item_id: str) -> Optional[Dict]:
        result = self._make_request("GET", "Items", params={'Ids': item_id}) or {}
        items = result.get('Items') or []
        return items[0] if items else None

    # Catalog

    def list_movies(self) -> List[Movie]:
        params = {
            'IncludeItemTypes': ItemKind.MOVIE,
            'Recursive': 'true',
            'IsMissing': 'false',
            'ExcludeLocationTypes': 'Virtual',
            'Fields': 'Genres',
        }
        try:
            return [_movie_from_json(item) for item in self._query_items(params)]
        except APIError as e:
            raise CatalogError(f"Could not list movies: {e}") from e

    def list_collections(self) -> List[Collection]:
        params = {'IncludeItemTypes': ItemKind.COLLECTION, 'Recursive': 'true'}
        try:
            return [
                Collection(id=item['Id'], name=item.get('Name', ''))
                for item in self._query_items(params)
            ]
        except APIError as e:
            raise CatalogError(f"Could not list collections: {e}") from e

    def find_collection(self, name: str) -> Optional[Collection]:
        params = {
            'IncludeItemTypes': ItemKind.COLLECTION,
            'Recursive': 'true',
            'SearchTerm': name,
        }
        try:
            for item in self._query_items(params):
                # SearchTerm is a fuzzy match; only an exact name counts
                if item.get('Name') == name:
                    return Collection(
                        id=item['Id'],
                        name=item['Name'],
                        member_ids=self._get_member_ids(item['Id'])
                    )
        except APIError as e:
            raise CatalogError(f"Could not search collections for '{name}': {e}") from e
        return None

    def get_collection(self, collection_id: str) -> Optional[Collection]:
        try:
            item = self._get_raw_item(collection_id)
            if item is None or item.get('Type') != ItemKind.COLLECTION:
                return None
            return Collection(
                id=item['Id'],
                name=item.get('Name', ''),
                member_ids=self._get_member_ids(item['Id'])
            )
        except APIError as e:
            raise CatalogError(f"Could not read collection {collection_id}: {e}") from e

    def get_item(self, item_id: str) -> Optional[Item]:
        try:
            item = self._get_raw_item(item_id)
        except APIError as e:
            raise CatalogError(f"Could not read item {item_id}: {e}") from e
        if item is None:
            return None
        return Item(id=item['Id'], name=item.get('Name', ''), kind=item.get('Type', ''))

    # CollectionStore

    def create_collection(self, name: str, item_ids: Iterable[str] = ()) -> Collection:
        item_ids = list(item_ids)
        params = {'Name': name}
        if item_ids:
            params['Ids'] = _join_ids(item_ids)
        try:
            result = self._make_request("POST", "Collections", params=params)
        except APIError as e:
            raise CollectionCreateError(f"Could not create collection '{name}': {e}") from e

        if not result or not result.get('Id'):
            raise CollectionCreateError(f"Jellyfin did not return an id for collection '{name}'")
        return Collection(id=result['Id'], name=name, member_ids=frozenset(item_ids))

    def add_to_collection(self, collection_id: str, item_ids: Iterable[str]) -> None:
        try:
            self._make_request(
                "POST", f"Collections/{collection_id}/Items",
                params={'Ids': _join_ids(item_ids)}
            )
        except APIError as e:
            raise CollectionLinkError(f"Could not add items to collection {collection_id}: {e}") from e

    # UserRegistry

    def list_users(self) -> List[User]:
        try:
            result = self._make_request("GET", "Users") or []
        except APIError as e:
            raise LibraryError(f"Could not list users: {e}") from e
        return [User(id=user['Id'], name=user.get('Name', '')) for user in result]

    # FavoritesStore

    def is_favorite(self, user: User, item: Item) -> bool:
        try:
            result = self._make_request("GET", f"Items/{item.id}", params={'userId': user.id})
        except APIError as e:
            raise FavoritesError(f"Could not read favorite state of {item.id} for {user.name}: {e}") from e
        if result is None:
            raise FavoritesError(f"Item {item.id} is not visible to user {user.name}")
        return bool((result.get('UserData') or {}).get('IsFavorite', False))

    def set_favorite(self, user: User, item: Item, favorite: bool) -> None:
        method = "POST" if favorite else "DELETE"
        try:
            self._make_request(method, f"UserFavoriteItems/{item.id}", params={'userId': user.id})
        except APIError as e:
            raise FavoritesError(f"Could not update favorite state of {item.id} for {user.name}: {e}") from e


def create_jellyfin_client(config: Dict) -> JellyfinClient:
    """
    Create Jellyfin client from config.

    Args:
        config: Root config dict with a 'jellyfin' section

    Returns:
        JellyfinClient instance

    Raises:
        ValueError: If url or api_key is missing
    """
    jellyfin = get_config_section(config, 'jellyfin')
    url = jellyfin.get('url')
    api_key = jellyfin.get('api_key')

    if not url:
        raise ValueError("Jellyfin URL is required (jellyfin.url or JELLYFIN_URL)")
    if not api_key:
        raise ValueError("Jellyfin API key is required (jellyfin.api_key or JELLYFIN_API_KEY)")

    return JellyfinClient(
        url=url,
        api_key=api_key,
        verify_ssl=jellyfin.get('verify_ssl', True),
        page_size=jellyfin.get('page_size', DEFAULT_PAGE_SIZE)
    )
