"""
Shared fixtures: an in-memory media server implementing every library interface.
"""

import itertools

import pytest

from genrarr.library import (
    Catalog,
    CatalogError,
    CollectionCreateError,
    CollectionLinkError,
    CollectionStore,
    FavoritesError,
    FavoritesStore,
    UserRegistry,
)
from genrarr.models import Collection, Item, ItemKind, Movie, User


class FakeServer(Catalog, CollectionStore, UserRegistry, FavoritesStore):
    """In-memory media server that records every write."""

    def __init__(self):
        self.movies = []
        self.collections = {}          # id -> {'name': str, 'members': set}
        self.users = []
        self.favorites = set()         # (user_id, item_id)
        self.other_items = {}          # id -> Item
        self.created = []              # collection names, in order
        self.links = []                # (collection_id, movie_id)
        self.favorite_writes = []      # (user_id, item_id, bool)
        self.fail_create = set()       # names whose creation fails
        self.fail_link = set()         # (collection name, movie id) pairs whose link fails
        self.fail_favorites = set()    # (user_id, item_id) pairs that error
        self.fail_list_movies = False
        self._ids = itertools.count(1)

    # Setup helpers

    def add_movie(self, name, genres):
        movie = Movie(id=f"m{len(self.movies) + 1}", name=name, genres=genres)
        self.movies.append(movie)
        return movie

    def add_collection(self, name, member_ids=()):
        collection_id = f"c{next(self._ids)}"
        self.collections[collection_id] = {'name': name, 'members': set(member_ids)}
        return collection_id

    def add_user(self, name):
        user = User(id=f"u{len(self.users) + 1}", name=name)
        self.users.append(user)
        return user

    def names(self):
        return [c['name'] for c in self.collections.values()]

    def members_of(self, name):
        for c in self.collections.values():
            if c['name'] == name:
                return c['members']
        return None

    def _snapshot(self, collection_id, with_members=True):
        data = self.collections[collection_id]
        members = frozenset(data['members']) if with_members else frozenset()
        return Collection(id=collection_id, name=data['name'], member_ids=members)

    # Catalog

    def list_movies(self):
        if self.fail_list_movies:
            raise CatalogError("catalog offline")
        return list(self.movies)

    def list_collections(self):
        return [self._snapshot(cid, with_members=False) for cid in self.collections]

    def find_collection(self, name):
        for cid, data in self.collections.items():
            if data['name'] == name:
                return self._snapshot(cid)
        return None

    def get_collection(self, collection_id):
        if collection_id not in self.collections:
            return None
        return self._snapshot(collection_id)

    def get_item(self, item_id):
        if item_id in self.collections:
            return Item(id=item_id, name=self.collections[item_id]['name'], kind=ItemKind.COLLECTION)
        for movie in self.movies:
            if movie.id == item_id:
                return Item(id=movie.id, name=movie.name, kind=ItemKind.MOVIE)
        return self.other_items.get(item_id)

    # CollectionStore

    def create_collection(self, name, item_ids=()):
        if name in self.fail_create:
            raise CollectionCreateError(f"cannot create {name}")
        collection_id = self.add_collection(name, item_ids)
        self.created.append(name)
        return self._snapshot(collection_id)

    def add_to_collection(self, collection_id, item_ids):
        name = self.collections[collection_id]['name']
        for item_id in item_ids:
            if (name, item_id) in self.fail_link:
                raise CollectionLinkError(f"cannot link {item_id} to {name}")
            self.collections[collection_id]['members'].add(item_id)
            self.links.append((collection_id, item_id))

    # UserRegistry

    def list_users(self):
        return list(self.users)

    # FavoritesStore

    def is_favorite(self, user, item):
        if (user.id, item.id) in self.fail_favorites:
            raise FavoritesError(f"favorites unavailable for {user.name}")
        return (user.id, item.id) in self.favorites

    def set_favorite(self, user, item, favorite):
        self.favorite_writes.append((user.id, item.id, favorite))
        if favorite:
            self.favorites.add((user.id, item.id))
        else:
            self.favorites.discard((user.id, item.id))


class ProgressRecorder:
    """Progress sink that keeps every reported value."""

    def __init__(self):
        self.values = []

    def __call__(self, value):
        self.values.append(value)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def progress():
    return ProgressRecorder()
