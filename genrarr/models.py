"""
Library entities as seen by the genre collection jobs.
All entities are owned by the media server; these are read snapshots.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence


class ItemKind:
    """Item type names as reported by the media server."""
    MOVIE = 'Movie'
    COLLECTION = 'BoxSet'


@dataclass(frozen=True)
class Movie:
    id: str
    name: str
    # None when the server has no genre data for the movie
    genres: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class Collection:
    id: str
    name: str
    member_ids: FrozenSet[str] = frozenset()

    def contains(self, item_id: str) -> bool:
        return item_id in self.member_ids


@dataclass(frozen=True)
class User:
    id: str
    name: str


@dataclass(frozen=True)
class Item:
    """Any library entity resolved by id."""
    id: str
    name: str
    kind: str

    @property
    def is_collection(self) -> bool:
        return self.kind == ItemKind.COLLECTION
