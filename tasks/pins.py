"""
Pinned collection synchronization.

Marks every configured collection as a favorite for every known user. This is
additive only: ids dropped from the configuration keep whatever favorite
state they had, since unpinning is not implemented.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from genrarr.library import Catalog, FavoritesStore, LibraryError, UserRegistry

logger = logging.getLogger('genrarr')


@dataclass
class PinStats:
    """Track statistics for one pin application."""

    users: int = 0
    pinned: int = 0
    already_pinned: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def summary(self) -> Dict[str, int]:
        return {
            'users': self.users,
            'pinned': self.pinned,
            'already_pinned': self.already_pinned,
            'skipped': self.skipped,
            'errors': len(self.errors),
        }


class PinSynchronizer:
    """Applies the pinned collection ids as per-user favorites."""

    def __init__(self, catalog: Catalog, users: UserRegistry, favorites: FavoritesStore):
        self.catalog = catalog
        self.users = users
        self.favorites = favorites

    def apply_pins(self, pinned_ids: Sequence[str]) -> PinStats:
        """
        Favorite each pinned collection for every user.

        Failures for one (user, id) pair are logged and do not stop the rest.

        Args:
            pinned_ids: Ordered collection ids from the plugin configuration

        Returns:
            PinStats for this application
        """
        stats = PinStats()
        if not pinned_ids:
            logger.info("No pinned collections configured.")
            return stats

        try:
            users = self.users.list_users()
        except LibraryError as e:
            logger.error(f"Could not apply pinned collections, failed to list users: {e}")
            stats.errors.append(f"list users: {e}")
            return stats

        stats.users = len(users)
        logger.info(f"Applying {len(pinned_ids)} pinned collections for {len(users)} users.")

        for user in users:
            for item_id in pinned_ids:
                try:
                    item = self.catalog.get_item(item_id)
                    if item is None or not item.is_collection:
                        logger.warning(f"Pinned item {item_id} is not a collection, skipping.")
                        stats.skipped += 1
                        continue

                    if self.favorites.is_favorite(user, item):
                        stats.already_pinned += 1
                        continue

                    self.favorites.set_favorite(user, item, True)
                    stats.pinned += 1
                    logger.debug(f"Pinned collection '{item.name}' for user '{user.name}'.")
                except LibraryError as e:
                    logger.error(f"Failed to pin {item_id} for user '{user.name}': {e}")
                    stats.errors.append(f"{user.name} / {item_id}: {e}")

        logger.info(
            f"Pinned collections applied: {stats.pinned} new, "
            f"{stats.already_pinned} unchanged, {len(stats.errors)} errors."
        )
        return stats
