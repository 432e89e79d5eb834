"""
Plugin wiring for Genrarr.

Connects the configured media server backend to the scheduled tasks and owns
the persisted plugin configuration. Saving a new configuration re-applies the
pinned collections.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from tasks.base import ScheduledTask
from tasks.genre_collections import GenreCollectionTask
from tasks.pins import PinStats, PinSynchronizer

from .config import (
    PLUGIN_DESCRIPTION,
    PLUGIN_ID,
    PLUGIN_NAME,
    PluginConfiguration,
    get_backend_name,
    get_name_matching,
    get_plugin_configuration,
    save_plugin_configuration,
)
from .library import Catalog, CollectionStore, FavoritesStore, UserRegistry

logger = logging.getLogger('genrarr')


class PinsNotSupportedError(Exception):
    """Raised when the backend has no users or favorites to pin with."""
    pass


@dataclass
class Backend:
    """Services provided by one media server connection."""

    name: str
    catalog: Catalog
    collection_store: CollectionStore
    user_registry: Optional[UserRegistry] = None
    favorites: Optional[FavoritesStore] = None

    @property
    def supports_pins(self) -> bool:
        return self.user_registry is not None and self.favorites is not None


def build_backend(config: Dict) -> Backend:
    """
    Create the backend selected by config['backend'].

    Args:
        config: Root config dict

    Returns:
        Backend with every service the server supports

    Raises:
        ValueError: If the backend is unknown or its settings are incomplete
    """
    backend_name = get_backend_name(config)

    if backend_name == 'plex':
        from .plex import create_plex_library
        library = create_plex_library(config)
        return Backend(name='plex', catalog=library, collection_store=library)

    from .jellyfin import create_jellyfin_client
    client = create_jellyfin_client(config)
    return Backend(
        name='jellyfin',
        catalog=client,
        collection_store=client,
        user_registry=client,
        favorites=client,
    )


class GenreCollectionsPlugin:
    """The plugin entry point: identity, configuration, and tasks."""

    name = PLUGIN_NAME
    id = PLUGIN_ID
    description = PLUGIN_DESCRIPTION

    def __init__(self, config: Dict, config_dir: str, backend: Backend):
        """
        Args:
            config: Loaded root config dict
            config_dir: Directory config.yml was loaded from; plugin.yml lives here
            backend: Connected media server services
        """
        self.config = config
        self.config_dir = config_dir
        self.backend = backend
        self.configuration = get_plugin_configuration(config)

    @classmethod
    def from_config_path(cls, config: Dict, config_path: str) -> 'GenreCollectionsPlugin':
        return cls(config, os.path.dirname(os.path.abspath(config_path)), build_backend(config))

    def get_scheduled_tasks(self) -> List[ScheduledTask]:
        return [
            GenreCollectionTask(
                self.backend.catalog,
                self.backend.collection_store,
                name_matching=get_name_matching(self.config),
            )
        ]

    def get_pin_synchronizer(self) -> PinSynchronizer:
        if not self.backend.supports_pins:
            raise PinsNotSupportedError(
                f"The {self.backend.name} backend has no per-user favorites; pinned collections are unavailable"
            )
        return PinSynchronizer(self.backend.catalog, self.backend.user_registry, self.backend.favorites)

    def apply_pins(self) -> PinStats:
        """Apply the currently saved pinned collection ids."""
        return self.get_pin_synchronizer().apply_pins(self.configuration.pinned_collection_ids)

    def update_configuration(self, configuration: PluginConfiguration) -> Optional[PinStats]:
        """
        Save a new configuration and react to the change.

        Returns:
            PinStats from re-applying pins, or None if the backend has no favorites
        """
        save_plugin_configuration(self.config_dir, configuration)
        self.configuration = configuration
        self.config['plugin'] = configuration.to_dict()
        logger.info(f"Saved configuration with {len(configuration.pinned_collection_ids)} pinned collections.")

        if not self.backend.supports_pins:
            logger.warning(f"Pinned collections are not supported by the {self.backend.name} backend.")
            return None
        return self.apply_pins()
