"""
Genrarr Utilities Package.

This package contains the configuration, logging, and media server helpers
shared by the genre collection tasks. Common names are re-exported here.
"""

# Config utilities
from .config import (
    __version__,
    PLUGIN_NAME,
    PLUGIN_ID,
    DEFAULT_INTERVAL_HOURS,
    NAME_MATCHING_EXACT,
    NAME_MATCHING_CASE_INSENSITIVE,
    PluginConfiguration,
    SomeOptions,
    get_config_section,
    get_plugin_configuration,
    load_config,
    normalize_collection_ids,
    save_plugin_configuration,
)

# Display utilities
from .display import (
    RED,
    GREEN,
    YELLOW,
    CYAN,
    RESET,
    ColoredFormatter,
    TeeLogger,
    setup_logging,
    log_warning,
    log_error,
    show_progress,
    format_summary,
)

# Helpers
from .helpers import (
    get_project_root,
    normalize_genre_name,
    get_name_key_func,
    cleanup_old_logs,
)

# Library model and interfaces
from .models import Collection, Item, ItemKind, Movie, User
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
