"""
Configuration utilities for Genrarr.
Handles config loading, section access, and the persisted plugin configuration.
"""

import os
import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import yaml

logger = logging.getLogger('genrarr')

# Project version - single source of truth
__version__ = "1.0.0"

# Plugin identity as registered with the host
PLUGIN_NAME = "Genre Collections"
PLUGIN_ID = "6e56f1bf-9f3a-48dc-bf85-632ae00dc014"
PLUGIN_DESCRIPTION = "Automatically creates collections for movie genres."

# Common constants
DEFAULT_INTERVAL_HOURS = 24         # Reconciliation schedule
DEFAULT_PAGE_SIZE = 500             # Items per Jellyfin catalog page
DEFAULT_LOG_RETENTION_DAYS = 7
PLUGIN_CONFIG_FILENAME = 'plugin.yml'

SUPPORTED_BACKENDS = ('jellyfin', 'plex')

# Genre/collection name comparison policies
NAME_MATCHING_EXACT = 'exact'
NAME_MATCHING_CASE_INSENSITIVE = 'case_insensitive'
NAME_MATCHING_POLICIES = (NAME_MATCHING_EXACT, NAME_MATCHING_CASE_INSENSITIVE)


class SomeOptions(Enum):
    """Example enum setting kept for parity with the host's settings page."""
    ONE_OPTION = 'OneOption'
    ANOTHER_OPTION = 'AnotherOption'


def _parse_option(value) -> SomeOptions:
    if isinstance(value, SomeOptions):
        return value
    for option in SomeOptions:
        if value in (option.value, option.name):
            return option
    logger.warning(f"Unknown options value {value!r}, using {SomeOptions.ANOTHER_OPTION.value}")
    return SomeOptions.ANOTHER_OPTION


def normalize_collection_ids(raw_ids) -> List[str]:
    """
    Clean a list of pinned collection ids.

    Accepts a list or a comma-separated string. Entries that are not valid
    GUIDs are dropped with a warning. Order is preserved and duplicates removed.

    Args:
        raw_ids: List of ids or comma-separated string

    Returns:
        Ordered list of canonical (lowercase, hyphenated) GUID strings
    """
    if not raw_ids:
        return []
    if isinstance(raw_ids, str):
        raw_ids = raw_ids.split(',')

    result = []
    for raw in raw_ids:
        text = str(raw).strip()
        if not text:
            continue
        try:
            canonical = str(uuid.UUID(text))
        except ValueError:
            logger.warning(f"Ignoring invalid collection id in configuration: {text!r}")
            continue
        if canonical not in result:
            result.append(canonical)
    return result


@dataclass
class PluginConfiguration:
    """Persisted plugin settings. Only the pinned ids drive behaviour."""

    pinned_collection_ids: List[str] = field(default_factory=list)
    true_false_setting: bool = True
    an_integer: int = 2
    a_string: str = "string"
    options: SomeOptions = SomeOptions.ANOTHER_OPTION

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'PluginConfiguration':
        data = data or {}
        defaults = cls()
        return cls(
            pinned_collection_ids=normalize_collection_ids(data.get('pinned_collection_ids')),
            true_false_setting=bool(data.get('true_false_setting', defaults.true_false_setting)),
            an_integer=int(data.get('an_integer', defaults.an_integer)),
            a_string=str(data.get('a_string', defaults.a_string)),
            options=_parse_option(data.get('options', defaults.options)),
        )

    def to_dict(self) -> Dict:
        return {
            'pinned_collection_ids': list(self.pinned_collection_ids),
            'true_false_setting': self.true_false_setting,
            'an_integer': self.an_integer,
            'a_string': self.a_string,
            'options': self.options.value,
        }


def get_config_section(config: Dict, key: str, default: Dict = None) -> Dict:
    """
    Get a config section case-insensitively.

    Args:
        config: The configuration dictionary
        key: The key to look for (will check lowercase and uppercase)
        default: Default value if key not found

    Returns:
        The config section or default value
    """
    if default is None:
        default = {}
    section = config.get(key.lower(), config.get(key.upper(), default))
    # An empty YAML section loads as None
    return section if section is not None else default


def get_backend_name(config: Dict) -> str:
    """Return the configured backend name, validated."""
    backend = str(config.get('backend', 'jellyfin')).strip().lower()
    if backend not in SUPPORTED_BACKENDS:
        raise ValueError(
            f"Unsupported backend '{backend}'. Expected one of: {', '.join(SUPPORTED_BACKENDS)}"
        )
    return backend


def get_name_matching(config: Dict) -> str:
    """Return the genre/collection name matching policy."""
    collections = get_config_section(config, 'collections')
    policy = str(collections.get('name_matching', NAME_MATCHING_EXACT)).strip().lower()
    if policy not in NAME_MATCHING_POLICIES:
        raise ValueError(
            f"Unsupported collections.name_matching '{policy}'. "
            f"Expected one of: {', '.join(NAME_MATCHING_POLICIES)}"
        )
    return policy


def get_interval_hours(config: Dict) -> float:
    """Return the reconciliation interval in hours (must be positive)."""
    schedule = get_config_section(config, 'schedule')
    hours = float(schedule.get('interval_hours', DEFAULT_INTERVAL_HOURS))
    if hours <= 0:
        raise ValueError(f"schedule.interval_hours must be positive, got {hours}")
    return hours


def get_log_retention_days(config: Dict) -> int:
    general = get_config_section(config, 'general')
    return int(general.get('log_retention_days', DEFAULT_LOG_RETENTION_DAYS))


def _load_plugin_config(config: dict, config_dir: str) -> dict:
    """
    Load plugin.yml into config['plugin'] if it exists.

    The module file takes precedence over a 'plugin' section in config.yml.
    """
    plugin_path = os.path.join(config_dir, PLUGIN_CONFIG_FILENAME)
    if os.path.exists(plugin_path):
        try:
            with open(plugin_path, 'r', encoding='utf-8') as f:
                plugin_config = yaml.safe_load(f)
                if plugin_config:
                    config['plugin'] = plugin_config
                    logger.debug(f"Loaded {PLUGIN_CONFIG_FILENAME}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not load {PLUGIN_CONFIG_FILENAME}: {e}")
    return config


def load_config(config_path: str) -> dict:
    """
    Load YAML configuration with plugin module file support.

    Loads config.yml and merges the optional plugin.yml next to it.

    Environment variables take precedence over all config values:
        JELLYFIN_URL      -> jellyfin.url
        JELLYFIN_API_KEY  -> jellyfin.api_key
        PLEX_URL          -> plex.url
        PLEX_TOKEN        -> plex.token

    Args:
        config_path: Path to config.yml file

    Returns:
        Parsed and merged config dictionary
    """
    try:
        with open(config_path, 'r', encoding='utf-8') as file:
            config = yaml.safe_load(file) or {}
        logger.info(f"Successfully loaded configuration from {config_path}")
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config from {config_path}: {e}")
        raise

    config_dir = os.path.dirname(config_path) or '.'
    config = _load_plugin_config(config, config_dir)

    env_overrides = [
        ('JELLYFIN_URL', 'jellyfin', 'url'),
        ('JELLYFIN_API_KEY', 'jellyfin', 'api_key'),
        ('PLEX_URL', 'plex', 'url'),
        ('PLEX_TOKEN', 'plex', 'token'),
    ]

    for env_var, section, key in env_overrides:
        value = os.environ.get(env_var)
        if value:
            if not config.get(section):
                config[section] = {}
            config[section][key] = value
            logger.debug(f"Using {env_var} from environment")

    return config


def get_plugin_configuration(config: Dict) -> PluginConfiguration:
    """Build the PluginConfiguration from the loaded config."""
    return PluginConfiguration.from_dict(get_config_section(config, 'plugin'))


def save_plugin_configuration(config_dir: str, plugin_config: PluginConfiguration) -> str:
    """
    Persist the plugin configuration to plugin.yml.

    Args:
        config_dir: Directory holding config.yml
        plugin_config: Settings to write

    Returns:
        Path of the written file
    """
    os.makedirs(config_dir, exist_ok=True)
    plugin_path = os.path.join(config_dir, PLUGIN_CONFIG_FILENAME)
    tmp_path = plugin_path + '.tmp'
    with open(tmp_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(plugin_config.to_dict(), f, default_flow_style=False, sort_keys=False)
    os.replace(tmp_path, plugin_path)
    logger.debug(f"Saved plugin configuration to {plugin_path}")
    return plugin_path
