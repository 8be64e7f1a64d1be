"""
Settings for Radio Atlas

Settings live in radio_atlas_settings.json in the working directory. Missing
keys fall back to DEFAULT_SETTINGS, so an empty or absent file is valid.
"""

import copy
import json
import logging
import os

logger = logging.getLogger(__name__)

SETTINGS_FILE = 'radio_atlas_settings.json'

DEFAULT_SETTINGS = {
    'directory': {
        'endpoints': [
            'https://de1.api.radio-browser.info/json',
            'https://nl1.api.radio-browser.info/json',
            'https://fr1.api.radio-browser.info/json',
        ],
        'user_agent': 'RadioAtlas/1.0',
        'timeout': 12,
    },
    'catalog': {
        'min_limit': 150,
        'max_limit': 3000,
        'quick_limit': 700,
        'expanded_limit': 2400,
        'brand_search_limit': 80,
        'regional_search_limit': 120,
        'discover_limit': 300,
        'discover_countries': 6,
        'discover_per_country': 5,
        'max_workers': 6,
    },
    'cache': {
        'refresh_interval_minutes': 30,
        'recent_countries': 6,
        'seed_countries': 3,
        'max_population_attempts': 5,
        'fetch_timeout': 28,
        'retry_fetch_timeout': 45,
        'population_limit': 2000,
        'refresh_limit': 600,
        'launch_limit': 400,
        'prefetch_artwork': 16,
    },
    'playback': {
        'connect_timeout': 12,
        'volume': 0.8,
        'mpv_path': 'mpv',
    },
    'search': {
        'debounce_ms': 300,
        'limit': 120,
    },
    'artwork': {
        'cache_dir': os.path.join(os.path.expanduser('~'), '.cache', 'radio_atlas', 'logos'),
        'max_bytes': 52428800,  # 50MB
        'timeout': 8,
    },
    'storage': {
        'state_file': 'radio_atlas_state.json',
    },
    'logging': {
        'file': 'radio_atlas.log',
        'max_bytes': 10485760,  # 10MB
        'backup_count': 5,
        'console_level': 'INFO',
        'file_level': 'ERROR',
    },
    'web': {
        'host': '127.0.0.1',
        'port': 5000,
    },
}


def _merge(base, overrides):
    """Recursively merge overrides into a copy of base"""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(settings_file=SETTINGS_FILE):
    """Load settings from radio_atlas_settings.json

    Args:
        settings_file: Path to the settings file

    Returns:
        Settings dict (defaults merged with file contents)
    """
    if not os.path.exists(settings_file):
        return copy.deepcopy(DEFAULT_SETTINGS)

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except Exception as e:
        logger.error(f"Error loading settings from {settings_file}: {e}")
        return copy.deepcopy(DEFAULT_SETTINGS)

    if not isinstance(data, dict):
        logger.warning(f"Ignoring settings file {settings_file}: not a JSON object")
        return copy.deepcopy(DEFAULT_SETTINGS)

    return _merge(DEFAULT_SETTINGS, data)


def save_settings(settings, settings_file=SETTINGS_FILE):
    """Save settings to radio_atlas_settings.json

    Args:
        settings: Settings dict to save
        settings_file: Path to the settings file

    Returns:
        True if saved successfully, False otherwise
    """
    try:
        with open(settings_file, 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2)
        logger.info(f"Settings saved to {settings_file}")
        return True
    except Exception as e:
        logger.error(f"Error saving settings: {e}")
        return False
