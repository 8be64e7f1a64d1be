"""
Radio Atlas - Package Architecture

Browse internet radio by country, backed by the public Radio Browser
directory, with stream failover playback through mpv.

Package Structure:
------------------
radio_atlas/
├── __init__.py           # Package initialization (this file)
├── models.py             # Station, CountryPreset, VariantCluster, Snapshot
├── presets.py            # Curated countries and their flagship brands
├── normalization.py      # Name normalization, canonical keys, brand matching
├── directory.py          # Radio Browser client (endpoint failover)
├── aggregator.py         # Concurrent multi-query fetch for one country
├── merger.py             # Sanitize, cluster variants, curate, score
├── cache.py              # Snapshot cache + population/refresh passes
├── scheduler.py          # APScheduler wrapper for background refresh
├── playback.py           # Stream selector & failover state machine
├── mpv_backend.py        # mpv subprocess audio backend (JSON IPC)
├── artwork.py            # Station logos with a size-capped disk cache
├── search.py             # Debounced search-as-you-type
├── browse.py             # Sort/filter/genre views
├── storage.py            # JSON state file (favorites, population bookkeeping)
├── settings.py           # radio_atlas_settings.json
├── logging_setup.py      # Console + rotating file logging
├── library.py            # Application core used by the API and CLI
├── cli.py                # Command-line interface
└── web/                  # Flask JSON API

Architecture Principles:
-----------------------
1. Snapshots are immutable - a country's catalog is replaced, never edited
2. Newest load wins - superseded loads, searches and playback attempts drop
   their results
3. Failures keep data - a failed refresh leaves the previous Snapshot
4. Single integrated app - Flask + APScheduler + player in one process

Data Flow:
---------
  Radio Browser ──► Aggregator ──► Merger ──► Snapshot Cache ──► Library
                                                                   │
                    mpv ◄── Playback Engine ◄──────────────────────┘

Usage:
------
# API server with background refresh
python -m radio_atlas.cli --serve

# One-shot commands
python -m radio_atlas.cli --load-country uk
python -m radio_atlas.cli --search "jazz"
"""

__version__ = "1.0.0"
__author__ = "Radio Atlas Team"


def get_version():
    """Get the package version

    Returns:
        str: The version number
    """
    return __version__


__all__ = [
    "__version__",
    "get_version",
]
