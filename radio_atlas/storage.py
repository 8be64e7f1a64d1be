"""
Persistent state for Radio Atlas

A small JSON file holds everything that must survive restarts:
- favorites (station presets)
- selected country
- initial cache population flag, populated countries and per-country
  failed attempt counters

The merged catalog itself is never written here.
"""

import json
import logging
import os
import threading

from radio_atlas.models import Station

logger = logging.getLogger(__name__)

FAVORITES_KEY = 'favorites'
SELECTED_COUNTRY_KEY = 'selected_country'
INITIAL_CACHE_KEY = 'initial_cache_complete'
POPULATED_KEY = 'populated_countries'
FAILURES_KEY = 'population_failures'


class StateStore:
    """Thread-safe key-value store backed by a JSON file

    Every set() writes the whole file; the state is small.
    """

    def __init__(self, path):
        self.path = path
        self._lock = threading.RLock()
        self._data = self._read()

    def _read(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except Exception as e:
            logger.error(f"Error reading state file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring state file {self.path}: not a JSON object")
            return {}
        return data

    def _write(self):
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_path, self.path)
        except Exception as e:
            logger.error(f"Error writing state file {self.path}: {e}")

    def get(self, key, default=None):
        with self._lock:
            value = self._data.get(key, default)
            # Callers get copies so they cannot mutate the store behind the lock
            return json.loads(json.dumps(value)) if value is not None else default

    def set(self, key, value):
        with self._lock:
            self._data[key] = value
            self._write()

    # ==================== POPULATION BOOKKEEPING ====================

    def is_initial_cache_complete(self):
        return bool(self.get(INITIAL_CACHE_KEY, False))

    def set_initial_cache_complete(self, complete=True):
        self.set(INITIAL_CACHE_KEY, bool(complete))

    def failure_count(self, country_id):
        return int(self.get(FAILURES_KEY, {}).get(country_id, 0))

    def failure_counts(self):
        return self.get(FAILURES_KEY, {})

    def record_failure(self, country_id):
        """Increment a country's failed attempt counter

        Returns:
            New counter value
        """
        with self._lock:
            failures = self.get(FAILURES_KEY, {})
            failures[country_id] = int(failures.get(country_id, 0)) + 1
            self.set(FAILURES_KEY, failures)
            return failures[country_id]

    def record_success(self, country_id):
        """Reset a country's counter and mark it populated"""
        with self._lock:
            failures = self.get(FAILURES_KEY, {})
            if failures.pop(country_id, None) is not None:
                self.set(FAILURES_KEY, failures)

            populated = self.get(POPULATED_KEY, [])
            if country_id not in populated:
                populated.append(country_id)
                self.set(POPULATED_KEY, populated)

    def populated_countries(self):
        return set(self.get(POPULATED_KEY, []))


class FavoritesStore:
    """Favorite stations, persisted in the StateStore

    Only round-trip fidelity is guaranteed; order is whatever was saved.
    """

    def __init__(self, state):
        self.state = state

    def load(self):
        entries = self.state.get(FAVORITES_KEY, [])
        stations = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            station = Station.from_api(entry)
            if station.station_id:
                stations.append(station)
        return stations

    def save(self, stations):
        self.state.set(FAVORITES_KEY, [s.to_dict() for s in stations])
