"""
Snapshot Cache for Radio Atlas

Holds the latest Snapshot per country and runs the background passes that
keep it warm:
- populate_all(): one-time pass over every preset (persisted flag and
  per-country attempt counters, capped retries across runs)
- quick_refresh_at_launch(): selected country, seed countries and countries
  whose last population attempt failed
- refresh_recent(): periodic pass over recently visited countries

Key Principle: a failed or timed-out fetch never removes data. The previous
Snapshot stays in place; only the country's failure counter moves.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Dict, List, Optional

from radio_atlas.merger import build_snapshot
from radio_atlas.models import CountryPreset, Snapshot

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached Snapshot with its fetch time"""
    snapshot: Snapshot
    fetched_at: float
    stale: bool = False


class LoadGuard:
    """Per-country load tokens

    Starting a load for a country supersedes every earlier load for it; only
    the newest-started load may write its result.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counter = 0
        self._latest: Dict[str, int] = {}

    def begin(self, country_id: str) -> int:
        with self._lock:
            self._counter += 1
            self._latest[country_id] = self._counter
            return self._counter

    def is_active(self, token: int, country_id: str) -> bool:
        with self._lock:
            return self._latest.get(country_id) == token


class SnapshotCache:
    """Keyed store of per-country Snapshots plus refresh bookkeeping

    Attributes:
        aggregator: CatalogAggregator used for background fetches
        state: StateStore for the population flag and failure counters
        presets: Ordered list of CountryPreset covered by the passes
        guard: LoadGuard shared with foreground loads
    """

    def __init__(self, aggregator, state, presets: List[CountryPreset], artwork=None,
                 max_attempts=5, fetch_timeout=28, retry_fetch_timeout=45,
                 recent_limit=6, seed_count=3, population_limit=2000,
                 refresh_limit=600, launch_limit=400, prefetch_artwork=16):
        self.aggregator = aggregator
        self.state = state
        self.presets = list(presets)
        self.artwork = artwork
        self.max_attempts = max_attempts
        self.fetch_timeout = fetch_timeout
        self.retry_fetch_timeout = retry_fetch_timeout
        self.recent_limit = recent_limit
        self.seed_count = seed_count
        self.population_limit = population_limit
        self.refresh_limit = refresh_limit
        self.launch_limit = launch_limit
        self.prefetch_artwork = prefetch_artwork

        self.guard = LoadGuard()
        self._entries: Dict[str, CacheEntry] = {}
        self._recent: List[str] = []
        self._lock = threading.RLock()
        self._artwork_executor = None

    @classmethod
    def from_settings(cls, aggregator, state, presets, settings, artwork=None):
        """Create a cache from the 'cache' settings section"""
        config = settings.get('cache', {}) if settings else {}
        return cls(
            aggregator,
            state,
            presets,
            artwork=artwork,
            max_attempts=config.get('max_population_attempts', 5),
            fetch_timeout=config.get('fetch_timeout', 28),
            retry_fetch_timeout=config.get('retry_fetch_timeout', 45),
            recent_limit=config.get('recent_countries', 6),
            seed_count=config.get('seed_countries', 3),
            population_limit=config.get('population_limit', 2000),
            refresh_limit=config.get('refresh_limit', 600),
            launch_limit=config.get('launch_limit', 400),
            prefetch_artwork=config.get('prefetch_artwork', 16),
        )

    # ==================== READS AND WRITES ====================

    def get(self, country_id: str) -> Optional[Snapshot]:
        """Latest Snapshot for a country (possibly stale), or None"""
        with self._lock:
            entry = self._entries.get(country_id)
            return entry.snapshot if entry else None

    def entry(self, country_id: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(country_id)

    def is_stale(self, country_id: str) -> bool:
        with self._lock:
            entry = self._entries.get(country_id)
            return bool(entry and entry.stale)

    def store(self, country_id: str, snapshot: Snapshot, token: Optional[int] = None) -> bool:
        """Replace a country's Snapshot

        Args:
            country_id: Preset id
            snapshot: New Snapshot
            token: LoadGuard token of the writing load; a superseded token is
                   rejected

        Returns:
            True if stored, False if the load was superseded
        """
        with self._lock:
            if token is not None and not self.guard.is_active(token, country_id):
                logger.debug(f"Discarding superseded snapshot for {country_id}")
                return False
            self._entries[country_id] = CacheEntry(snapshot=snapshot, fetched_at=time.time())
            return True

    def store_latest(self, country_id: str, snapshot: Snapshot) -> None:
        """Store a Snapshot and supersede any in-flight background write"""
        with self._lock:
            self.store(country_id, snapshot, self.guard.begin(country_id))

    def mark_stale(self, country_id: str) -> None:
        with self._lock:
            entry = self._entries.get(country_id)
            if entry:
                entry.stale = True

    def cached_countries(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    # ==================== RECENT COUNTRIES ====================

    def record_visit(self, country_id: str) -> None:
        """Move a country to the front of the recency list"""
        with self._lock:
            if country_id in self._recent:
                self._recent.remove(country_id)
            self._recent.insert(0, country_id)
            del self._recent[self.recent_limit:]

    def recent_countries(self) -> List[str]:
        with self._lock:
            return list(self._recent)

    # ==================== FETCHING ====================

    def _fetch_with_timeout(self, preset, limit, timeout):
        # One thread per fetch so a hung request never delays the next country
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"fetch-{preset.id}")
        try:
            future = executor.submit(self.aggregator.collect, preset, limit)
            return future.result(timeout=timeout)
        finally:
            executor.shutdown(wait=False)

    def refresh_country(self, preset: CountryPreset, limit: int) -> bool:
        """Fetch, merge and store one country

        Timeout or failure leaves the previous Snapshot untouched and bumps
        the country's failure counter; success resets it.

        Returns:
            True on success
        """
        retrying = self.state.failure_count(preset.id) > 0
        timeout = self.retry_fetch_timeout if retrying else self.fetch_timeout
        token = self.guard.begin(preset.id)

        try:
            stations = self._fetch_with_timeout(preset, limit, timeout)
            snapshot = build_snapshot(stations, preset)
        except FutureTimeoutError:
            count = self.state.record_failure(preset.id)
            logger.warning(f"Timed out refreshing {preset.display_name} after {timeout}s (failures: {count})")
            return False
        except Exception as e:
            count = self.state.record_failure(preset.id)
            logger.warning(f"Error refreshing {preset.display_name}: {e} (failures: {count})")
            return False

        self.state.record_success(preset.id)
        if self.store(preset.id, snapshot, token):
            logger.info(f"Cached {snapshot.station_count} stations for {preset.display_name}")
            self._prefetch_artwork(snapshot)
        return True

    def _prefetch_artwork(self, snapshot):
        """Warm the artwork cache in the background; never blocks the pass"""
        if not self.artwork or self.prefetch_artwork <= 0:
            return

        with self._lock:
            if self._artwork_executor is None:
                self._artwork_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='artwork')
            executor = self._artwork_executor

        for station in snapshot.all_stations[:self.prefetch_artwork]:
            executor.submit(self._fetch_artwork_quietly, station)

    def _fetch_artwork_quietly(self, station):
        try:
            self.artwork.fetch_artwork(station)
        except Exception as e:
            logger.debug(f"Artwork prefetch failed for {station.name}: {e}")

    def _run_pass(self, name, presets, limit):
        results = {'refreshed': 0, 'failed': 0, 'total': len(presets)}
        for preset in presets:
            if self.refresh_country(preset, limit):
                results['refreshed'] += 1
            else:
                results['failed'] += 1
        logger.info(f"{name} complete: {results['refreshed']}/{results['total']} refreshed, {results['failed']} failed")
        return results

    # ==================== PASSES ====================

    def populate_all(self):
        """One-time population of every preset

        Countries that already succeeded are skipped, as are countries whose
        failed attempts reached max_attempts. The completion flag is written
        once every preset is either populated or exhausted.

        Returns:
            dict: Pass results, with 'skipped' for exhausted countries
        """
        if self.state.is_initial_cache_complete():
            logger.info("Initial cache population already complete")
            return {'refreshed': 0, 'failed': 0, 'skipped': 0, 'total': 0}

        populated = self.state.populated_countries()
        pending = []
        skipped = 0
        for preset in self.presets:
            if preset.id in populated:
                continue
            failures = self.state.failure_count(preset.id)
            if failures >= self.max_attempts:
                logger.warning(f"Skipping {preset.display_name}: {failures} failed population attempts")
                skipped += 1
                continue
            pending.append(preset)

        logger.info(f"Populating cache for {len(pending)} countries")
        results = self._run_pass('Initial population', pending, self.population_limit)
        results['skipped'] = skipped

        if self._population_settled():
            self.state.set_initial_cache_complete(True)
            logger.info("Initial cache population marked complete")

        return results

    def _population_settled(self):
        populated = self.state.populated_countries()
        return all(
            preset.id in populated or self.state.failure_count(preset.id) >= self.max_attempts
            for preset in self.presets
        )

    def launch_countries(self, selected_id: Optional[str]) -> List[CountryPreset]:
        """Countries covered by the launch-time quick refresh"""
        wanted = []
        if selected_id:
            wanted.append(selected_id)
        wanted.extend(p.id for p in self.presets[:self.seed_count])

        failures = self.state.failure_counts()
        wanted.extend(
            country_id for country_id, count in failures.items()
            if 0 < count < self.max_attempts
        )

        by_id = {p.id: p for p in self.presets}
        ordered = []
        for country_id in wanted:
            preset = by_id.get(country_id)
            if preset and preset not in ordered:
                ordered.append(preset)
        return ordered

    def quick_refresh_at_launch(self, selected_id: Optional[str] = None):
        """Refresh the selected country, the seed countries and failed ones"""
        return self._run_pass('Launch refresh', self.launch_countries(selected_id), self.launch_limit)

    def refresh_recent(self):
        """Periodic refresh limited to recently visited countries"""
        recent = set(self.recent_countries())
        presets = [p for p in self.presets if p.id in recent]
        if not presets:
            logger.debug("No recently visited countries to refresh")
            return {'refreshed': 0, 'failed': 0, 'total': 0}
        return self._run_pass('Periodic refresh', presets, self.refresh_limit)

    def shutdown(self):
        with self._lock:
            executor = self._artwork_executor
            self._artwork_executor = None
        if executor:
            executor.shutdown(wait=False)
