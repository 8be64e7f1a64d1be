"""
Radio Library - the application core of Radio Atlas

Ties the pieces together for the HTTP API and the CLI:
- Country loading (cached Snapshot first, then a quick fetch, then the
  expanded fetch with brand and regional discovery)
- Search, discover list and favorites
- Playback through the failover engine
- Background cache maintenance on the scheduler

Loading rules:
- Only the newest-started load may apply its results; a load for another
  country, or a later load for the same one, silently supersedes it
- A failed load keeps the previous Snapshot on screen, marks it stale and
  re-raises DirectoryUnavailableError
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import requests

from radio_atlas import browse
from radio_atlas.aggregator import CatalogAggregator
from radio_atlas.artwork import ArtworkProvider
from radio_atlas.cache import LoadGuard, SnapshotCache
from radio_atlas.directory import DirectoryClient, DirectoryUnavailableError
from radio_atlas.merger import build_snapshot, curate_top_stations, sanitize_stations, unique_by_id
from radio_atlas.models import Snapshot
from radio_atlas.playback import PlaybackEngine
from radio_atlas.presets import COUNTRY_PRESETS
from radio_atlas.scheduler import RefreshScheduler
from radio_atlas.search import SearchController
from radio_atlas.storage import SELECTED_COUNTRY_KEY, FavoritesStore, StateStore

logger = logging.getLogger(__name__)


class RadioLibrary:
    """Application core: catalog view, favorites and player

    Attributes:
        selected_country: CountryPreset currently shown
        snapshot: Snapshot currently shown (empty before the first load)
        is_loading: True while the selected country's load is in flight
        error_message / info_message: Status lines for the UI
        discover_stations: Flagship stations across the first presets
        favorites: Favorite stations
    """

    def __init__(self, aggregator, cache, engine, state, search=None, presets=None,
                 quick_limit=700, expanded_limit=2400, discover_countries=6,
                 discover_per_country=5, discover_limit=300, refresh_interval_minutes=30):
        self.aggregator = aggregator
        self.cache = cache
        self.engine = engine
        self.state = state
        self.search_controller = search or SearchController(aggregator.client)
        self.presets = list(presets or COUNTRY_PRESETS)
        self.favorites_store = FavoritesStore(state)

        self.quick_limit = quick_limit
        self.expanded_limit = expanded_limit
        self.discover_countries = discover_countries
        self.discover_per_country = discover_per_country
        self.discover_limit = discover_limit
        self.refresh_interval_minutes = refresh_interval_minutes

        self.artwork = cache.artwork
        self.guard = LoadGuard()
        self.scheduler = None
        self._lock = threading.RLock()
        # Held across a snapshot swap and the engine's variant update; taken before _lock
        self._apply_lock = threading.Lock()

        self.selected_country = self._initial_country()
        self.snapshot = Snapshot()
        self.is_loading = False
        self.error_message = None
        self.info_message = None
        self.discover_stations = []
        self.search_results = []
        self.favorites = self.favorites_store.load()

        self.engine.on_no_playable_source = self._on_no_playable_source

    @classmethod
    def from_settings(cls, settings, backend=None):
        """Build the full object graph from settings

        Args:
            settings: Settings dict (see radio_atlas.settings)
            backend: Audio backend; defaults to an mpv subprocess
        """
        if backend is None:
            from radio_atlas.mpv_backend import MpvBackend
            backend = MpvBackend.from_settings(settings)

        storage = settings.get('storage', {})
        catalog = settings.get('catalog', {})
        cache_config = settings.get('cache', {})

        client = DirectoryClient.from_settings(settings)
        aggregator = CatalogAggregator.from_settings(client, settings)
        state = StateStore(storage.get('state_file', 'radio_atlas_state.json'))
        artwork = ArtworkProvider.from_settings(settings)
        cache = SnapshotCache.from_settings(aggregator, state, COUNTRY_PRESETS, settings, artwork=artwork)
        engine = PlaybackEngine.from_settings(backend, settings)
        search = SearchController.from_settings(client, settings)

        return cls(
            aggregator,
            cache,
            engine,
            state,
            search=search,
            quick_limit=catalog.get('quick_limit', 700),
            expanded_limit=catalog.get('expanded_limit', 2400),
            discover_countries=catalog.get('discover_countries', 6),
            discover_per_country=catalog.get('discover_per_country', 5),
            discover_limit=catalog.get('discover_limit', 300),
            refresh_interval_minutes=cache_config.get('refresh_interval_minutes', 30),
        )

    def _initial_country(self):
        saved = self.state.get(SELECTED_COUNTRY_KEY)
        return self.get_preset(saved) or self.presets[0]

    def get_preset(self, country_id):
        for preset in self.presets:
            if preset.id == country_id:
                return preset
        return None

    # ==================== COUNTRY LOADING ====================

    def is_load_active(self, token, preset):
        with self._lock:
            return self.guard.is_active(token, preset.id) and self.selected_country.id == preset.id

    def _apply_if_active(self, token, preset, snapshot):
        with self._apply_lock:
            with self._lock:
                if not self.is_load_active(token, preset):
                    return False
                self.cache.store_latest(preset.id, snapshot)
                self.snapshot = snapshot
            self.engine.set_station_variants(snapshot.variant_map())
        return True

    def load_country(self, preset):
        """Load a country into the view

        Args:
            preset: CountryPreset

        Returns:
            The applied Snapshot, or None when the load was superseded

        Raises:
            DirectoryUnavailableError: If the directory has nothing for the
                country and this load is still the active one
        """
        with self._apply_lock:
            with self._lock:
                token = self.guard.begin(preset.id)
                self.selected_country = preset
                self.is_loading = True
                self.error_message = None
                self.info_message = None

                cached = self.cache.get(preset.id)
                if cached is not None:
                    self.info_message = f"Refreshing {preset.display_name} stations..."
                self.snapshot = cached if cached is not None else Snapshot()
                shown = self.snapshot
            self.engine.set_station_variants(shown.variant_map())

        self.state.set(SELECTED_COUNTRY_KEY, preset.id)
        self.cache.record_visit(preset.id)
        logger.info(f"Loading {preset.display_name}")

        try:
            quick = self.aggregator.fetch_country_stations(preset, self.quick_limit)
            if not self.is_load_active(token, preset):
                return None
            self._apply_if_active(token, preset, build_snapshot(quick, preset))

            expanded, brands, regional = self._fetch_expanded(preset)
            if not self.is_load_active(token, preset):
                return None

            final = build_snapshot(quick + expanded + brands + regional, preset)
            if not self._apply_if_active(token, preset, final):
                return None

            self.state.record_success(preset.id)
            with self._lock:
                self.info_message = None
            logger.info(f"Loaded {final.station_count} stations for {preset.display_name} "
                        f"({len(final.top_stations)} top)")
            return final

        except DirectoryUnavailableError:
            if not self.is_load_active(token, preset):
                return None
            self.cache.mark_stale(preset.id)
            with self._lock:
                self.error_message = f"Failed loading {preset.display_name}."
                self.info_message = None
            logger.warning(f"Failed loading {preset.display_name}; keeping previous stations")
            raise

        finally:
            with self._lock:
                if self.is_load_active(token, preset):
                    self.is_loading = False

    def _fetch_expanded(self, preset):
        """Expanded listing plus discovery, concurrently

        A failed expanded listing only costs its own contribution; the quick
        results are already on screen.
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix='expand') as executor:
            expanded_future = executor.submit(
                self.aggregator.fetch_country_stations, preset, self.expanded_limit)
            discovery_future = executor.submit(self.aggregator.fetch_discovery_stations, preset)

            try:
                expanded = expanded_future.result()
            except requests.RequestException as e:
                logger.warning(f"Expanded listing failed for {preset.display_name}: {e}")
                expanded = []

            brands, regional = discovery_future.result()
        return list(expanded), list(brands), list(regional)

    def select_country(self, country_id):
        """Load a country by preset id

        Raises:
            KeyError: Unknown country id
            DirectoryUnavailableError: See load_country()
        """
        preset = self.get_preset(country_id)
        if preset is None:
            raise KeyError(country_id)
        return self.load_country(preset)

    def browse(self, sort=browse.StationSort.ALPHABETICAL, station_filter=browse.StationFilter.ALL):
        with self._lock:
            snapshot = self.snapshot
            favorites = list(self.favorites)
        return browse.filter_and_sort(snapshot, sort, station_filter, favorites)

    def genres(self):
        return browse.genre_buttons(self.snapshot.all_stations)

    def stations_for_genre(self, genre):
        return browse.genre_filtered(self.snapshot.all_stations, genre)

    # ==================== SEARCH & DISCOVER ====================

    def search(self, query, limit=None):
        """Search stations by name across every country

        Raises:
            requests.RequestException: If the directory search failed
        """
        stations = self.search_controller.search_now(query, limit)
        with self._lock:
            self.search_results = list(stations)
        return stations

    def submit_search(self, query):
        """Feed one keystroke's worth of query text to the debounced search

        Returns:
            The search token
        """
        return self.search_controller.submit(query)

    def latest_search(self):
        return self.search_controller.latest()

    def load_discover(self):
        """Top curated stations from the first few presets

        Returns:
            List of Station, unique by id
        """
        merged = []
        for preset in self.presets[:self.discover_countries]:
            try:
                stations = self.aggregator.fetch_country_stations(preset, self.discover_limit)
            except requests.RequestException as e:
                logger.info(f"Skipping {preset.display_name} in discover: {e}")
                continue
            top = curate_top_stations(sanitize_stations(stations), preset)
            merged.extend(top[:self.discover_per_country])

        with self._lock:
            self.discover_stations = unique_by_id(merged)
            return list(self.discover_stations)

    # ==================== FAVORITES ====================

    def is_favorite(self, station):
        with self._lock:
            return any(f.station_id == station.station_id for f in self.favorites)

    def toggle_favorite(self, station):
        """Add or remove a favorite

        Returns:
            True if the station is now a favorite
        """
        with self._lock:
            if self.is_favorite(station):
                self.favorites = [f for f in self.favorites if f.station_id != station.station_id]
                added = False
            else:
                self.favorites.append(station)
                added = True
            self.favorites_store.save(self.favorites)
        logger.info(f"{'Added' if added else 'Removed'} favorite: {station.name}")
        return added

    # ==================== PLAYBACK ====================

    def find_station(self, station_id):
        """Look a station up in everything currently known to the library"""
        with self._lock:
            pools = [
                self.snapshot.all_stations,
                [s for cluster in self.snapshot.variants.values() for s in cluster.stations],
                self.favorites,
                self.discover_stations,
                self.search_results,
                self.search_controller.results,
            ]
        for pool in pools:
            for station in pool:
                if station.station_id == station_id:
                    return station
        return None

    def play(self, station, queue=None):
        self.engine.play(station, queue)
        return self.engine.status()

    def play_next(self):
        return self.engine.play_next()

    def play_previous(self):
        return self.engine.play_previous()

    def toggle_playback(self):
        return self.engine.toggle_playback()

    def set_volume(self, level):
        return self.engine.set_volume(level)

    def stop(self):
        self.engine.stop()

    def _on_no_playable_source(self, station):
        message = self.engine.last_error or f"No playable stream for {station.name}"
        with self._lock:
            self.error_message = message

    # ==================== BACKGROUND ====================

    def start_background(self):
        """Start the refresh scheduler and queue the launch refresh"""
        if self.scheduler is not None:
            return self.scheduler
        self.scheduler = RefreshScheduler(self.cache.refresh_recent, self.refresh_interval_minutes)
        self.scheduler.run_at_launch(self.run_launch_refresh)
        return self.scheduler

    def queue_refresh(self):
        """Queue a refresh of recently visited countries on the scheduler

        Returns:
            True if queued, False if one is already pending

        Raises:
            RuntimeError: If background work has not been started
        """
        if self.scheduler is None:
            raise RuntimeError("Background scheduler not started")
        return self.scheduler.run_refresh_now()

    def run_launch_refresh(self):
        """Quick launch refresh, then the initial population pass"""
        self.cache.quick_refresh_at_launch(self.selected_country.id)
        self.cache.populate_all()
        if self.scheduler is not None:
            self.scheduler.start()

    def shutdown(self):
        logger.info("Shutting down radio library...")
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
        self.search_controller.cancel()
        self.engine.stop()
        backend_shutdown = getattr(self.engine.backend, 'shutdown', None)
        if backend_shutdown:
            backend_shutdown()
        self.cache.shutdown()

    def status(self):
        """Library status for the HTTP API"""
        with self._lock:
            status = {
                'selected_country': self.selected_country.to_dict(),
                'station_count': self.snapshot.station_count,
                'top_station_count': len(self.snapshot.top_stations),
                'is_loading': self.is_loading,
                'is_stale': self.cache.is_stale(self.selected_country.id),
                'error_message': self.error_message,
                'info_message': self.info_message,
                'favorites': len(self.favorites),
            }
        status['recent_countries'] = self.cache.recent_countries()
        status['initial_cache_complete'] = self.state.is_initial_cache_complete()
        status['scheduler_running'] = bool(self.scheduler and self.scheduler.is_running())
        status['player'] = self.engine.status()
        return status
