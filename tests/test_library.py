"""
Radio library tests

Country loading (two phases, supersession, failure handling), discover,
favorites, playback wiring and the background entry points.
"""

import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from radio_atlas.cache import SnapshotCache
from radio_atlas.directory import DirectoryUnavailableError
from radio_atlas.library import RadioLibrary
from radio_atlas.merger import build_snapshot
from radio_atlas.playback import PlaybackEngine, PlaybackState
from radio_atlas.storage import FavoritesStore, StateStore
from tests.fakes import FakeAggregator, FakeBackend, make_station


def ids(stations):
    return [s.station_id for s in stations]


@pytest.mark.unit
class TestLoadCountry:
    def test_two_phase_load(self, library, uk_preset, state):
        snapshot = library.load_country(uk_preset)

        assert ids(snapshot.all_stations) == ['bbc1', 'capital', 'heart', 'jazzfm']
        assert library.snapshot is snapshot
        assert library.cache.get('uk') is snapshot
        assert not library.is_loading
        assert library.info_message is None

        limits = [c[0][1] for c in library.aggregator.fetch_country_stations.call_args_list]
        assert limits == [700, 2400]
        library.aggregator.fetch_discovery_stations.assert_called_once_with(uk_preset)

        assert state.get('selected_country') == 'uk'
        assert 'uk' in state.populated_countries()
        assert library.cache.recent_countries() == ['uk']

    def test_engine_receives_variants(self, library, uk_preset, backend):
        library.load_country(uk_preset)
        library.play(library.find_station('heart'))

        assert backend.loaded[0] == 'http://streams.example.com/heart-aac'

    def test_cached_snapshot_shown_while_loading(self, library, us_preset):
        library.cache.store('us', build_snapshot([make_station('old-us', 'Old US FM')], us_preset))
        seen = {}

        def fetch(preset, limit=800):
            seen.setdefault('stations', ids(library.snapshot.all_stations))
            seen.setdefault('info', library.info_message)
            return [make_station('kexp', 'KEXP 90.3', country='United States')]

        library.aggregator.fetch_country_stations.side_effect = fetch
        library.load_country(us_preset)

        assert seen['stations'] == ['old-us']
        assert seen['info'] == 'Refreshing United States stations...'
        assert ids(library.snapshot.all_stations) == ['kexp']

    def test_failure_keeps_previous_snapshot(self, library, uk_preset):
        previous = library.load_country(uk_preset)
        library.aggregator.fetch_country_stations.side_effect = DirectoryUnavailableError('down')

        with pytest.raises(DirectoryUnavailableError):
            library.load_country(uk_preset)

        assert library.snapshot is previous
        assert library.cache.is_stale('uk')
        assert library.error_message == 'Failed loading United Kingdom.'
        assert not library.is_loading

    def test_failed_expanded_listing_is_partial(self, library, uk_preset, uk_stations):
        def fetch(preset, limit=800):
            if limit == 2400:
                raise DirectoryUnavailableError('expanded down')
            return list(uk_stations[:2])

        library.aggregator.fetch_country_stations.side_effect = fetch
        snapshot = library.load_country(uk_preset)

        assert ids(snapshot.all_stations) == ['bbc1', 'capital']
        assert library.error_message is None

    def test_discovery_results_merged(self, library, uk_preset):
        library.aggregator.fetch_discovery_stations.return_value = (
            [make_station('heart-dance', 'Heart Dance')],
            [make_station('radio-x', 'Radio X')],
        )

        snapshot = library.load_country(uk_preset)

        assert {'heart-dance', 'radio-x'} <= set(ids(snapshot.all_stations))

    def test_switching_country_supersedes_load(self, library, uk_preset, us_preset, uk_stations):
        switched = []
        us_stations = [make_station('kexp', 'KEXP 90.3', country='United States')]

        def fetch(preset, limit=800):
            if preset.id == 'uk' and not switched:
                switched.append(True)
                library.load_country(us_preset)
                return list(uk_stations)
            return list(uk_stations) if preset.id == 'uk' else list(us_stations)

        library.aggregator.fetch_country_stations.side_effect = fetch

        assert library.load_country(uk_preset) is None
        assert library.selected_country == us_preset
        assert ids(library.snapshot.all_stations) == ['kexp']
        assert library.cache.get('uk') is None

    def test_superseded_failure_is_silent(self, library, uk_preset, us_preset):
        def fetch(preset, limit=800):
            if preset.id == 'uk':
                library.load_country(us_preset)
                raise DirectoryUnavailableError('late failure')
            return [make_station('kexp', 'KEXP 90.3', country='United States')]

        library.aggregator.fetch_country_stations.side_effect = fetch

        assert library.load_country(uk_preset) is None
        assert library.error_message is None

    def test_select_unknown_country(self, library):
        with pytest.raises(KeyError):
            library.select_country('atlantis')

    def test_selected_country_restored(self, state, engine, uk_preset, us_preset):
        state.set('selected_country', 'us')
        presets = [uk_preset, us_preset]
        library = RadioLibrary(MagicMock(), SnapshotCache(FakeAggregator(), state, presets), engine,
                               state, search=MagicMock(), presets=presets)

        assert library.selected_country == us_preset


@pytest.mark.unit
class TestBrowseAndDiscover:
    def test_browse_and_genres(self, library, uk_preset):
        library.load_country(uk_preset)

        assert ids(library.browse())[0] == 'bbc1'
        assert 'Jazz' in library.genres()
        assert ids(library.stations_for_genre('Jazz')) == ['jazzfm']

    def test_load_discover(self, library):
        discovered = library.load_discover()
        assert ids(discovered) == ['bbc1', 'capital', 'heart-aac', 'heart', 'kexp']

    def test_discover_skips_failing_country(self, library, uk_stations):
        def fetch(preset, limit=800):
            if preset.id == 'us':
                raise DirectoryUnavailableError('down')
            return list(uk_stations)

        library.aggregator.fetch_country_stations.side_effect = fetch

        assert 'kexp' not in ids(library.load_discover())

    def test_search(self, library):
        assert ids(library.search('jazz')) == ['jazzfm']
        assert library.find_station('jazzfm') is not None


@pytest.mark.unit
class TestFavorites:
    def test_toggle_persists(self, library, state_path):
        station = make_station('fav', 'Fav FM')

        assert library.toggle_favorite(station)
        assert library.is_favorite(station)
        assert ids(FavoritesStore(StateStore(state_path)).load()) == ['fav']

        assert not library.toggle_favorite(station)
        assert FavoritesStore(StateStore(state_path)).load() == []

    def test_favorite_can_be_found(self, library):
        library.toggle_favorite(make_station('fav', 'Fav FM'))
        assert library.find_station('fav').name == 'Fav FM'


@pytest.mark.unit
class TestPlayback:
    def test_play_returns_status(self, library, uk_preset):
        library.load_country(uk_preset)
        status = library.play(library.find_station('bbc1'))

        assert status['state'] == 'connecting'
        assert status['station']['stationuuid'] == 'bbc1'

    def test_find_unknown(self, library):
        assert library.find_station('nope') is None

    def test_no_playable_source_sets_error(self, library):
        library.play(make_station('dead', 'Dead FM', url='bogus', url_resolved=''))

        assert library.engine.state == PlaybackState.IDLE
        assert library.error_message == 'No playable stream for Dead FM'

    def test_status_while_exhausting_does_not_deadlock(self, state, timers, uk_preset):
        stopping = threading.Event()
        release = threading.Event()

        class SlowStopBackend(FakeBackend):
            def stop(self):
                stopping.set()
                release.wait(2)
                super().stop()

        backend = SlowStopBackend()
        engine = PlaybackEngine(backend, timer_factory=timers)
        cache = SnapshotCache(FakeAggregator(), state, [uk_preset])
        library = RadioLibrary(MagicMock(), cache, engine, state, presets=[uk_preset])
        library.play(make_station('solo', 'Solo FM'))

        failing = threading.Thread(target=backend.emit, args=('failed',), daemon=True)
        failing.start()
        assert stopping.wait(2)

        polling = threading.Thread(target=library.status, daemon=True)
        polling.start()
        time.sleep(0.2)
        release.set()

        failing.join(3)
        polling.join(3)
        assert not failing.is_alive()
        assert not polling.is_alive()
        assert library.error_message == 'No playable stream for Solo FM'

    def test_status(self, library, uk_preset):
        library.load_country(uk_preset)
        status = library.status()

        assert status['selected_country']['id'] == 'uk'
        assert status['station_count'] == 4
        assert status['player']['state'] == 'idle'
        assert not status['scheduler_running']


@pytest.mark.unit
class TestBackground:
    def test_launch_refresh_runs_population(self, library, state):
        library.run_launch_refresh()

        assert state.is_initial_cache_complete()
        assert set(library.cache.cached_countries()) == {'uk', 'us'}

    def test_start_background_once(self, library):
        with patch('radio_atlas.library.RefreshScheduler') as scheduler_cls:
            first = library.start_background()
            second = library.start_background()

        assert first is second
        scheduler_cls.assert_called_once_with(library.cache.refresh_recent, 30)
        first.run_at_launch.assert_called_once_with(library.run_launch_refresh)

    def test_launch_refresh_starts_scheduler(self, library):
        library.scheduler = MagicMock()
        library.run_launch_refresh()
        library.scheduler.start.assert_called_once()

    def test_queue_refresh(self, library):
        with pytest.raises(RuntimeError):
            library.queue_refresh()

        library.scheduler = MagicMock()
        library.scheduler.run_refresh_now.return_value = True

        assert library.queue_refresh()

    def test_shutdown(self, library, backend):
        scheduler = MagicMock()
        library.scheduler = scheduler

        library.shutdown()

        scheduler.shutdown.assert_called_once_with(wait=False)
        assert library.scheduler is None
        assert backend.stopped == 1
