"""
Pytest configuration and fixtures for Radio Atlas tests

Provides fake directory/backends, a temporary state file, a fully wired
RadioLibrary and a Flask test client.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from radio_atlas.cache import SnapshotCache
from radio_atlas.library import RadioLibrary
from radio_atlas.models import CountryPreset
from radio_atlas.playback import PlaybackEngine
from radio_atlas.search import SearchController
from radio_atlas.storage import StateStore
from tests.fakes import FakeAggregator, FakeBackend, FakeDirectoryClient, ManualTimerFactory, make_station


@pytest.fixture
def uk_preset():
    return CountryPreset(
        id='uk',
        display_name='United Kingdom',
        api_name='United Kingdom',
        top_brands=('BBC Radio 1', 'Capital', 'Heart'),
    )


@pytest.fixture
def us_preset():
    return CountryPreset(
        id='us',
        display_name='United States',
        api_name='United States',
        top_brands=('NPR', 'KEXP'),
    )


@pytest.fixture
def state_path(tmp_path):
    """Provide a temporary state file path"""
    return str(tmp_path / 'radio_atlas_state.json')


@pytest.fixture
def state(state_path):
    return StateStore(state_path)


@pytest.fixture
def timers():
    return ManualTimerFactory()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def engine(backend, timers):
    return PlaybackEngine(backend, connect_timeout=12, timer_factory=timers)


@pytest.fixture
def uk_stations():
    return [
        make_station('bbc1', 'BBC Radio 1', votes=900, clickcount=300, favicon='http://bbc.co.uk/logo.png',
                     tags='pop,dance'),
        make_station('capital', 'Capital London', votes=500, tags='pop,hip-hop'),
        make_station('heart', 'Heart London', votes=400, favicon='http://heart.co.uk/logo.png'),
        make_station('heart-aac', 'Heart London 128k AAC', votes=800),
        make_station('jazzfm', 'Jazz FM', votes=50, tags='jazz'),
    ]


@pytest.fixture
def library(state, engine, timers, uk_preset, us_preset, uk_stations):
    """RadioLibrary wired to a mocked aggregator

    aggregator.fetch_country_stations returns uk_stations for 'uk' and one
    station for 'us'; discovery returns nothing.
    """
    us_stations = [make_station('kexp', 'KEXP 90.3', country='United States', votes=300)]

    def fetch_country_stations(preset, limit=800):
        return list(uk_stations) if preset.id == 'uk' else list(us_stations)

    aggregator = MagicMock()
    aggregator.fetch_country_stations.side_effect = fetch_country_stations
    aggregator.fetch_discovery_stations.return_value = ([], [])

    client = FakeDirectoryClient(searches={'jazz': [uk_stations[4]]})
    aggregator.client = client

    presets = [uk_preset, us_preset]
    cache = SnapshotCache(FakeAggregator(), state, presets)
    search = SearchController(client, timer_factory=timers)

    return RadioLibrary(aggregator, cache, engine, state, search=search, presets=presets)


@pytest.fixture
def test_app(library):
    """Provide the Flask app wired to the test library"""
    from radio_atlas.web import app, init_app

    app.config['TESTING'] = True
    init_app(library, {})
    yield app
    app.config['library'] = None


@pytest.fixture
def test_client(test_app):
    """Provide a Flask test client for making HTTP requests"""
    return test_app.test_client()


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
