"""
Debounced search tests

Timers are fired by hand, so the debounce window is simulated rather than
waited out.
"""

from unittest.mock import MagicMock

import pytest
import requests

from radio_atlas.search import SearchController
from tests.fakes import FakeDirectoryClient, make_station


@pytest.fixture
def client():
    return FakeDirectoryClient(searches={
        'heart': [make_station('heart', 'Heart London')],
        'jazz': [make_station('jazzfm', 'Jazz FM')],
    })


@pytest.fixture
def controller(client, timers):
    return SearchController(client, limit=50, debounce_ms=300, timer_factory=timers)


def result_ids(controller):
    return [s.station_id for s in controller.results]


@pytest.mark.unit
class TestDebounce:
    def test_search_waits_for_timer(self, controller, client, timers):
        controller.submit('heart')

        assert client.calls == []
        assert timers.last.interval == 0.3

        timers.last.fire()

        assert client.calls == [('search', 'heart', None, 50)]
        assert result_ids(controller) == ['heart']

    def test_new_keystroke_cancels_pending(self, controller, client, timers):
        controller.submit('hea')
        controller.submit('heart')

        assert timers.timers[0].cancelled
        timers.last.fire()
        assert [c[1] for c in client.calls] == ['heart']

    def test_superseded_results_discarded(self, controller, timers):
        controller.submit('heart')
        first = timers.last
        controller.submit('jazz')
        timers.last.fire()
        first.fire()

        assert result_ids(controller) == ['jazzfm']

    def test_blank_query_clears(self, controller, client, timers):
        controller.submit('heart')
        timers.last.fire()

        controller.submit('   ')

        assert controller.results == []
        assert len(timers.timers) == 1
        assert len(client.calls) == 1

    def test_cancel(self, controller, client, timers):
        controller.submit('heart')
        controller.cancel()
        timers.last.fire()

        assert controller.results == []


@pytest.mark.unit
class TestLatest:
    def test_pending_until_timer_fires(self, controller, timers):
        token = controller.submit('heart')

        latest = controller.latest()
        assert latest['token'] == token
        assert latest['pending']
        assert latest['results'] == []

        timers.last.fire()

        latest = controller.latest()
        assert not latest['pending']
        assert latest['applied_token'] == token
        assert [s.station_id for s in latest['results']] == ['heart']

    def test_failure_reported(self, timers):
        client = MagicMock()
        client.search_by_name.side_effect = requests.ConnectionError('down')
        controller = SearchController(client, timer_factory=timers)

        controller.submit('heart')
        timers.last.fire()

        latest = controller.latest()
        assert latest['error'] == 'Search failed.'
        assert not latest['pending']

    def test_results_callback(self, controller, timers):
        received = []
        controller.on_results = received.append

        controller.submit('heart')
        timers.last.fire()

        assert [s.station_id for s in received[0]] == ['heart']


@pytest.mark.unit
class TestSearchNow:
    def test_returns_results(self, controller):
        stations = controller.search_now('jazz', limit=10)
        assert [s.station_id for s in stations] == ['jazzfm']

    def test_blank_query_skips_directory(self, controller, client):
        assert controller.search_now('  ') == []
        assert client.calls == []

    def test_failure_raises(self, timers):
        client = MagicMock()
        client.search_by_name.side_effect = requests.ConnectionError('down')
        controller = SearchController(client, timer_factory=timers)

        with pytest.raises(requests.RequestException):
            controller.search_now('heart')
        assert controller.error_message is None

    def test_leaves_debounced_search_alone(self, controller, timers):
        token = controller.submit('heart')

        controller.search_now('jazz')
        timers.last.fire()

        latest = controller.latest()
        assert latest['applied_token'] == token
        assert [s.station_id for s in latest['results']] == ['heart']
