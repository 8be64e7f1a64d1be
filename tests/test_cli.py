"""
CLI tests

The library is mocked; these cover argument dispatch and exit codes.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from radio_atlas import cli
from radio_atlas.directory import DirectoryUnavailableError
from radio_atlas.merger import build_snapshot
from tests.fakes import make_station


@pytest.fixture
def library(uk_preset):
    library = MagicMock()
    library.presets = [uk_preset]
    library.get_preset.side_effect = lambda country_id: uk_preset if country_id == 'uk' else None
    library.error_message = None
    return library


@pytest.fixture
def run(library, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    def _run(*argv):
        with patch('radio_atlas.cli.setup_logging'), \
                patch('radio_atlas.cli.RadioLibrary.from_settings', return_value=library) as factory:
            code = cli.main(list(argv))
        return code, factory

    return _run


@pytest.mark.unit
class TestMain:
    def test_no_command_prints_help(self, run, capsys):
        code, factory = run()

        assert code == 0
        factory.assert_not_called()
        assert 'Radio Atlas' in capsys.readouterr().out

    def test_list_countries(self, run, capsys):
        code, _ = run('--list-countries')

        assert code == 0
        assert 'United Kingdom (GB)' in capsys.readouterr().out

    def test_load_country(self, run, library, uk_preset, uk_stations, capsys):
        library.load_country.return_value = build_snapshot(uk_stations, uk_preset)

        code, _ = run('--load-country', 'uk')

        assert code == 0
        assert 'BBC Radio 1' in capsys.readouterr().out

    def test_load_unknown_country(self, run):
        code, _ = run('--load-country', 'atlantis')
        assert code == 1

    def test_load_failure(self, run, library, capsys):
        library.load_country.side_effect = DirectoryUnavailableError('down')
        library.error_message = 'Failed loading United Kingdom.'

        code, _ = run('--load-country', 'uk')

        assert code == 1
        assert 'Failed loading United Kingdom.' in capsys.readouterr().out

    def test_search(self, run, library, capsys):
        library.search.return_value = [make_station('jazzfm', 'Jazz FM')]

        code, _ = run('--search', 'jazz', '--limit', '10')

        assert code == 0
        library.search.assert_called_once_with('jazz', 10)
        assert 'Jazz FM' in capsys.readouterr().out

    def test_search_failure(self, run, library):
        library.search.side_effect = requests.ConnectionError('down')

        code, _ = run('--search', 'jazz')

        assert code == 1

    def test_populate_cache(self, run, library, capsys):
        library.cache.populate_all.return_value = {'refreshed': 3, 'failed': 1, 'skipped': 0, 'total': 4}

        code, _ = run('--populate-cache')

        assert code == 0
        assert 'Refreshed: 3' in capsys.readouterr().out

    def test_play_unknown_station(self, run, library):
        library.find_station.return_value = None

        code, _ = run('--play', 'nope', '--country', 'uk')

        assert code == 1
        library.play.assert_not_called()
