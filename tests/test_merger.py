"""
Catalog merger tests

Sanitizing, variant clustering, top station curation, brand scores and the
Snapshot invariants.
"""

import pytest

from radio_atlas.merger import (
    BRAND_SCORE_BASE,
    brand_scores,
    build_snapshot,
    consolidate_variants,
    curate_top_stations,
    popularity,
    sanitize_stations,
)
from radio_atlas.normalization import brand_matches
from tests.fakes import make_station


def ids(stations):
    return [s.station_id for s in stations]


@pytest.mark.unit
class TestSanitize:
    def test_drops_duplicates_keeping_first(self):
        first = make_station('a', 'Alpha', votes=1)
        again = make_station('a', 'Alpha renamed', votes=99)
        result = sanitize_stations([first, again])
        assert len(result) == 1
        assert result[0].name == 'Alpha'

    def test_drops_streamless_and_junk(self):
        stations = [
            make_station('ok', 'Good Radio'),
            make_station('nostream', 'No Stream FM', url='', url_resolved=''),
            make_station('scanner', 'City Police Scanner'),
            make_station('test', 'My Test Stream'),
            make_station('local', 'localhost radio'),
        ]
        assert ids(sanitize_stations(stations)) == ['ok']

    def test_url_only_station_is_kept(self):
        station = make_station('u', 'Url Only', url='http://example.com/live', url_resolved='')
        assert ids(sanitize_stations([station])) == ['u']


@pytest.mark.unit
class TestConsolidateVariants:
    def test_heart_london_cluster(self):
        clean = make_station('heart', 'Heart London', votes=10, favicon='http://heart/logo.png')
        aac = make_station('heart-aac', 'Heart London 128k AAC', votes=500)
        mp3 = make_station('heart-mp3', 'Heart London (MP3)', votes=300)

        primaries, clusters = consolidate_variants([aac, clean, mp3])

        assert ids(primaries) == ['heart']
        assert ids(clusters['heart'].stations) == ['heart', 'heart-aac', 'heart-mp3']

    def test_artwork_beats_popularity(self):
        bare = make_station('bare', 'Jazz FM', votes=1000)
        logo = make_station('logo', 'Jazz FM', votes=1, favicon='http://jazz/logo.png')
        primaries, _ = consolidate_variants([bare, logo])
        assert ids(primaries) == ['logo']

    def test_shorter_name_breaks_ties(self):
        longer = make_station('long', 'Jazz FM!!')
        shorter = make_station('short', 'Jazz FM')
        primaries, _ = consolidate_variants([longer, shorter])
        assert ids(primaries) == ['short']

    def test_groups_keep_first_seen_order(self):
        stations = [
            make_station('b', 'Bravo'),
            make_station('a', 'Alpha'),
            make_station('b2', 'Bravo 64k'),
        ]
        primaries, _ = consolidate_variants(stations)
        assert ids(primaries) == ['b', 'a']


@pytest.mark.unit
class TestCuration:
    def test_brand_rank_before_popularity(self, uk_preset):
        stations = [
            make_station('heart', 'Heart London', votes=5000),
            make_station('capital', 'Capital London', votes=50),
            make_station('bbc1', 'BBC Radio 1', votes=5),
            make_station('other', 'Some Other FM', votes=90000),
        ]
        assert ids(curate_top_stations(stations, uk_preset)) == ['bbc1', 'capital', 'heart']

    def test_popularity_within_brand(self, uk_preset):
        stations = [
            make_station('heart80', 'Heart 80s', votes=10),
            make_station('heart', 'Heart London', votes=100),
        ]
        assert ids(curate_top_stations(stations, uk_preset)) == ['heart', 'heart80']

    def test_popularity_counts_a_third_of_clicks(self):
        assert popularity(make_station('a', votes=10, clickcount=7)) == 12
        assert popularity(make_station('b', votes=None, clickcount=None)) == 0


@pytest.mark.unit
class TestBrandScores:
    def test_scores_by_rank(self):
        stations = [
            make_station('bbc1', 'BBC Radio 1'),
            make_station('heart', 'Heart London'),
            make_station('other', 'Other FM'),
        ]
        scores = brand_scores(stations, ['BBC Radio 1', 'Capital', 'Heart'])

        assert scores['bbc1'] == BRAND_SCORE_BASE
        assert scores['heart'] == BRAND_SCORE_BASE - 2 * 10_000
        assert 'other' not in scores

    def test_no_brands(self):
        assert brand_scores([make_station('a', 'A')], []) == {}

    def test_agrees_with_brand_matches(self):
        names = ['Virgin UK Radio', 'Radio Virgin', 'Heart 80s', 'Capital XTRA', 'Smooth', 'Radio X']
        stations = [make_station(str(i), name) for i, name in enumerate(names)]

        scores = brand_scores(stations, ['Virgin Radio'])

        for station in stations:
            assert (station.station_id in scores) == brand_matches(station.name, 'Virgin Radio')
        assert set(scores) == {'0', '1'}


@pytest.mark.unit
class TestBuildSnapshot:
    def test_invariants(self, uk_preset, uk_stations):
        raw = uk_stations + [uk_stations[0], make_station('junk', 'Test Signal')]
        snapshot = build_snapshot(raw, uk_preset)

        all_ids = ids(snapshot.all_stations)
        assert len(all_ids) == len(set(all_ids))
        assert set(ids(snapshot.top_stations)) <= set(all_ids)
        assert set(snapshot.variants) <= set(all_ids)
        assert snapshot.station_count == len(snapshot.all_stations)
        assert 'junk' not in all_ids
        assert 'heart-aac' not in all_ids

    def test_merge_is_idempotent(self, uk_preset, uk_stations):
        first = build_snapshot(uk_stations, uk_preset)
        second = build_snapshot(list(first.all_stations), uk_preset)

        assert ids(second.all_stations) == ids(first.all_stations)
        assert ids(second.top_stations) == ids(first.top_stations)
        assert second.brand_scores == first.brand_scores

    def test_variant_map_for_player(self, uk_preset, uk_stations):
        snapshot = build_snapshot(uk_stations, uk_preset)
        variant_map = snapshot.variant_map()

        assert ids(variant_map['heart']) == ['heart', 'heart-aac']
        assert ids(snapshot.variants_for(make_station('unknown'))) == ['unknown']

    def test_empty_input(self, uk_preset):
        snapshot = build_snapshot([], uk_preset)
        assert snapshot.station_count == 0
        assert snapshot.top_stations == ()
