"""
Normalization tests

Covers name normalization, canonical keys, variant labels, brand matching
and country matching.
"""

import pytest

from radio_atlas.models import CountryPreset
from radio_atlas.normalization import (
    brand_matches,
    canonical_key,
    is_variant_label,
    normalize_genre,
    normalize_name,
    station_belongs_to_country,
)


@pytest.mark.unit
class TestNormalizeName:
    def test_lowercases_and_strips_punctuation(self):
        assert normalize_name("Capital XTRA - London") == 'capital xtra london'

    def test_ampersand_and_underscore(self):
        assert normalize_name("Rock & Roll_Radio!") == 'rock and roll radio'

    def test_keeps_accented_letters(self):
        assert normalize_name("RTÉ 2FM") == 'rté 2fm'

    def test_empty_values(self):
        assert normalize_name("") == ""
        assert normalize_name(None) == ""
        assert normalize_name("  --  ") == ""


@pytest.mark.unit
class TestCanonicalKey:
    @pytest.mark.parametrize('name', [
        "Heart London",
        "Heart London 128k AAC",
        "Heart London (MP3)",
        "Heart London [HQ]",
        "HEART LONDON - 64 kbps stream",
    ])
    def test_heart_london_variants_share_a_key(self, name):
        assert canonical_key(name) == 'heart london'

    def test_different_stations_differ(self):
        assert canonical_key("Heart London") != canonical_key("Heart 80s")

    def test_empty(self):
        assert canonical_key(None) == ""


@pytest.mark.unit
class TestVariantLabel:
    def test_bitrate_token(self):
        assert is_variant_label("Heart London 128k")
        assert is_variant_label("Heart London 64 kbps")

    def test_codec_words(self):
        assert is_variant_label("Heart London MP3")
        assert is_variant_label("Heart London AAC+")
        assert is_variant_label("Heart London Stream")

    def test_clean_name(self):
        assert not is_variant_label("Heart London")
        assert not is_variant_label("")


@pytest.mark.unit
class TestBrandMatching:
    def test_containment(self):
        assert brand_matches("Heart London", "Heart")
        assert brand_matches("BBC Radio 1", "BBC Radio 1")

    def test_multi_word_brand_tokens_anywhere(self):
        assert brand_matches("Virgin UK Radio", "Virgin Radio")

    def test_punctuation_ignored(self):
        assert brand_matches("Capital-XTRA", "Capital XTRA")

    def test_no_match(self):
        assert not brand_matches("Absolute Radio", "Kiss")
        assert not brand_matches("BBC Radio 2", "BBC Radio 1")

    def test_empty_inputs(self):
        assert not brand_matches("", "Heart")
        assert not brand_matches("Heart", "")


@pytest.mark.unit
class TestCountryMatching:
    @pytest.fixture
    def uk(self):
        return CountryPreset(id='uk', display_name='United Kingdom', api_name='The United Kingdom Of Great Britain And Northern Ireland')

    def test_equality_with_display_name(self, uk):
        assert station_belongs_to_country("United Kingdom", uk)

    def test_containment(self, uk):
        assert station_belongs_to_country("The United Kingdom of Great Britain and Northern Ireland", uk)

    def test_other_country(self, uk):
        assert not station_belongs_to_country("France", uk)

    def test_missing_country(self, uk):
        assert not station_belongs_to_country("", uk)
        assert not station_belongs_to_country(None, uk)


@pytest.mark.unit
class TestNormalizeGenre:
    def test_dashes_and_underscores(self):
        assert normalize_genre("hip-hop") == 'hip hop'
        assert normalize_genre(" classic_rock ") == 'classic rock'

    def test_empty(self):
        assert normalize_genre(None) == ""
