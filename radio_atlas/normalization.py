"""
Text Normalization Module for Radio Atlas

This module provides the string normalization used across the catalog:
- Station names (for brand and country matching)
- Canonical keys (for clustering stream variants of one station)
- Variant label detection (for picking the cluster primary)
- Genre labels (for genre filters)

Normalization Rules:
1. Lowercase everything
2. Unify '&' to 'and', '-' and '_' to spaces
3. Collapse any run of non-alphanumeric characters to a single space
4. Trim

Critical Design Decision:
- Matching is done on normalized text only, never on raw directory names
- Canonical keys strip bitrate/codec noise so "Heart London 128k AAC" and
  "Heart London" land in the same cluster
- All functions are pure; no logging on the hot path
"""

import re

# Bitrate tokens like "128k", "64 kbps"
BITRATE_TOKEN = re.compile(r'\b\d{2,3}\s?(k|kbps)\b')

# Codec / stream-quality words stripped from canonical keys
CODEC_TOKEN = re.compile(r'\b(aac\+?|mp3|ogg|stream|live|hq|lq)\b')

PARENTHESIZED = re.compile(r'\([^)]*\)')
BRACKETED = re.compile(r'\[[^\]]*\]')

# Underscore is part of \w, so it is folded in explicitly
NON_ALNUM_RUN = re.compile(r'[\W_]+')

# Substrings that mark a name as a bitrate/codec mirror
VARIANT_MARKERS = ('aac', 'mp3', 'stream')


def normalize_name(raw):
    """Normalize a station or brand name for matching

    Args:
        raw: Raw name from the directory or the preset table

    Returns:
        Lowercase, punctuation-free, single-spaced name

    Examples:
        >>> normalize_name("Capital XTRA - London")
        'capital xtra london'
        >>> normalize_name("Rock & Roll_Radio!")
        'rock and roll radio'
        >>> normalize_name("RTÉ 2FM")
        'rté 2fm'
    """
    if not raw:
        return ""

    text = raw.lower()
    text = text.replace('&', 'and')
    text = text.replace('-', ' ').replace('_', ' ')
    text = NON_ALNUM_RUN.sub(' ', text)

    return ' '.join(text.split())


def canonical_key(raw):
    """Build the clustering key for a station name

    Strips parenthesized/bracketed notes, bitrate tokens and codec words
    before normalizing, so stream mirrors of one station share a key.

    Args:
        raw: Raw station name

    Returns:
        Canonical key string (may be empty)

    Examples:
        >>> canonical_key("Heart London 128k AAC")
        'heart london'
        >>> canonical_key("Heart London (MP3) [HQ]")
        'heart london'
        >>> canonical_key("Radio 1 Live Stream 64 kbps")
        'radio 1'
    """
    if not raw:
        return ""

    text = raw.lower()
    text = PARENTHESIZED.sub(' ', text)
    text = BRACKETED.sub(' ', text)
    text = BITRATE_TOKEN.sub(' ', text)
    text = CODEC_TOKEN.sub(' ', text)

    return normalize_name(text)


def is_variant_label(name):
    """Check whether a name looks like a bitrate/codec mirror

    Args:
        name: Raw station name

    Returns:
        True if the name carries a bitrate token or mentions aac/mp3/stream

    Examples:
        >>> is_variant_label("Heart London 128k")
        True
        >>> is_variant_label("Heart London MP3")
        True
        >>> is_variant_label("Heart London")
        False
    """
    if not name:
        return False

    lowered = name.lower()
    if BITRATE_TOKEN.search(lowered):
        return True

    return any(marker in lowered for marker in VARIANT_MARKERS)


def brand_matches(station_name, brand):
    """Check whether a station name belongs to a curated brand

    Multi-word brands also match when every brand token appears somewhere in
    the station name ("Virgin Radio" matches "Virgin UK Radio"). Single-word
    brands need plain substring containment.

    Args:
        station_name: Raw station name
        brand: Brand name from a CountryPreset

    Returns:
        True if the station matches the brand

    Examples:
        >>> brand_matches("Virgin Radio UK", "Virgin Radio")
        True
        >>> brand_matches("Heart London", "Heart")
        True
        >>> brand_matches("Absolute Radio", "Kiss")
        False
    """
    station = normalize_name(station_name)
    target = normalize_name(brand)
    return normalized_brand_matches(station, target)


def normalized_brand_matches(station, target):
    """brand_matches() for names already passed through normalize_name()"""
    if not station or not target:
        return False

    if target in station:
        return True

    tokens = target.split(' ')
    if len(tokens) > 1:
        return all(token in station for token in tokens)

    return False


def station_belongs_to_country(station_country, preset):
    """Check whether a directory country string refers to a preset

    Args:
        station_country: Free-text country from the directory entry
        preset: CountryPreset to test against

    Returns:
        True on normalized equality or containment of either preset name
    """
    country = normalize_name(station_country)
    if not country:
        return False

    for candidate in (normalize_name(preset.api_name), normalize_name(preset.display_name)):
        if candidate and (country == candidate or candidate in country):
            return True

    return False


def normalize_genre(raw):
    """Normalize a genre tag for display filters

    Args:
        raw: Single tag from a station's tag string

    Returns:
        Tag with dashes/underscores as spaces, trimmed

    Examples:
        >>> normalize_genre("hip-hop")
        'hip hop'
        >>> normalize_genre(" classic_rock ")
        'classic rock'
    """
    if not raw:
        return ""

    return raw.replace('-', ' ').replace('_', ' ').strip()
