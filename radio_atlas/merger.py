"""
Catalog Merger for Radio Atlas

Turns one country's raw, duplicate-laden station list into a Snapshot:

1. Sanitize - unique by id, drop stations without a stream, drop junk names
2. Consolidate - cluster stream mirrors by canonical name, pick a primary
3. Curate - flagship stations ordered by brand rank, then popularity
4. Score - brand affinity per primary station

Key Principle: never fail on a bad entry. Malformed or incomplete stations
are filtered out or score zero; build_snapshot() does not raise.
"""

import logging

from radio_atlas.models import Snapshot, VariantCluster
from radio_atlas.normalization import (
    brand_matches,
    canonical_key,
    is_variant_label,
    normalize_name,
    normalized_brand_matches,
)

logger = logging.getLogger(__name__)

# Names containing any of these are directory junk
NOISE_MARKERS = ('scanner', 'test', 'localhost')

# Brand affinity: rank 0 scores BRAND_SCORE_BASE, each rank below costs BRAND_RANK_STEP
BRAND_SCORE_BASE = 1_000_000
BRAND_RANK_STEP = 10_000


def popularity(station):
    """Popularity used for ordering: votes plus a third of the clicks"""
    return (station.votes or 0) + ((station.clickcount or 0) // 3)


def unique_by_id(stations):
    """Drop repeated station ids, keeping the first occurrence in order"""
    seen = set()
    output = []
    for station in stations:
        if station.station_id in seen:
            continue
        seen.add(station.station_id)
        output.append(station)
    return output


def sanitize_stations(stations):
    """Remove duplicates, streamless entries and junk directory names

    Args:
        stations: Raw stations in directory order

    Returns:
        List of usable stations, first occurrence wins
    """
    output = []
    for station in unique_by_id(stations):
        if not station.has_stream:
            continue
        lowered = (station.name or '').lower()
        if any(marker in lowered for marker in NOISE_MARKERS):
            continue
        output.append(station)
    return output


def _variant_sort_key(station):
    # False sorts first: non-variant names, then stations with artwork
    return (
        is_variant_label(station.name),
        not station.has_artwork,
        -popularity(station),
        len(station.name or ''),
    )


def consolidate_variants(stations):
    """Group stream mirrors of the same station into clusters

    Groups are keyed by canonical_key(name) and kept in first-seen order.
    Within a group the best station comes first: clean name, artwork,
    popularity, then the shorter name.

    Args:
        stations: Sanitized stations

    Returns:
        tuple: (primaries, clusters)
            - primaries: list of primary stations, unique by id
            - clusters: dict of primary id -> VariantCluster
    """
    grouped = {}
    for station in stations:
        grouped.setdefault(canonical_key(station.name), []).append(station)

    primaries = []
    clusters = {}
    for group in grouped.values():
        ordered = sorted(group, key=_variant_sort_key)
        primary = ordered[0]
        primaries.append(primary)
        clusters[primary.station_id] = VariantCluster(primary=primary, stations=tuple(ordered))

    return unique_by_id(primaries), clusters


def matched_brand_rank(station, brands):
    """Index of the first brand the station matches, or None"""
    for index, brand in enumerate(brands):
        if brand_matches(station.name, brand):
            return index
    return None


def curate_top_stations(stations, preset):
    """Pick flagship stations for a country

    Earlier-ranked brands always come first; popularity only breaks ties
    within one brand.

    Args:
        stations: Primary stations
        preset: CountryPreset with ranked top_brands

    Returns:
        Ordered list of brand-matching stations, unique by id
    """
    ranked = []
    for station in stations:
        rank = matched_brand_rank(station, preset.top_brands)
        if rank is None:
            continue
        ranked.append((rank, station))

    ranked.sort(key=lambda item: (item[0], -popularity(item[1])))
    return unique_by_id(station for _, station in ranked)


def brand_scores(stations, brands):
    """Score every station by its best-matching brand

    Args:
        stations: Primary stations
        brands: Ranked brand names

    Returns:
        Dict of station id -> score; stations with no brand match are omitted
    """
    if not stations or not brands:
        return {}

    normalized_brands = [(index, normalize_name(brand)) for index, brand in enumerate(brands)]
    scores = {}

    for station in stations:
        name = normalize_name(station.name)
        if not name:
            continue

        best = 0
        for index, brand in normalized_brands:
            if normalized_brand_matches(name, brand):
                best = max(best, BRAND_SCORE_BASE - index * BRAND_RANK_STEP)

        if best > 0:
            scores[station.station_id] = best

    return scores


def build_snapshot(raw_stations, preset):
    """Build a country Snapshot from raw directory results

    Args:
        raw_stations: Stations from any mix of directory queries
        preset: CountryPreset for brand curation and scoring

    Returns:
        Snapshot
    """
    sanitized = sanitize_stations(raw_stations)
    primaries, clusters = consolidate_variants(sanitized)
    top = curate_top_stations(primaries, preset)
    scores = brand_scores(primaries, preset.top_brands)

    logger.debug(
        f"Snapshot for {preset.id}: {len(raw_stations)} raw -> {len(sanitized)} sanitized "
        f"-> {len(primaries)} primaries, {len(top)} top"
    )

    return Snapshot(
        top_stations=tuple(top),
        all_stations=tuple(primaries),
        station_count=len(primaries),
        variants=clusters,
        brand_scores=scores,
    )
