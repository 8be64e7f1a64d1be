"""
Browse views over a country Snapshot

Sorting, filtering and genre chips for the station list. Everything here is
a pure function of the Snapshot (plus the favorites list).
"""

from enum import Enum

from radio_atlas.merger import popularity
from radio_atlas.normalization import normalize_genre

CANONICAL_GENRES = [
    'All', 'Pop', 'Alternative', 'Dance', 'R&B', 'Hip-Hop', 'Rock', 'Classic Rock',
    'Electronic', 'Jazz', 'Classical', 'News', 'Talk',
]

ALL_GENRES = 'All'


class StationSort(Enum):
    ALPHABETICAL = 'A-Z'
    MOST_POPULAR = 'Most Popular'
    MOST_LISTENED = 'Most Listened'
    MAJOR_BRANDS_FIRST = 'Major Brands First'
    LEAST_POPULAR = 'Least Popular'


class StationFilter(Enum):
    ALL = 'All'
    PRESETS = 'Presets'
    WITH_ARTWORK = 'With Artwork'
    MAJOR_BRANDS = 'Major Brands'
    WITH_GENRES = 'With Genres'


def parse_enum(enum_cls, value, default):
    """Look up an enum member by value or name, case-insensitively"""
    if value is None or value == '':
        return default
    if isinstance(value, enum_cls):
        return value
    wanted = str(value).strip().lower()
    for member in enum_cls:
        if wanted in (member.value.lower(), member.name.lower()):
            return member
    raise ValueError(f"Unknown {enum_cls.__name__}: {value}")


def filter_stations(snapshot, station_filter, favorites=()):
    favorite_ids = {s.station_id for s in favorites}
    stations = list(snapshot.all_stations)

    if station_filter == StationFilter.PRESETS:
        return [s for s in stations if s.station_id in favorite_ids]
    if station_filter == StationFilter.WITH_ARTWORK:
        return [s for s in stations if s.has_artwork]
    if station_filter == StationFilter.MAJOR_BRANDS:
        return [s for s in stations if snapshot.brand_score(s) > 0]
    if station_filter == StationFilter.WITH_GENRES:
        return [s for s in stations if s.genres]
    return stations


def sort_stations(stations, snapshot, station_sort):
    if station_sort == StationSort.ALPHABETICAL:
        return sorted(stations, key=lambda s: (s.name or '').casefold())
    if station_sort == StationSort.MOST_POPULAR:
        return sorted(stations, key=lambda s: popularity(s) + snapshot.brand_score(s), reverse=True)
    if station_sort == StationSort.MOST_LISTENED:
        return sorted(stations, key=lambda s: s.clickcount or 0, reverse=True)
    if station_sort == StationSort.MAJOR_BRANDS_FIRST:
        return sorted(stations, key=snapshot.brand_score, reverse=True)
    if station_sort == StationSort.LEAST_POPULAR:
        return sorted(stations, key=popularity)
    return list(stations)


def filter_and_sort(snapshot, station_sort=StationSort.ALPHABETICAL,
                    station_filter=StationFilter.ALL, favorites=()):
    """The country station list as the browse view shows it

    Args:
        snapshot: Country Snapshot
        station_sort: StationSort
        station_filter: StationFilter
        favorites: Favorite stations (for StationFilter.PRESETS)

    Returns:
        List of Station
    """
    return sort_stations(filter_stations(snapshot, station_filter, favorites), snapshot, station_sort)


def genre_matches(station, genre):
    """Case-insensitive containment of a genre in any of the station's tags

    Both sides are normalized, so "Hip-Hop" matches a "hip hop" tag.
    """
    if genre == ALL_GENRES:
        return True
    wanted = normalize_genre(genre).lower()
    if not wanted:
        return False
    return any(wanted in normalize_genre(tag).lower() for tag in station.genres)


def genre_buttons(stations):
    """Canonical genres present in at least one station, 'All' first"""
    stations = list(stations)
    return [
        genre for genre in CANONICAL_GENRES
        if genre == ALL_GENRES or any(genre_matches(s, genre) for s in stations)
    ]


def genre_filtered(stations, genre=ALL_GENRES):
    """Stations tagged with a genre, most popular first"""
    matched = [s for s in stations if genre_matches(s, genre)]
    return sorted(matched, key=popularity, reverse=True)
