"""
Data model for Radio Atlas

- Station: one directory entry (immutable, identity = station_id)
- CountryPreset: curated country reference data
- VariantCluster: a primary station plus its stream mirrors
- Snapshot: the merged, scored view of one country's catalog
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


def _optional_int(value) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_str(value) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True, eq=False)
class Station:
    """Radio station as returned by the directory service

    Two stations are equal when their identifiers match, regardless of any
    other field; the directory returns the same station with drifting
    metadata across queries.
    """
    station_id: str
    name: str
    country: str = ''
    url: Optional[str] = None
    url_resolved: str = ''
    favicon: Optional[str] = None
    homepage: Optional[str] = None
    votes: Optional[int] = None
    clickcount: Optional[int] = None
    language: Optional[str] = None
    tags: Optional[str] = None

    def __eq__(self, other):
        if not isinstance(other, Station):
            return NotImplemented
        return self.station_id == other.station_id

    def __hash__(self):
        return hash(self.station_id)

    def __str__(self) -> str:
        return f"{self.name} ({self.country})"

    @property
    def genres(self) -> List[str]:
        """Tags split on commas, trimmed, empties dropped"""
        if not self.tags:
            return []
        return [t.strip() for t in self.tags.split(',') if t.strip()]

    @property
    def has_stream(self) -> bool:
        return bool(self.url_resolved) or bool(self.url)

    @property
    def has_artwork(self) -> bool:
        return bool(self.favicon)

    @classmethod
    def from_api(cls, data: Dict) -> "Station":
        """Create from a Radio Browser JSON object"""
        return cls(
            station_id=str(data.get('stationuuid') or ''),
            name=str(data.get('name') or ''),
            country=str(data.get('country') or ''),
            url=_optional_str(data.get('url')),
            url_resolved=str(data.get('url_resolved') or ''),
            favicon=_optional_str(data.get('favicon')),
            homepage=_optional_str(data.get('homepage')),
            votes=_optional_int(data.get('votes')),
            clickcount=_optional_int(data.get('clickcount')),
            language=_optional_str(data.get('language')),
            tags=_optional_str(data.get('tags')),
        )

    def to_dict(self) -> Dict:
        """Convert to a Radio Browser-shaped dict for JSON serialization"""
        return {
            'stationuuid': self.station_id,
            'name': self.name,
            'country': self.country,
            'url': self.url,
            'url_resolved': self.url_resolved,
            'favicon': self.favicon,
            'homepage': self.homepage,
            'votes': self.votes,
            'clickcount': self.clickcount,
            'language': self.language,
            'tags': self.tags,
        }


@dataclass(frozen=True)
class CountryPreset:
    """Curated country entry

    top_brands is ordered by priority; the index is the brand's rank.
    """
    id: str
    display_name: str
    api_name: str
    top_brands: Tuple[str, ...] = ()

    @property
    def country_code(self) -> str:
        if self.id == 'uk':
            return 'GB'
        return self.id.upper()

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'display_name': self.display_name,
            'api_name': self.api_name,
            'country_code': self.country_code,
            'top_brands': list(self.top_brands),
        }


@dataclass(frozen=True)
class VariantCluster:
    """A primary station and every station judged to be the same stream"""
    primary: Station
    stations: Tuple[Station, ...]

    def __len__(self) -> int:
        return len(self.stations)


@dataclass(frozen=True)
class Snapshot:
    """Merged and scored catalog for one country

    Invariants:
    - every station in top_stations is in all_stations
    - every key of variants is the id of a station in all_stations
    - station_count == len(all_stations)
    """
    top_stations: Tuple[Station, ...] = ()
    all_stations: Tuple[Station, ...] = ()
    station_count: int = 0
    variants: Dict[str, VariantCluster] = field(default_factory=dict)
    brand_scores: Dict[str, int] = field(default_factory=dict)

    def brand_score(self, station: Station) -> int:
        return self.brand_scores.get(station.station_id, 0)

    def variants_for(self, station: Station) -> Tuple[Station, ...]:
        cluster = self.variants.get(station.station_id)
        if cluster is None:
            return (station,)
        return cluster.stations

    def variant_map(self) -> Dict[str, Tuple[Station, ...]]:
        """Primary id -> ordered variant stations, as the player consumes it"""
        return {key: cluster.stations for key, cluster in self.variants.items()}

    def to_dict(self) -> Dict:
        return {
            'top_stations': [s.to_dict() for s in self.top_stations],
            'all_stations': [s.to_dict() for s in self.all_stations],
            'station_count': self.station_count,
            'variants': {
                key: [s.station_id for s in cluster.stations]
                for key, cluster in self.variants.items()
            },
            'brand_scores': dict(self.brand_scores),
        }
