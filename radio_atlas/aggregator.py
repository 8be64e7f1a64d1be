"""
Catalog Aggregator for Radio Atlas

Collects everything the directory knows about one country:
- Bulk queries: 6 concurrent requests (country code and country name, each
  ordered by votes, clicks and name)
- Major-brand discovery: one name search per curated brand
- Regional discovery: one name search per regional term

Failure policy:
- Any single request failing counts as an empty result
- Only when all 6 bulk queries come back empty does the country fail,
  with DirectoryUnavailableError
- Brand and regional searches never fail the aggregation
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from radio_atlas.directory import DirectoryUnavailableError
from radio_atlas.merger import build_snapshot, unique_by_id
from radio_atlas.normalization import station_belongs_to_country
from radio_atlas.presets import regional_search_terms

logger = logging.getLogger(__name__)

# (order, reverse) for each bulk query, applied to both code and name lookups
BULK_ORDERINGS = [
    ('votes', True),
    ('clickcount', True),
    ('name', False),
]


class CatalogAggregator:
    """Concurrent multi-query station aggregation for one country

    Attributes:
        client: DirectoryClient (or anything with the same three methods)
        min_limit / max_limit: Clamp for bulk query result sizes
    """

    def __init__(self, client, min_limit=150, max_limit=3000, brand_search_limit=80,
                 regional_search_limit=120, max_workers=6):
        self.client = client
        self.min_limit = min_limit
        self.max_limit = max_limit
        self.brand_search_limit = brand_search_limit
        self.regional_search_limit = regional_search_limit
        self.max_workers = max_workers

    @classmethod
    def from_settings(cls, client, settings):
        """Create an aggregator from the 'catalog' settings section"""
        config = settings.get('catalog', {}) if settings else {}
        return cls(
            client,
            min_limit=config.get('min_limit', 150),
            max_limit=config.get('max_limit', 3000),
            brand_search_limit=config.get('brand_search_limit', 80),
            regional_search_limit=config.get('regional_search_limit', 120),
            max_workers=config.get('max_workers', 6),
        )

    def clamp_limit(self, limit):
        return max(self.min_limit, min(limit, self.max_limit))

    def _fan_out(self, calls):
        """Run (label, func, args) calls concurrently

        Returns:
            List of result lists in call order; a failed call yields []
        """
        if not calls:
            return []

        workers = max(1, min(self.max_workers, len(calls)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='directory') as executor:
            futures = [executor.submit(func, *args) for _, func, args in calls]

            results = []
            for (label, _, _), future in zip(calls, futures):
                try:
                    results.append(future.result() or [])
                except Exception as e:
                    logger.debug(f"Directory query '{label}' failed: {e}")
                    results.append([])
            return results

    def fetch_country_stations(self, preset, limit=800):
        """Fetch the bulk country listing

        Args:
            preset: CountryPreset
            limit: Requested per-query size (clamped)

        Returns:
            List of stations, unique by id, in query order

        Raises:
            DirectoryUnavailableError: If all 6 queries failed or were empty
        """
        safe_limit = self.clamp_limit(limit)
        code = preset.country_code

        calls = []
        for order, reverse in BULK_ORDERINGS:
            calls.append((f"code:{code}:{order}", self.client.fetch_by_country_code,
                          (code, order, reverse, safe_limit)))
        for order, reverse in BULK_ORDERINGS:
            calls.append((f"name:{preset.api_name}:{order}", self.client.fetch_by_country_name,
                          (preset.api_name, order, reverse, safe_limit)))

        results = self._fan_out(calls)
        merged = unique_by_id(station for batch in results for station in batch)

        if not merged:
            logger.warning(f"Directory returned nothing for {preset.display_name} ({code})")
            raise DirectoryUnavailableError(f"No stations available for {preset.display_name}")

        empty = sum(1 for batch in results if not batch)
        if empty:
            logger.info(f"{preset.display_name}: {empty}/{len(results)} bulk queries empty, using the rest")

        logger.debug(f"{preset.display_name}: {len(merged)} stations from bulk queries (limit {safe_limit})")
        return merged

    def _search_for_country(self, preset, terms, limit, kind):
        calls = [(f"{kind}:{term}", self.client.search_by_name, (term, limit)) for term in terms]
        results = self._fan_out(calls)

        matched = [
            station
            for batch in results
            for station in batch
            if station_belongs_to_country(station.country, preset)
        ]
        return unique_by_id(matched)

    def fetch_major_brand_stations(self, preset):
        """Search each curated brand and keep this country's hits"""
        stations = self._search_for_country(preset, preset.top_brands, self.brand_search_limit, 'brand')
        logger.debug(f"{preset.display_name}: {len(stations)} stations from brand search")
        return stations

    def fetch_regional_stations(self, preset):
        """Search each regional term and keep this country's hits"""
        terms = regional_search_terms(preset)
        if not terms:
            return []
        stations = self._search_for_country(preset, terms, self.regional_search_limit, 'regional')
        logger.debug(f"{preset.display_name}: {len(stations)} stations from regional search")
        return stations

    def fetch_discovery_stations(self, preset):
        """Brand and regional discovery, fetched concurrently

        Returns:
            tuple: (brand_stations, regional_stations)
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix='discovery') as executor:
            brands = executor.submit(self.fetch_major_brand_stations, preset)
            regional = executor.submit(self.fetch_regional_stations, preset)
            return _result_or_empty(brands, 'brand'), _result_or_empty(regional, 'regional')

    def collect(self, preset, limit=2000):
        """Bulk listing plus brand and regional discovery, unmerged

        Raises:
            DirectoryUnavailableError: If the bulk listing is unavailable
        """
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix='aggregate') as executor:
            bulk = executor.submit(self.fetch_country_stations, preset, limit)
            brands = executor.submit(self.fetch_major_brand_stations, preset)
            regional = executor.submit(self.fetch_regional_stations, preset)

            stations = list(bulk.result())
            stations.extend(_result_or_empty(brands, 'brand'))
            stations.extend(_result_or_empty(regional, 'regional'))
            return stations

    def aggregate(self, preset, limit=2000):
        """Fetch everything for a country and merge it into a Snapshot

        Args:
            preset: CountryPreset
            limit: Bulk query size

        Returns:
            Snapshot

        Raises:
            DirectoryUnavailableError: If the bulk listing is unavailable
        """
        return build_snapshot(self.collect(preset, limit), preset)


def _result_or_empty(future, label):
    try:
        return future.result() or []
    except Exception as e:
        logger.debug(f"{label} discovery failed: {e}")
        return []
