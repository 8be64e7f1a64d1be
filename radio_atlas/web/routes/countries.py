"""
Countries routes for the Radio Atlas API

Country presets, loading a country and the browse views over its Snapshot.
"""

import logging

from flask import Blueprint, jsonify, request

from radio_atlas.browse import StationFilter, StationSort, parse_enum
from radio_atlas.directory import DirectoryUnavailableError
from radio_atlas.web.routes import get_library, library_missing, stations_payload

logger = logging.getLogger(__name__)

countries_bp = Blueprint('countries', __name__)


@countries_bp.route('/api/countries')
def api_countries():
    """All presets with their cache status"""
    library = get_library()
    if not library:
        return library_missing()

    cached = set(library.cache.cached_countries())
    items = []
    for preset in library.presets:
        item = preset.to_dict()
        item['cached'] = preset.id in cached
        item['selected'] = preset.id == library.selected_country.id
        items.append(item)

    return jsonify({'items': items, 'count': len(items)})


@countries_bp.route('/api/countries/<country_id>/load', methods=['POST'])
def api_load_country(country_id):
    """Load a country and return its Snapshot summary"""
    library = get_library()
    if not library:
        return library_missing()

    preset = library.get_preset(country_id)
    if preset is None:
        return jsonify({'error': f"Unknown country: {country_id}"}), 404

    try:
        snapshot = library.load_country(preset)
    except DirectoryUnavailableError as e:
        logger.warning(f"Load failed for {country_id}: {e}")
        return jsonify({
            'error': library.error_message or str(e),
            'stale': library.cache.is_stale(country_id),
            'station_count': library.snapshot.station_count,
        }), 503

    if snapshot is None:
        return jsonify({'superseded': True, 'country': preset.to_dict()}), 202

    return jsonify({
        'country': preset.to_dict(),
        'station_count': snapshot.station_count,
        'top_stations': stations_payload(snapshot.top_stations),
    })


@countries_bp.route('/api/countries/current')
def api_current_country():
    """Browse view of the selected country

    Query params:
        sort: A-Z, Most Popular, Most Listened, Major Brands First, Least Popular
        filter: All, Presets, With Artwork, Major Brands, With Genres
    """
    library = get_library()
    if not library:
        return library_missing()

    try:
        sort = parse_enum(StationSort, request.args.get('sort'), StationSort.ALPHABETICAL)
        station_filter = parse_enum(StationFilter, request.args.get('filter'), StationFilter.ALL)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    snapshot = library.snapshot
    stations = library.browse(sort, station_filter)

    return jsonify({
        'country': library.selected_country.to_dict(),
        'station_count': snapshot.station_count,
        'is_loading': library.is_loading,
        'stale': library.cache.is_stale(library.selected_country.id),
        'error_message': library.error_message,
        'info_message': library.info_message,
        'sort': sort.value,
        'filter': station_filter.value,
        'top_stations': stations_payload(snapshot.top_stations),
        'stations': stations_payload(stations),
        'genres': library.genres(),
    })


@countries_bp.route('/api/countries/current/genres/<path:genre>')
def api_current_genre(genre):
    """Stations of the selected country tagged with a genre"""
    library = get_library()
    if not library:
        return library_missing()

    stations = library.stations_for_genre(genre)
    return jsonify({'genre': genre, 'items': stations_payload(stations), 'count': len(stations)})


@countries_bp.route('/api/stations/<station_id>/variants')
def api_station_variants(station_id):
    """Stream variants of a station in the selected country"""
    library = get_library()
    if not library:
        return library_missing()

    station = library.find_station(station_id)
    if station is None:
        return jsonify({'error': 'Station not found'}), 404

    variants = library.snapshot.variants_for(station)
    return jsonify({'station': station.to_dict(), 'items': stations_payload(variants)})


@countries_bp.route('/api/discover')
def api_discover():
    """Flagship stations across the first presets

    Query params:
        refresh: 1 to rebuild the list
    """
    library = get_library()
    if not library:
        return library_missing()

    refresh = request.args.get('refresh', 0, type=int)
    stations = library.discover_stations
    if refresh or not stations:
        stations = library.load_discover()

    return jsonify({'items': stations_payload(stations), 'count': len(stations)})
