"""
Favorites routes for the Radio Atlas API
"""

import logging

from flask import Blueprint, jsonify

from radio_atlas.web.routes import get_library, library_missing, stations_payload

logger = logging.getLogger(__name__)

favorites_bp = Blueprint('favorites', __name__)


@favorites_bp.route('/api/favorites')
def api_favorites():
    library = get_library()
    if not library:
        return library_missing()

    favorites = list(library.favorites)
    return jsonify({'items': stations_payload(favorites), 'count': len(favorites)})


@favorites_bp.route('/api/favorites/<station_id>/toggle', methods=['POST'])
def api_toggle_favorite(station_id):
    """Add or remove a favorite"""
    library = get_library()
    if not library:
        return library_missing()

    station = library.find_station(station_id)
    if station is None:
        return jsonify({'error': f"Station not found: {station_id}"}), 404

    favorite = library.toggle_favorite(station)
    return jsonify({'station_id': station_id, 'favorite': favorite, 'count': len(library.favorites)})
