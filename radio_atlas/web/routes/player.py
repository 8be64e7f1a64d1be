"""
Player routes for the Radio Atlas API

Playback control over the failover engine. Commands return the player
status so clients do not need a second round trip.
"""

import logging

from flask import Blueprint, jsonify, request

from radio_atlas.web.routes import get_library, library_missing

logger = logging.getLogger(__name__)

player_bp = Blueprint('player', __name__)


@player_bp.route('/api/player/status')
def api_player_status():
    library = get_library()
    if not library:
        return library_missing()
    return jsonify(library.engine.status())


@player_bp.route('/api/player/play', methods=['POST'])
def api_player_play():
    """Play a station

    JSON body:
        station_id: Station to play
        queue: Optional list of station ids for next/previous
    """
    library = get_library()
    if not library:
        return library_missing()

    data = request.get_json(silent=True) or {}
    station_id = data.get('station_id')
    if not station_id:
        return jsonify({'error': 'station_id is required'}), 400

    station = library.find_station(station_id)
    if station is None:
        return jsonify({'error': f"Station not found: {station_id}"}), 404

    queue = None
    queue_ids = data.get('queue') or []
    if queue_ids:
        queue = [s for s in (library.find_station(i) for i in queue_ids) if s is not None]

    return jsonify(library.play(station, queue))


@player_bp.route('/api/player/next', methods=['POST'])
def api_player_next():
    library = get_library()
    if not library:
        return library_missing()

    if library.play_next() is None:
        return jsonify({'error': 'Queue is empty'}), 409
    return jsonify(library.engine.status())


@player_bp.route('/api/player/previous', methods=['POST'])
def api_player_previous():
    library = get_library()
    if not library:
        return library_missing()

    if library.play_previous() is None:
        return jsonify({'error': 'Queue is empty'}), 409
    return jsonify(library.engine.status())


@player_bp.route('/api/player/toggle', methods=['POST'])
def api_player_toggle():
    library = get_library()
    if not library:
        return library_missing()

    library.toggle_playback()
    return jsonify(library.engine.status())


@player_bp.route('/api/player/stop', methods=['POST'])
def api_player_stop():
    library = get_library()
    if not library:
        return library_missing()

    library.stop()
    return jsonify(library.engine.status())


@player_bp.route('/api/player/volume', methods=['POST'])
def api_player_volume():
    """Set the volume (JSON body: {"volume": 0.0..1.0})"""
    library = get_library()
    if not library:
        return library_missing()

    data = request.get_json(silent=True) or {}
    try:
        level = float(data.get('volume'))
    except (TypeError, ValueError):
        return jsonify({'error': 'volume must be a number'}), 400

    return jsonify({'volume': library.set_volume(level)})


@player_bp.route('/api/player/network', methods=['POST'])
def api_player_network():
    """Report network conditions (JSON body: constrained, expensive)"""
    library = get_library()
    if not library:
        return library_missing()

    data = request.get_json(silent=True) or {}
    library.engine.set_network_conditions(
        constrained=bool(data.get('constrained')),
        expensive=bool(data.get('expensive')),
    )
    return jsonify({'prefer_lower_bitrate': library.engine.prefer_lower_bitrate})
