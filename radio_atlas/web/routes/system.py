"""
System routes for the Radio Atlas API

Health, status and manual cache maintenance.
"""

import logging
from datetime import datetime

from flask import Blueprint, current_app, jsonify

from radio_atlas.web.routes import get_library, library_missing

logger = logging.getLogger(__name__)

system_bp = Blueprint('system', __name__)


@system_bp.route('/api/system/health')
def api_health():
    return jsonify({
        'status': 'ok' if get_library() else 'starting',
        'version': current_app.config.get('VERSION'),
    })


@system_bp.route('/api/system/status')
def api_status():
    """Library, cache and player status"""
    library = get_library()
    if not library:
        return library_missing()

    status = library.status()
    start_time = current_app.config.get('start_time')
    status['uptime'] = int((datetime.now() - start_time).total_seconds()) if start_time else 0
    status['version'] = current_app.config.get('VERSION')
    return jsonify(status)


@system_bp.route('/api/system/cache/refresh', methods=['POST'])
def api_refresh_cache():
    """Queue a refresh of recently visited countries"""
    library = get_library()
    if not library:
        return library_missing()

    try:
        queued = library.queue_refresh()
    except RuntimeError as e:
        return jsonify({'error': str(e)}), 409

    return jsonify({'queued': queued}), 202
