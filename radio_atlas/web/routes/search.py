"""
Search routes for the Radio Atlas API

- /api/search: one-shot search
- /api/search/input + /api/search/results: search-as-you-type. Each
  keystroke posts the current text; results appear once typing pauses and
  only the newest query's results are ever returned.
"""

import logging

import requests
from flask import Blueprint, jsonify, request

from radio_atlas.web.routes import get_library, library_missing, stations_payload

logger = logging.getLogger(__name__)

search_bp = Blueprint('search', __name__)

MAX_SEARCH_LIMIT = 500


@search_bp.route('/api/search')
def api_search():
    """Search stations by name

    Query params:
        q: Search text (blank returns no results)
        limit: Maximum results (default from settings)
    """
    library = get_library()
    if not library:
        return library_missing()

    query = request.args.get('q', '').strip()
    limit = request.args.get('limit', type=int)
    if limit is not None:
        limit = max(1, min(limit, MAX_SEARCH_LIMIT))

    if not query:
        return jsonify({'query': '', 'items': [], 'count': 0, 'error': None})

    try:
        stations = library.search(query, limit)
    except requests.RequestException as e:
        logger.warning(f"Search for '{query}' failed: {e}")
        return jsonify({'query': query, 'items': [], 'count': 0, 'error': 'Search failed.'}), 502

    return jsonify({
        'query': query,
        'items': stations_payload(stations),
        'count': len(stations),
        'error': None,
    })


@search_bp.route('/api/search/input', methods=['POST'])
def api_search_input():
    """Submit the current search text

    JSON body:
        q: Text typed so far (blank clears the results)
    """
    library = get_library()
    if not library:
        return library_missing()

    data = request.get_json(silent=True) or {}
    query = data.get('q', '')
    if not isinstance(query, str):
        return jsonify({'error': 'q must be a string'}), 400

    token = library.submit_search(query)
    return jsonify({'query': query, 'token': token}), 202


@search_bp.route('/api/search/results')
def api_search_results():
    """Results of the newest applied search-as-you-type query"""
    library = get_library()
    if not library:
        return library_missing()

    latest = library.latest_search()
    stations = latest.pop('results')
    latest['items'] = stations_payload(stations)
    latest['count'] = len(stations)
    return jsonify(latest)
