"""
Flask JSON API for Radio Atlas

Exposes the RadioLibrary over HTTP:
- Countries: presets, loading a country, browse views, discover
- Search
- Player controls and status
- Favorites
- System status and cache maintenance

Key Principle: single process - Flask, the APScheduler refresh jobs and the
player all share one RadioLibrary stored in app.config['library'].
"""

import logging
from datetime import datetime

from flask import Flask

from radio_atlas import get_version

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['VERSION'] = get_version()
app.json.sort_keys = False

library = None


def init_app(radio_library, settings=None):
    """Attach a RadioLibrary (and settings) to the Flask app

    Args:
        radio_library: RadioLibrary instance
        settings: Settings dict
    """
    global library

    library = radio_library
    app.config['library'] = radio_library
    app.config['settings'] = settings or {}
    app.config['start_time'] = datetime.now()

    logger.info(f"Web API initialized for {radio_library.selected_country.display_name}")


def run_app(host='127.0.0.1', port=5000, debug=False):
    """Run the Flask development server

    Args:
        host: Host to bind to
        port: Port to bind to
        debug: Enable debug mode
    """
    logger.info(f"Starting Radio Atlas API on {host}:{port}")

    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False)
    finally:
        logger.info("Flask app shutting down...")
        cleanup()


def cleanup():
    """Release the player and scheduler before exit"""
    global library

    if library is None:
        return

    try:
        library.shutdown()
    except Exception as e:
        logger.error(f"Error shutting down radio library: {e}")
    library = None


from radio_atlas.web.routes import countries, favorites, player, search, system

app.register_blueprint(countries.countries_bp)
app.register_blueprint(search.search_bp)
app.register_blueprint(player.player_bp)
app.register_blueprint(favorites.favorites_bp)
app.register_blueprint(system.system_bp)
