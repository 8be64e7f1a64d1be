"""
Command-line interface for Radio Atlas

Entry point for the API server and one-shot catalog commands:
- --serve: Flask API with background cache refresh
- --list-countries / --load-country / --search: catalog queries
- --populate-cache: run the initial population pass in the foreground
- --play: play a station through mpv until interrupted

Usage:
    python -m radio_atlas.cli --help
"""

import argparse
import logging
import signal
import sys
import time

import requests

from radio_atlas.directory import DirectoryUnavailableError
from radio_atlas.library import RadioLibrary
from radio_atlas.logging_setup import setup_logging
from radio_atlas.playback import PlaybackState
from radio_atlas.settings import SETTINGS_FILE, load_settings

logger = logging.getLogger(__name__)


def print_stations(stations, limit=None):
    for index, station in enumerate(stations[:limit] if limit else stations, start=1):
        votes = station.votes or 0
        print(f"  {index:3d}. {station.name} [{station.country}] votes={votes} id={station.station_id}")


def cmd_list_countries(args, library):
    """List the curated countries

    Usage: --list-countries
    """
    print(f"\n{len(library.presets)} countries:\n")
    for preset in library.presets:
        brands = ', '.join(preset.top_brands[:4])
        print(f"  {preset.id:4s} {preset.display_name} ({preset.country_code}) - {brands}")
    return 0


def cmd_load_country(args, library):
    """Load a country and print its flagship stations

    Usage: --load-country uk
    """
    preset = library.get_preset(args.load_country)
    if preset is None:
        print(f"[FAIL] Unknown country: {args.load_country}")
        return 1

    print(f"[INFO] Loading {preset.display_name}...")
    try:
        snapshot = library.load_country(preset)
    except DirectoryUnavailableError as e:
        print(f"[FAIL] {library.error_message or e}")
        return 1

    print(f"\n[OK] {snapshot.station_count} stations, {len(snapshot.top_stations)} flagship\n")
    print_stations(list(snapshot.top_stations), args.limit)
    return 0


def cmd_search(args, library):
    """Search stations by name

    Usage: --search "jazz"
    """
    try:
        stations = library.search(args.search, args.limit)
    except requests.RequestException as e:
        print(f"[FAIL] Search failed: {e}")
        return 1

    print(f"\n[OK] {len(stations)} result(s) for '{args.search}':\n")
    print_stations(stations)
    return 0


def cmd_populate_cache(args, library):
    """Run the initial cache population in the foreground

    Usage: --populate-cache
    """
    print("[INFO] Populating the station cache (this can take several minutes)...")
    results = library.cache.populate_all()
    print("\n[OK] Population pass complete!")
    print(f"  Refreshed: {results.get('refreshed', 0)}")
    print(f"  Failed: {results.get('failed', 0)}")
    print(f"  Skipped (too many failures): {results.get('skipped', 0)}")
    return 0


def cmd_play(args, library):
    """Play a station from the selected country until Ctrl+C

    Usage: --play <station id> [--country uk]
    """
    preset = library.get_preset(args.country) if args.country else library.selected_country
    if preset is None:
        print(f"[FAIL] Unknown country: {args.country}")
        return 1

    try:
        library.load_country(preset)
    except DirectoryUnavailableError as e:
        print(f"[FAIL] {library.error_message or e}")
        return 1

    station = library.find_station(args.play)
    if station is None:
        print(f"[FAIL] Station {args.play} not found in {preset.display_name}")
        return 1

    stopping = []
    signal.signal(signal.SIGINT, lambda signum, frame: stopping.append(signum))
    signal.signal(signal.SIGTERM, lambda signum, frame: stopping.append(signum))

    print(f"[INFO] Playing {station.name} (Ctrl+C to stop)")
    library.play(station, list(library.snapshot.all_stations))

    last_state = None
    try:
        while not stopping:
            state = library.engine.state
            if state != last_state:
                print(f"[INFO] {state.value}: {library.engine.current_url or ''}")
                last_state = state
            if state == PlaybackState.IDLE and library.engine.last_error:
                print(f"[FAIL] {library.engine.last_error}")
                return 1
            time.sleep(0.5)
    finally:
        library.shutdown()

    print("[OK] Stopped")
    return 0


def cmd_serve(args, settings, library):
    """Start the JSON API with background refresh

    Usage: --serve [--host HOST] [--port PORT]
    """
    from radio_atlas.web import init_app, run_app

    web = settings.get('web', {})
    host = args.host or web.get('host', '127.0.0.1')
    port = args.port or web.get('port', 5000)

    init_app(library, settings)
    library.start_background()

    print(f"[INFO] Radio Atlas API on http://{host}:{port}")
    run_app(host=host, port=port, debug=args.debug)
    return 0


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description='Radio Atlas - browse and play internet radio by country',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('--settings', default=SETTINGS_FILE, metavar='FILE',
                        help=f'Settings file (default: {SETTINGS_FILE})')
    parser.add_argument('--serve', action='store_true',
                        help='Start the JSON API with background cache refresh')
    parser.add_argument('--list-countries', action='store_true',
                        help='List curated countries')
    parser.add_argument('--load-country', metavar='ID',
                        help='Load a country and print its flagship stations')
    parser.add_argument('--search', metavar='TEXT',
                        help='Search stations by name')
    parser.add_argument('--populate-cache', action='store_true',
                        help='Run the initial cache population pass')
    parser.add_argument('--play', metavar='STATION_ID',
                        help='Play a station (from --country or the last selected country)')
    parser.add_argument('--country', metavar='ID',
                        help='Country for --play')
    parser.add_argument('--limit', type=int, metavar='N',
                        help='Maximum stations to print')
    parser.add_argument('--host', metavar='HOST',
                        help='API host (default: from settings or 127.0.0.1)')
    parser.add_argument('--port', type=int, metavar='PORT',
                        help='API port (default: from settings or 5000)')
    parser.add_argument('--debug', action='store_true',
                        help='Flask debug mode')

    args = parser.parse_args(argv)

    settings = load_settings(args.settings)
    setup_logging(settings, quiet=not (args.serve or args.play))

    if not any([args.serve, args.list_countries, args.load_country, args.search,
                args.populate_cache, args.play]):
        parser.print_help()
        return 0

    library = RadioLibrary.from_settings(settings)

    if args.serve:
        return cmd_serve(args, settings, library)
    elif args.list_countries:
        return cmd_list_countries(args, library)
    elif args.load_country:
        return cmd_load_country(args, library)
    elif args.search:
        return cmd_search(args, library)
    elif args.populate_cache:
        return cmd_populate_cache(args, library)
    elif args.play:
        return cmd_play(args, library)

    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
