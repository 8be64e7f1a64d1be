"""
Route blueprints for the Radio Atlas API
"""

from flask import current_app, jsonify


def get_library():
    """Get the RadioLibrary from Flask app config"""
    return current_app.config.get('library')


def library_missing():
    return jsonify({'error': 'Radio library not initialized'}), 500


def stations_payload(stations):
    return [station.to_dict() for station in stations]
