"""
Radio Browser directory client for Radio Atlas

This module wraps the free Radio Browser API (https://api.radio-browser.info/):
- Stations by exact country code / exact country name
- Station search by name
- Endpoint failover: mirrors are tried in order, first 2xx with a
  decodable JSON list wins

Errors are requests.RequestException subclasses so callers can catch every
network failure the same way.
"""

import logging
from urllib.parse import quote

import requests

from radio_atlas.models import Station

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINTS = [
    'https://de1.api.radio-browser.info/json',
    'https://nl1.api.radio-browser.info/json',
    'https://fr1.api.radio-browser.info/json',
]

ORDER_FIELDS = ('votes', 'clickcount', 'name')


class DirectoryRequestError(requests.RequestException):
    """Every directory endpoint failed for one request"""


class DirectoryUnavailableError(requests.RequestException):
    """All bulk queries for a country came back empty or failed"""


class DirectoryClient:
    """Client for the Radio Browser station directory

    Usage:
        client = DirectoryClient()
        stations = client.fetch_by_country_code('GB', order='votes', limit=500)
        results = client.search_by_name('Heart', limit=80)
    """

    def __init__(self, endpoints=None, timeout=12, user_agent='RadioAtlas/1.0', session=None):
        self.endpoints = [e.rstrip('/') for e in (endpoints or DEFAULT_ENDPOINTS)]
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': user_agent})

    @classmethod
    def from_settings(cls, settings):
        """Create a client from the 'directory' settings section"""
        config = settings.get('directory', {}) if settings else {}
        return cls(
            endpoints=config.get('endpoints'),
            timeout=config.get('timeout', 12),
            user_agent=config.get('user_agent', 'RadioAtlas/1.0'),
        )

    def _get(self, path, params):
        """GET a station list, trying each endpoint in turn

        Args:
            path: Path below the endpoint's /json root
            params: Query parameters

        Returns:
            List of decoded JSON objects

        Raises:
            DirectoryRequestError: If no endpoint returned a usable response
        """
        last_error = None

        for base_url in self.endpoints:
            url = f"{base_url}/{path}"
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
            except requests.RequestException as e:
                last_error = e
                logger.debug(f"Directory request failed on {base_url}: {e}")
                continue
            except ValueError as e:
                last_error = e
                logger.debug(f"Undecodable directory response from {base_url}: {e}")
                continue

            if not isinstance(data, list):
                last_error = ValueError(f"Expected a JSON list from {url}")
                continue

            return data

        raise DirectoryRequestError(f"All directory endpoints failed for {path}: {last_error}")

    def _stations(self, path, params):
        data = self._get(path, params)
        return [Station.from_api(item) for item in data if isinstance(item, dict)]

    @staticmethod
    def _list_params(order, reverse, limit):
        if order not in ORDER_FIELDS:
            raise ValueError(f"Unsupported order field: {order}")
        return {
            'hidebroken': 'true',
            'order': order,
            'reverse': 'true' if reverse else 'false',
            'limit': str(limit),
        }

    def fetch_by_country_code(self, code, order='votes', reverse=True, limit=500):
        """Stations whose country code matches exactly

        Args:
            code: Two-letter ISO code (case-insensitive)
            order: 'votes', 'clickcount' or 'name'
            reverse: Descending order when True
            limit: Maximum number of stations

        Returns:
            List of Station
        """
        path = f"stations/bycountrycodeexact/{code.upper()}"
        return self._stations(path, self._list_params(order, reverse, limit))

    def fetch_by_country_name(self, name, order='votes', reverse=True, limit=500):
        """Stations whose directory country name matches exactly"""
        path = f"stations/bycountryexact/{quote(name, safe='')}"
        return self._stations(path, self._list_params(order, reverse, limit))

    def search_by_name(self, query, limit=120):
        """Search stations by name, most-voted first

        Args:
            query: Free-text name query
            limit: Maximum number of stations

        Returns:
            List of Station (empty for a blank query)
        """
        clean = (query or '').strip()
        if not clean:
            return []

        params = {
            'name': clean,
            'hidebroken': 'true',
            'order': 'votes',
            'reverse': 'true',
            'limit': str(limit),
        }
        return self._stations('stations/search', params)
