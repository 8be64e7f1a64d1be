"""
Station artwork for Radio Atlas

Logos are looked up in this order:
1. Disk cache (<cache_dir>/<station id>.img)
2. The station's own favicon (and its https:// twin for http:// favicons)
3. Favicon services for the station's homepage and stream hosts

Anything 256 bytes or smaller is treated as a placeholder and skipped. The
disk cache is capped by size; the oldest files by mtime go first.
"""

import logging
import os
import threading
from urllib.parse import quote, urlparse

import requests

logger = logging.getLogger(__name__)

MIN_ARTWORK_BYTES = 256

FAVICON_SERVICES = [
    'https://icons.duckduckgo.com/ip3/{host}.ico',
    'https://www.google.com/s2/favicons?domain={host}&sz=256',
    'https://icon.horse/icon/{host}',
]


def artwork_candidate_urls(station):
    """Ordered artwork URLs worth trying for a station"""
    urls = []

    favicon = (station.favicon or '').strip()
    scheme = urlparse(favicon).scheme.lower() if favicon else ''
    if scheme in ('http', 'https'):
        urls.append(favicon)
        if scheme == 'http':
            urls.append('https://' + favicon[len('http://'):])

    hosts = []
    for source in (station.homepage, station.url_resolved, station.url):
        if not source:
            continue
        host = (urlparse(source).hostname or '').lower()
        if host and host not in hosts:
            hosts.append(host)

    for host in hosts:
        for template in FAVICON_SERVICES:
            urls.append(template.format(host=quote(host, safe='.-')))

    return urls


class ArtworkProvider:
    """Fetches and caches station logos

    Attributes:
        cache_dir: Directory for cached images
        max_bytes: Disk cache cap
    """

    def __init__(self, cache_dir, max_bytes=52428800, timeout=8, user_agent='RadioAtlas/1.0',
                 session=None):
        self.cache_dir = cache_dir
        self.max_bytes = max_bytes
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': user_agent})
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings):
        config = settings.get('artwork', {}) if settings else {}
        directory = settings.get('directory', {}) if settings else {}
        return cls(
            cache_dir=config.get('cache_dir', os.path.join('.', 'artwork_cache')),
            max_bytes=config.get('max_bytes', 52428800),
            timeout=config.get('timeout', 8),
            user_agent=directory.get('user_agent', 'RadioAtlas/1.0'),
        )

    def _cache_path(self, station):
        safe_id = ''.join(c for c in station.station_id if c.isalnum() or c in '-_')
        return os.path.join(self.cache_dir, f"{safe_id}.img")

    def cached_artwork(self, station):
        path = self._cache_path(station)
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError:
            return None
        return data or None

    def fetch_artwork(self, station):
        """Return logo bytes for a station, or None

        Network and disk errors are logged and treated as a miss.
        """
        if not station.station_id:
            return None

        data = self.cached_artwork(station)
        if data:
            return data

        for url in artwork_candidate_urls(station):
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.RequestException as e:
                logger.debug(f"Artwork request failed for {url}: {e}")
                continue

            if not 200 <= response.status_code < 300:
                continue
            content = response.content
            if len(content) <= MIN_ARTWORK_BYTES:
                continue

            self._store(station, content)
            return content

        return None

    def _store(self, station, data):
        with self._lock:
            try:
                os.makedirs(self.cache_dir, exist_ok=True)
                path = self._cache_path(station)
                tmp_path = f"{path}.tmp"
                with open(tmp_path, 'wb') as f:
                    f.write(data)
                os.replace(tmp_path, path)
            except OSError as e:
                logger.warning(f"Could not cache artwork for {station.name}: {e}")
                return
            self._evict()

    def _evict(self):
        """Delete oldest cached images until the cache fits max_bytes

        Returns:
            Number of files deleted
        """
        try:
            entries = []
            for name in os.listdir(self.cache_dir):
                if not name.endswith('.img'):
                    continue
                path = os.path.join(self.cache_dir, name)
                stat = os.stat(path)
                entries.append((stat.st_mtime, stat.st_size, path))
        except OSError as e:
            logger.warning(f"Could not scan artwork cache: {e}")
            return 0

        total = sum(size for _, size, _ in entries)
        deleted = 0
        for _, size, path in sorted(entries):
            if total <= self.max_bytes:
                break
            try:
                os.remove(path)
                total -= size
                deleted += 1
            except OSError as e:
                logger.warning(f"Could not delete {path}: {e}")

        if deleted:
            logger.info(f"Evicted {deleted} cached artwork files")
        return deleted

    def prefetch(self, stations):
        """Fetch artwork for several stations, ignoring failures

        Returns:
            Number of stations with artwork available
        """
        found = 0
        for station in stations:
            try:
                if self.fetch_artwork(station):
                    found += 1
            except Exception as e:
                logger.debug(f"Artwork prefetch failed for {station.name}: {e}")
        return found
