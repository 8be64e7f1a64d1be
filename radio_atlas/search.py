"""
Debounced station search for Radio Atlas

Every keystroke calls submit(). The query only goes to the directory once
the user has paused for debounce_ms, and only the newest query's results are
ever kept: each submit() takes a new token and older searches are dropped
when they complete.

search_now() is a one-shot search for callers without a keystroke stream
(the CLI, /api/search). It never touches the debounced state.
"""

import logging
import threading

import requests

logger = logging.getLogger(__name__)


class SearchController:
    """Search-as-you-type over the directory's name search

    Attributes:
        query: Last submitted query
        results: Results of the newest completed search
        error_message: Set when the newest search failed
        applied_token: Token of the search whose results are in `results`
        on_results: Optional callable(results) fired after each applied search
    """

    def __init__(self, client, limit=120, debounce_ms=300, timer_factory=threading.Timer):
        self.client = client
        self.limit = limit
        self.debounce_seconds = debounce_ms / 1000.0
        self.timer_factory = timer_factory

        self.query = ''
        self.results = []
        self.error_message = None
        self.applied_token = 0
        self.on_results = None

        self._lock = threading.Lock()
        self._token = 0
        self._timer = None

    @classmethod
    def from_settings(cls, client, settings, timer_factory=threading.Timer):
        config = settings.get('search', {}) if settings else {}
        return cls(
            client,
            limit=config.get('limit', 120),
            debounce_ms=config.get('debounce_ms', 300),
            timer_factory=timer_factory,
        )

    def _next_token(self, query):
        self._token += 1
        self.query = query
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        return self._token

    def submit(self, query):
        """Schedule a search after the debounce delay

        A blank query clears the results immediately.

        Returns:
            The search token
        """
        with self._lock:
            token = self._next_token(query or '')
            if not self.query.strip():
                self.results = []
                self.error_message = None
                self.applied_token = token
                return token

            self._timer = self.timer_factory(self.debounce_seconds, self._run, args=(token, self.query))
            self._timer.daemon = True
            self._timer.start()
            return token

    def latest(self):
        """The newest submitted query and the results currently applied

        Returns:
            dict with query, token, applied_token, pending, results, error
        """
        with self._lock:
            return {
                'query': self.query,
                'token': self._token,
                'applied_token': self.applied_token,
                'pending': self._token != self.applied_token,
                'results': list(self.results),
                'error': self.error_message,
            }

    def search_now(self, query, limit=None):
        """Search immediately without touching the debounced search

        Returns:
            List of Station (empty for a blank query)

        Raises:
            requests.RequestException: If the directory search failed
        """
        clean = (query or '').strip()
        if not clean:
            return []
        return list(self.client.search_by_name(clean, limit or self.limit))

    def _run(self, token, query):
        error = None
        try:
            results = self.client.search_by_name(query, self.limit)
        except requests.RequestException as e:
            logger.warning(f"Search for '{query}' failed: {e}")
            results = []
            error = 'Search failed.'

        with self._lock:
            if token != self._token:
                logger.debug(f"Discarding results for superseded search '{query}'")
                return
            self.results = list(results)
            self.error_message = error
            self.applied_token = token
            callback = self.on_results

        if callback:
            try:
                callback(list(results))
            except Exception as e:
                logger.error(f"Error in search results callback: {e}")

    def clear(self):
        self.submit('')

    def cancel(self):
        with self._lock:
            self._next_token(self.query)
