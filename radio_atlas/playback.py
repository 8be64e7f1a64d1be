"""
Stream Selector & Failover Engine for Radio Atlas

Given a station and its stream variants, builds an ordered list of candidate
URLs and walks it until one plays:

1. Candidates - the station's variant cluster, best bitrate first (lowest
   first on constrained networks), then most votes + clicks
2. Attempt - backend.load_and_play(url, listener) with a connect timeout
3. Outcome - 'ready' means PLAYING; 'failed', 'stalled' or the timeout
   moves on to the next URL
4. Exhausted - back to IDLE with last_error set; nothing is raised

Every play() starts a new session. Events from older sessions, or from a
superseded attempt in the current one, are ignored.

Callbacks (on_state_change, on_no_playable_source) are queued while the
engine lock is held and only run after it is released.
"""

import logging
import re
import threading
from enum import Enum
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

BITRATE_PATTERN = re.compile(r'(32|48|64|96|112|128|160|192|256|320)\s?(k|kbps)\b')
DEFAULT_BITRATE = 128

READY = 'ready'
FAILED = 'failed'
STALLED = 'stalled'


class PlaybackState(Enum):
    IDLE = 'idle'
    CONNECTING = 'connecting'
    PLAYING = 'playing'
    PAUSED = 'paused'


def infer_bitrate(station):
    """Guess a station's bitrate in kbps from its name or stream URLs

    The name is checked first, then url_resolved, then url.

    Examples:
        "Heart 320k" -> 320, "http://host/stream64kbps" -> 64, "Heart" -> 128
    """
    for text in (station.name, station.url_resolved, station.url):
        if not text:
            continue
        match = BITRATE_PATTERN.search(text.lower())
        if match:
            return int(match.group(1))
    return DEFAULT_BITRATE


def is_valid_stream_url(url):
    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def order_candidates(station, variants, prefer_lower_bitrate=False):
    """Order a station's variants for playback

    Args:
        station: Requested station
        variants: Variant stations of the same cluster (may be empty)
        prefer_lower_bitrate: Lowest bitrate first when True

    Returns:
        List of stations, unique by id
    """
    pool = []
    seen = set()
    for candidate in variants or ():
        if candidate.station_id not in seen:
            seen.add(candidate.station_id)
            pool.append(candidate)
    if station.station_id not in seen:
        pool.insert(0, station)

    def sort_key(candidate):
        bitrate = infer_bitrate(candidate)
        listeners = (candidate.votes or 0) + (candidate.clickcount or 0)
        return (bitrate if prefer_lower_bitrate else -bitrate, -listeners)

    return sorted(pool, key=sort_key)


def build_candidate_urls(stations):
    """Flatten ordered stations to playable URLs

    url_resolved comes before url for each station; invalid URLs are skipped
    and repeats dropped, keeping the first position.
    """
    urls = []
    for station in stations:
        for url in (station.url_resolved, station.url):
            if not is_valid_stream_url(url):
                continue
            url = url.strip()
            if url not in urls:
                urls.append(url)
    return urls


class PlaybackEngine:
    """Playback state machine over a pluggable audio backend

    The backend needs load_and_play(url, listener), stop(), pause(), resume()
    and set_volume(level). It reports progress by calling listener(event)
    with 'ready', 'failed' or 'stalled', from any thread.

    Attributes:
        state: Current PlaybackState
        current_station: Station requested by the last play()
        queue: Stations navigated by play_next()/play_previous()
        last_error: Message from the last exhausted attempt, else None
        on_state_change: Optional callable(state)
        on_no_playable_source: Optional callable(station)
    """

    def __init__(self, backend, connect_timeout=12, volume=0.8, timer_factory=threading.Timer):
        self.backend = backend
        self.connect_timeout = connect_timeout
        self.timer_factory = timer_factory

        self.state = PlaybackState.IDLE
        self.current_station = None
        self.queue = []
        self.queue_index = 0
        self.last_error = None
        self.prefer_lower_bitrate = False
        self.volume = max(0.0, min(1.0, float(volume)))

        self.on_state_change = None
        self.on_no_playable_source = None

        self._lock = threading.RLock()
        self._session = 0
        self._candidates = []
        self._candidate_index = 0
        self._timer = None
        self._variant_map = {}
        self._pending = []

    @classmethod
    def from_settings(cls, backend, settings, timer_factory=threading.Timer):
        config = settings.get('playback', {}) if settings else {}
        return cls(
            backend,
            connect_timeout=config.get('connect_timeout', 12),
            volume=config.get('volume', 0.8),
            timer_factory=timer_factory,
        )

    # ==================== CONFIGURATION ====================

    def set_station_variants(self, variant_map):
        """Replace the primary id -> variant stations lookup"""
        with self._lock:
            self._variant_map = dict(variant_map or {})

    def set_network_conditions(self, constrained=False, expensive=False):
        with self._lock:
            self.prefer_lower_bitrate = bool(constrained or expensive)
        logger.debug(f"Prefer lower bitrate: {self.prefer_lower_bitrate}")

    def set_volume(self, level):
        """Set the output volume, clamped to 0..1

        Returns:
            The applied volume
        """
        with self._lock:
            self.volume = max(0.0, min(1.0, float(level)))
            self.backend.set_volume(self.volume)
            return self.volume

    @property
    def current_url(self):
        with self._lock:
            if self.state == PlaybackState.IDLE:
                return None
            if 0 <= self._candidate_index < len(self._candidates):
                return self._candidates[self._candidate_index]
            return None

    # ==================== PLAYBACK ====================

    def play(self, station, queue=None):
        """Start playing a station

        Args:
            station: Station to play
            queue: Optional station list to navigate with next/previous.
                   Without it the existing queue is kept (or [station] when
                   there is none). A station outside the queue leaves the
                   queue position where it was.
        """
        with self._lock:
            if queue:
                self.queue = list(queue)
            elif not self.queue:
                self.queue = [station]

            position = self._queue_position(station)
            if position is not None:
                self.queue_index = position
            elif self.queue_index >= len(self.queue):
                self.queue_index = 0
            self._start(station)
        self._fire_pending()

    def _queue_position(self, station):
        for index, queued in enumerate(self.queue):
            if queued.station_id == station.station_id:
                return index
        return None

    def _start(self, station):
        self._session += 1
        self._cancel_timer()

        variants = self._variant_map.get(station.station_id, ())
        ordered = order_candidates(station, variants, self.prefer_lower_bitrate)

        self.current_station = station
        self._candidates = build_candidate_urls(ordered)
        self._candidate_index = 0
        self.last_error = None

        logger.info(f"Playing {station.name}: {len(self._candidates)} candidate streams")
        self._set_state(PlaybackState.CONNECTING)
        self._try_candidate(self._session)

    def _try_candidate(self, session):
        if self._candidate_index >= len(self._candidates):
            self._exhausted()
            return

        index = self._candidate_index
        url = self._candidates[index]
        logger.debug(f"Attempt {index + 1}/{len(self._candidates)}: {url}")

        self._timer = self.timer_factory(self.connect_timeout, self._on_timeout, args=(session, index))
        self._timer.daemon = True
        self._timer.start()

        listener = self._make_listener(session, index)
        try:
            self.backend.load_and_play(url, listener)
        except Exception as e:
            logger.warning(f"Backend could not open {url}: {e}")
            self._advance(session, index)

    def _make_listener(self, session, index):
        def listener(event):
            self._handle_event(session, index, event)
        return listener

    def _is_current(self, session, index):
        return session == self._session and index == self._candidate_index

    def _handle_event(self, session, index, event):
        with self._lock:
            if not self._is_current(session, index):
                logger.debug(f"Ignoring '{event}' from a superseded attempt")
                return

            if event == READY:
                if self.state == PlaybackState.CONNECTING:
                    self._cancel_timer()
                    self._set_state(PlaybackState.PLAYING)
                    logger.info(f"Connected: {self._candidates[index]}")
            elif event in (FAILED, STALLED):
                if self.state == PlaybackState.IDLE:
                    return
                logger.info(f"Stream {event}: {self._candidates[index]}")
                self._advance(session, index)
            else:
                logger.debug(f"Unknown playback event: {event}")
        self._fire_pending()

    def _on_timeout(self, session, index):
        with self._lock:
            if self._is_current(session, index) and self.state == PlaybackState.CONNECTING:
                logger.info(f"Connect timeout after {self.connect_timeout}s: {self._candidates[index]}")
                self._advance(session, index)
        self._fire_pending()

    def _advance(self, session, index):
        if not self._is_current(session, index):
            return
        self._cancel_timer()
        self._candidate_index = index + 1
        if self.state != PlaybackState.CONNECTING:
            self._set_state(PlaybackState.CONNECTING)
        self._try_candidate(session)

    def _exhausted(self):
        station = self.current_station
        name = station.name if station else 'station'
        self._cancel_timer()
        try:
            self.backend.stop()
        except Exception as e:
            logger.debug(f"Backend stop failed: {e}")

        self.last_error = f"No playable stream for {name}"
        logger.warning(f"{self.last_error} ({len(self._candidates)} candidates tried)")
        self._set_state(PlaybackState.IDLE)

        if self.on_no_playable_source:
            self._pending.append(('no-playable-source', self.on_no_playable_source, (station,)))

    def play_next(self):
        """Play the next queued station, wrapping around

        Returns:
            The station now playing, or None with an empty queue
        """
        return self._step(1)

    def play_previous(self):
        return self._step(-1)

    def _step(self, offset):
        with self._lock:
            if not self.queue:
                return None
            self.queue_index = (self.queue_index + offset) % len(self.queue)
            station = self.queue[self.queue_index]
            self._start(station)
        self._fire_pending()
        return station

    def toggle_playback(self):
        """Pause, resume, restart or cancel depending on the state

        Returns:
            The new PlaybackState
        """
        with self._lock:
            if self.state == PlaybackState.PLAYING:
                self.backend.pause()
                self._set_state(PlaybackState.PAUSED)
            elif self.state == PlaybackState.PAUSED:
                self.backend.resume()
                self._set_state(PlaybackState.PLAYING)
            elif self.state == PlaybackState.CONNECTING:
                self._stop()
            elif self.current_station is not None:
                self._start(self.current_station)
            state = self.state
        self._fire_pending()
        return state

    def stop(self):
        with self._lock:
            self._stop()
        self._fire_pending()

    def _stop(self):
        self._session += 1
        self._cancel_timer()
        try:
            self.backend.stop()
        except Exception as e:
            logger.debug(f"Backend stop failed: {e}")
        self._set_state(PlaybackState.IDLE)

    # ==================== HELPERS ====================

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set_state(self, state):
        if state == self.state:
            return
        self.state = state
        if self.on_state_change:
            self._pending.append(('state change', self.on_state_change, (state,)))

    def _fire_pending(self):
        with self._lock:
            pending, self._pending = self._pending, []
        for label, callback, args in pending:
            try:
                callback(*args)
            except Exception as e:
                logger.error(f"Error in {label} callback: {e}")

    def status(self):
        """Player status for the HTTP API"""
        with self._lock:
            return {
                'state': self.state.value,
                'station': self.current_station.to_dict() if self.current_station else None,
                'current_url': self.current_url,
                'candidates': len(self._candidates),
                'attempt': self._candidate_index + 1 if self._candidates else 0,
                'queue_length': len(self.queue),
                'queue_index': self.queue_index,
                'volume': self.volume,
                'prefer_lower_bitrate': self.prefer_lower_bitrate,
                'last_error': self.last_error,
            }
