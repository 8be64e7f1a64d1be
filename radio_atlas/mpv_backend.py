"""
mpv audio backend for Radio Atlas

Runs one idle mpv process controlled over its JSON IPC socket. A watcher
thread polls mpv properties and turns them into the events the playback
engine listens for:
- 'ready': playback-time started advancing
- 'failed': mpv went back to idle after a load, or the process died
- 'stalled': paused-for-cache for longer than stall_seconds
"""

import json
import logging
import os
import socket
import subprocess
import tempfile
import threading
import time

logger = logging.getLogger(__name__)


def check_mpv_available(mpv_path='mpv'):
    """Check if mpv can be executed"""
    try:
        result = subprocess.run([mpv_path, '--version'], capture_output=True, text=True, timeout=5)
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


class MpvBackend:
    """Audio backend driving an mpv subprocess

    Usage:
        backend = MpvBackend()
        backend.load_and_play('https://example.com/stream.mp3', listener)
        backend.pause()
        backend.shutdown()
    """

    def __init__(self, mpv_path='mpv', socket_path=None, poll_interval=0.5, stall_seconds=8,
                 idle_grace=1.5):
        self.mpv_path = mpv_path
        self.socket_path = socket_path or os.path.join(
            tempfile.gettempdir(), f"radio-atlas-mpv-{os.getpid()}")
        self.poll_interval = poll_interval
        self.stall_seconds = stall_seconds
        self.idle_grace = idle_grace

        self.process = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._watcher = None

        self._listener = None
        self._loaded_at = 0.0
        self._ready_sent = False
        self._stall_started = None
        self._volume = 80

    @classmethod
    def from_settings(cls, settings):
        config = settings.get('playback', {}) if settings else {}
        return cls(mpv_path=config.get('mpv_path', 'mpv'))

    # ==================== PROCESS ====================

    def start(self):
        """Start mpv in idle mode and wait for its IPC socket

        Raises:
            RuntimeError: If mpv does not come up
        """
        if self.is_running():
            return

        if os.path.exists(self.socket_path):
            os.unlink(self.socket_path)

        cmd = [
            self.mpv_path,
            '--idle=yes',
            '--no-video',
            '--no-terminal',
            f'--input-ipc-server={self.socket_path}',
            f'--volume={self._volume}',
            '--load-scripts=no',
        ]
        logger.info(f"Starting mpv with socket: {self.socket_path}")

        try:
            self.process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )
        except OSError as e:
            raise RuntimeError(f"Failed to start mpv: {e}") from e

        deadline = time.time() + 5.0
        while not os.path.exists(self.socket_path):
            if time.time() > deadline:
                self.process.kill()
                self.process = None
                raise RuntimeError("mpv IPC socket was not created within 5s")
            time.sleep(0.1)

        self._stop_event.clear()
        self._watcher = threading.Thread(target=self._watch, name='mpv-watcher', daemon=True)
        self._watcher.start()

    def is_running(self):
        return self.process is not None and self.process.poll() is None

    def shutdown(self):
        self._stop_event.set()
        with self._lock:
            self._listener = None

        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.debug(f"mpv cleanup: {e}")
            self.process = None

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError as e:
                logger.debug(f"Could not remove mpv socket: {e}")

    # ==================== IPC ====================

    def _request(self, *command):
        """Send one IPC command and return the decoded reply, or None"""
        if not os.path.exists(self.socket_path):
            return None

        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(2.0)
                sock.connect(self.socket_path)
                sock.sendall((json.dumps({'command': list(command)}) + '\n').encode('utf-8'))
                raw = sock.recv(65536).decode('utf-8')
        except OSError as e:
            logger.debug(f"mpv IPC error for {command[0]}: {e}")
            return None

        # mpv may interleave event lines; the reply is the line with 'error'
        for line in raw.splitlines():
            try:
                message = json.loads(line)
            except ValueError:
                continue
            if 'error' in message:
                return message
        return None

    def _command(self, *command):
        reply = self._request(*command)
        return bool(reply and reply.get('error') == 'success')

    def _get_property(self, name):
        reply = self._request('get_property', name)
        if reply and reply.get('error') == 'success':
            return reply.get('data')
        return None

    # ==================== BACKEND INTERFACE ====================

    def load_and_play(self, url, listener):
        """Replace the current stream with url

        Args:
            url: Stream URL
            listener: callable(event) receiving 'ready', 'failed' or 'stalled'
        """
        self.start()
        with self._lock:
            self._listener = listener
            self._loaded_at = time.time()
            self._ready_sent = False
            self._stall_started = None

        if not self._command('loadfile', url, 'replace'):
            raise RuntimeError(f"mpv rejected loadfile for {url}")
        self._command('set_property', 'pause', False)

    def stop(self):
        with self._lock:
            self._listener = None
        if self.is_running():
            self._command('stop')

    def pause(self):
        self._command('set_property', 'pause', True)

    def resume(self):
        self._command('set_property', 'pause', False)

    def set_volume(self, level):
        self._volume = int(round(max(0.0, min(1.0, level)) * 100))
        if self.is_running():
            self._command('set_property', 'volume', self._volume)

    # ==================== WATCHER ====================

    def _watch(self):
        while not self._stop_event.wait(self.poll_interval):
            with self._lock:
                listener = self._listener
                loaded_at = self._loaded_at
            if listener is None:
                continue

            event = self._poll_event(loaded_at)
            if event is None:
                continue

            with self._lock:
                # A newer load replaced the listener while polling
                if self._listener is not listener:
                    continue
                if event == 'ready':
                    self._ready_sent = True
                else:
                    self._listener = None

            try:
                listener(event)
            except Exception as e:
                logger.error(f"Error in playback listener: {e}", exc_info=True)

    def _poll_event(self, loaded_at):
        if not self.is_running():
            return 'failed'

        now = time.time()
        if self._get_property('idle-active') and now - loaded_at > self.idle_grace:
            return 'failed'

        if not self._ready_sent:
            position = self._get_property('playback-time')
            if position is not None and position > 0:
                return 'ready'
            return None

        if self._get_property('paused-for-cache'):
            if self._stall_started is None:
                self._stall_started = now
            elif now - self._stall_started > self.stall_seconds:
                return 'stalled'
        else:
            self._stall_started = None
        return None
