"""
Session Queue
=============

Single-flight gate over the shared printer hardware.

Only one print request may be dispatching at a time. The token of the
request holding the gate is persisted in a marker file; other requests
queue up FIFO and wait until the marker names their token. A holder that
never releases (crashed worker, wedged device) loses the gate once its
lease runs out. A live holder inside ``session()`` keeps renewing its lease
until the block exits.
"""

import json
import logging
import os
import threading
import time
from collections import deque
from contextlib import contextmanager
from typing import Optional, Dict, Any, List

from filelock import FileLock

from .config import SESSION_LEASE_SECONDS, SESSION_POLL_INTERVAL
from .errors import InfrastructureError

logger = logging.getLogger(__name__)


class SessionQueue:
    """FIFO gate backed by a session marker file."""

    def __init__(self, marker_path: str, lease_seconds: float = SESSION_LEASE_SECONDS,
                 poll_interval: float = SESSION_POLL_INTERVAL):
        self.marker_path = marker_path
        self.lease_seconds = lease_seconds
        self.poll_interval = poll_interval
        self._pending = deque()
        self._cond = threading.Condition()
        self._file_lock = FileLock(f'{marker_path}.lock')

    # =========================================================================
    # Marker storage
    # =========================================================================

    def _ensure_dir(self):
        try:
            os.makedirs(os.path.dirname(self.marker_path) or '.', exist_ok=True)
        except OSError as e:
            raise InfrastructureError(f'Session directory unavailable: {e}') from e

    def _read_marker(self) -> Optional[Dict[str, Any]]:
        try:
            with open(self.marker_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except ValueError:
            # Half-written or foreign content; nobody can be waiting on it
            logger.warning('Session marker %s unreadable, ignoring it', self.marker_path)
            return None
        except OSError as e:
            raise InfrastructureError(f'Session marker read failed: {e}') from e
        return data if isinstance(data, dict) else None

    def _write_marker(self, token: str):
        data = {'session': token, 'acquired_at': time.time(), 'pid': os.getpid()}
        tmp_path = f'{self.marker_path}.tmp'
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f)
            os.replace(tmp_path, self.marker_path)
        except OSError as e:
            raise InfrastructureError(f'Session marker write failed: {e}') from e

    def _clear_marker(self):
        try:
            os.remove(self.marker_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise InfrastructureError(f'Session marker clear failed: {e}') from e

    def _expired(self, marker: Dict[str, Any]) -> bool:
        acquired_at = marker.get('acquired_at') or 0
        return time.time() - acquired_at > self.lease_seconds

    def _promote_next(self):
        """Hand the gate to the next pending token, or free it."""
        if self._pending:
            token = self._pending[0]
            self._write_marker(token)
            self._pending.popleft()
            logger.info('Session:%s|granted from queue (%d waiting)', token, len(self._pending))
        else:
            self._clear_marker()
        self._cond.notify_all()

    def _discard(self, token: str):
        try:
            self._pending.remove(token)
        except ValueError:
            pass

    # =========================================================================
    # Gate protocol
    # =========================================================================

    def try_acquire(self, token: str) -> bool:
        """
        Take the gate if it is free, otherwise join the queue.

        Returns:
            True if granted, False if the token was queued
        """
        self._ensure_dir()
        with self._cond, self._file_lock:
            marker = self._read_marker()
            if marker is not None and not self._pending and self._expired(marker):
                logger.warning('Session:%s|lease expired, gate force-released', marker.get('session'))
                marker = None
            if marker is None:
                self._write_marker(token)
                return True
            self._pending.append(token)
            logger.info('Session:%s|queued behind %s (position %d)',
                        token, marker.get('session'), len(self._pending))
            return False

    def wait(self, token: str, timeout: Optional[float] = None):
        """
        Block until the marker names ``token``.

        Wakes on release notifications and re-reads the marker every
        ``poll_interval`` seconds so holders in other processes are seen.

        Raises:
            InfrastructureError: marker storage failed
            TimeoutError: not granted within ``timeout``
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                try:
                    with self._file_lock:
                        marker = self._read_marker()
                        if marker is not None and marker.get('session') == token:
                            return
                        head = self._pending[0] if self._pending else None
                        if head == token and (marker is None or self._expired(marker)):
                            if marker is not None:
                                logger.warning('Session:%s|lease expired, gate force-released',
                                               marker.get('session'))
                            self._promote_next()
                            return
                except InfrastructureError:
                    self._discard(token)
                    raise

                interval = self.poll_interval
                if deadline is not None:
                    left = deadline - time.monotonic()
                    if left <= 0:
                        self._discard(token)
                        raise TimeoutError(f'Session {token} not granted within {timeout}s')
                    interval = min(interval, left)
                self._cond.wait(interval)

    def acquire(self, token: str, timeout: Optional[float] = None) -> bool:
        """
        Take the gate, queueing and blocking while it is held.

        Returns:
            True if granted immediately, False if the caller had to wait
        """
        if self.try_acquire(token):
            return True
        self.wait(token, timeout=timeout)
        return False

    def release(self, token: str):
        """Release the gate held by ``token`` and wake the next waiter."""
        self._ensure_dir()
        with self._cond, self._file_lock:
            marker = self._read_marker()
            if marker is not None and marker.get('session') != token:
                logger.warning('Session:%s|release ignored, gate held by %s',
                               token, marker.get('session'))
                return
            self._promote_next()

    def renew(self, token: str) -> bool:
        """
        Restart the lease of the holder.

        Returns:
            False if ``token`` no longer holds the gate
        """
        self._ensure_dir()
        with self._cond, self._file_lock:
            marker = self._read_marker()
            if marker is None or marker.get('session') != token:
                return False
            self._write_marker(token)
            return True

    def _keep_alive(self, token: str, stop: threading.Event):
        interval = max(self.lease_seconds / 3, 0.01)
        while not stop.wait(interval):
            try:
                if not self.renew(token):
                    logger.warning('Session:%s|lease lost while dispatching', token)
                    return
            except InfrastructureError as e:
                logger.error('Session:%s|lease renewal failed: %s', token, e)

    @contextmanager
    def session(self, token: str, timeout: Optional[float] = None):
        """Hold the gate for the duration of the block, renewing its lease."""
        self.acquire(token, timeout=timeout)
        stop = threading.Event()
        keeper = threading.Thread(target=self._keep_alive, args=(token, stop),
                                  name=f'session-lease-{token}', daemon=True)
        keeper.start()
        try:
            yield token
        finally:
            stop.set()
            keeper.join()
            self.release(token)

    def reset(self):
        """Clear a marker left over from a previous run."""
        self._ensure_dir()
        with self._cond, self._file_lock:
            if not self._pending:
                self._clear_marker()

    # =========================================================================
    # Introspection
    # =========================================================================

    def current(self) -> Optional[str]:
        """Token currently holding the gate."""
        marker = self._read_marker()
        return marker.get('session') if marker else None

    def pending(self) -> List[str]:
        with self._cond:
            return list(self._pending)
