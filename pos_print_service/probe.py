"""
Reachability Probe
==================

``is_reachable`` pings a network printer before a job is sent to it.

``ReachabilityMonitor`` keeps re-probing every printer address seen during
dispatch on a background thread and logs the ones that stop answering.
It is advisory only and never touches dispatch outcomes.
"""

import logging
import platform
import socket
import subprocess
import threading
from datetime import datetime
from typing import Callable, Dict, Any, List, Optional

from .config import PROBE_TIMEOUT, MONITOR_INTERVAL, NETWORK_PORT

logger = logging.getLogger(__name__)


def _ping_command(address: str, timeout: float) -> List[str]:
    system = platform.system()
    if system == 'Windows':
        return ['ping', '-n', '1', '-w', str(int(timeout * 1000)), address]
    if system == 'Darwin':
        return ['ping', '-c', '1', '-t', str(max(1, int(timeout))), address]
    return ['ping', '-c', '1', '-W', str(max(1, int(timeout))), address]


def _tcp_reachable(address: str, port: int, timeout: float) -> bool:
    try:
        sock = socket.create_connection((address, port), timeout=timeout)
        sock.close()
        return True
    except OSError:
        return False


def is_reachable(address: str, timeout: float = PROBE_TIMEOUT) -> bool:
    """
    Echo-probe an address.

    Uses the system ``ping``; where no ping binary is installed, falls back
    to a TCP connect on the printer port.
    """
    try:
        result = subprocess.run(
            _ping_command(address, timeout),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout + 1,
        )
        return result.returncode == 0
    except subprocess.TimeoutExpired:
        return False
    except FileNotFoundError:
        logger.debug('ping not available, probing %s with TCP connect', address)
        return _tcp_reachable(address, NETWORK_PORT, timeout)


class ReachabilityMonitor:
    """Background health check over printer addresses seen in dispatch."""

    def __init__(self, interval: float = MONITOR_INTERVAL,
                 probe: Callable[[str], bool] = is_reachable):
        self.interval = interval
        self.probe = probe
        self._status: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def register(self, address: str):
        """Add an address to the watch set (no-op if already watched)."""
        with self._lock:
            if address not in self._status:
                self._status[address] = {'reachable': None, 'last_check': None}
                logger.debug('Monitoring printer %s', address)

    @property
    def addresses(self) -> List[str]:
        with self._lock:
            return list(self._status)

    def status(self) -> Dict[str, Dict[str, Any]]:
        """Last known reachability per address."""
        with self._lock:
            return {
                address: {
                    'reachable': entry['reachable'],
                    'last_check': entry['last_check'].isoformat() if entry['last_check'] else None,
                }
                for address, entry in self._status.items()
            }

    def check_once(self) -> List[str]:
        """
        Probe every watched address once.

        Returns:
            Addresses that did not answer
        """
        unreachable = []
        for address in self.addresses:
            try:
                alive = self.probe(address)
            except Exception as e:
                logger.warning('Probe of %s raised: %s', address, e)
                alive = False

            with self._lock:
                entry = self._status.setdefault(address, {'reachable': None, 'last_check': None})
                previous = entry['reachable']
                entry['reachable'] = alive
                entry['last_check'] = datetime.now()

            if not alive:
                unreachable.append(address)
                logger.warning('Printer %s failed to respond', address)
            elif previous is False:
                logger.info('Printer %s is reachable again', address)
        return unreachable

    def _run(self):
        while not self._stop.wait(self.interval):
            self.check_once()

    def start(self):
        """Start the background thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='reachability-monitor', daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
