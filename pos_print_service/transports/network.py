"""
Network Transport
=================

ESC/POS over a raw TCP socket (port 9100).

Each job is probed first; an unreachable printer fails the job without a
socket write. One attempt per job, no retries.
"""

import ipaddress
import socket
import logging
from typing import Callable, Dict, Any, Optional

from .base import BaseTransport
from ..config import NETWORK, NETWORK_PORT, SOCKET_TIMEOUT
from ..encoder import encode
from ..models import Job
from ..probe import ReachabilityMonitor, is_reachable

logger = logging.getLogger(__name__)


def is_ipv4(address: Any) -> bool:
    try:
        ipaddress.IPv4Address(str(address))
        return True
    except ValueError:
        return False


class NetworkTransport(BaseTransport):
    """Transport for network receipt printers."""

    hardware_type = NETWORK

    def __init__(self, monitor: Optional[ReachabilityMonitor] = None,
                 probe: Callable[[str], bool] = is_reachable,
                 port: int = NETWORK_PORT, timeout: float = SOCKET_TIMEOUT,
                 encoder: Callable[[str], bytes] = encode):
        self.monitor = monitor
        self.probe = probe
        self.port = port
        self.timeout = timeout
        self.encoder = encoder

    def target(self, job: Job, success: bool = False) -> str:
        return f'Network:{job.ip}' if success else 'Network'

    def validate(self, job: Job) -> Optional[str]:
        if not job.ip:
            return 'ip empty.'
        if not is_ipv4(job.ip):
            return f'ip:{job.ip} incorrect, should be IPv4 format like: 1.1.1.1.'
        return None

    def _send_raw(self, host: str, data: bytes) -> Dict[str, Any]:
        """Send raw bytes to printer via socket."""
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.settimeout(self.timeout)
            try:
                sock.connect((host, self.port))
                sock.sendall(data)
            finally:
                sock.close()

            return {
                'success': True,
                'host': host,
                'port': self.port,
                'bytes_sent': len(data)
            }

        except socket.timeout:
            return {'success': False, 'error': f'Connection timeout to {host}:{self.port}'}
        except ConnectionRefusedError:
            return {'success': False, 'error': f'Connection refused by {host}:{self.port}'}
        except OSError as e:
            return {'success': False, 'error': str(e)}

    def send(self, job: Job, markdown: str, hold_seconds: float = 0) -> Dict[str, Any]:
        host = job.ip
        if self.monitor is not None:
            self.monitor.register(host)

        if not self.probe(host):
            return {'success': False, 'error': f'ip:{host} failed to connect.'}

        result = self._send_raw(host, self.encoder(markdown))
        if not result['success']:
            logger.debug('Socket write to %s failed: %s', host, result['error'])
        return result
