"""
POS Print Service Transports
============================

Delivery of encoded receipts to network and USB printers.
"""

from typing import Dict, Optional

from .base import BaseTransport
from .network import NetworkTransport
from .usb import UsbTransport, UsbPrinter, find_printers, describe_printers
from ..probe import ReachabilityMonitor

__all__ = ['BaseTransport', 'NetworkTransport', 'UsbTransport', 'UsbPrinter',
           'find_printers', 'describe_printers', 'default_transports']


def default_transports(monitor: Optional[ReachabilityMonitor] = None) -> Dict[str, BaseTransport]:
    """Transport registry keyed by hardware type."""
    transports = (NetworkTransport(monitor=monitor), UsbTransport())
    return {transport.hardware_type: transport for transport in transports}
