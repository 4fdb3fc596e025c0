"""
USB Transport
=============

ESC/POS straight to a USB receipt printer through pyusb.

Each job runs exactly one open -> write -> close cycle. ``UsbPrinter`` is a
context manager so the device is released on every exit path, including a
failed open. The device stays claimed for the job's time budget after the
write, so the next job to the same printer waits for the paper to feed.

Device states: closed -> opening -> open -> writing -> open -> closed.

A detached device is only noticed when a transfer on it fails with ENODEV.
An unplug during the post-write hold is not seen by the job itself; close
logs the failed interface release and still disposes the handle.
"""

import errno
import logging
import platform
import time
from typing import Callable, Dict, Any, List, Optional

import usb.core
import usb.util

from .base import BaseTransport
from ..config import USB, USB_TIMEOUT
from ..encoder import encode
from ..errors import DeviceError, ValidationError
from ..models import Job

logger = logging.getLogger(__name__)

# USB interface class code for printers
PRINTER_CLASS = 0x07

# libusb LIBUSB_ERROR_NO_DEVICE
_NO_DEVICE = -4


class _FindPrinterClass:
    """pyusb custom_match: any configuration exposing a printer interface."""

    def __call__(self, device) -> bool:
        try:
            for config in device:
                if usb.util.find_descriptor(config, bInterfaceClass=PRINTER_CLASS) is not None:
                    return True
        except (usb.core.USBError, ValueError, NotImplementedError):
            return False
        return False


def find_printers() -> List[Any]:
    """List attached USB devices with a printer-class interface."""
    try:
        return list(usb.core.find(find_all=True, custom_match=_FindPrinterClass()))
    except usb.core.NoBackendError:
        logger.warning('No libusb backend available, USB printers cannot be listed')
        return []


def describe_printers(devices: List[Any]) -> List[Dict[str, str]]:
    """Vendor/product ids of enumerated printers as 4-digit hex."""
    return [
        {'vid': f'0x{device.idVendor:04x}', 'pid': f'0x{device.idProduct:04x}'}
        for device in devices
    ]


class UsbPrinter:
    """A claimed USB printer handle."""

    def __init__(self, vid: Optional[int] = None, pid: Optional[int] = None,
                 timeout: int = USB_TIMEOUT):
        self.vid = vid
        self.pid = pid
        self.timeout = timeout
        self.state = 'closed'
        self.detached = False
        self._device = None
        self._interfaces: List[int] = []
        self._out_ep: Optional[int] = None

    def _find(self):
        if self.vid is not None and self.pid is not None:
            return usb.core.find(idVendor=self.vid, idProduct=self.pid)
        devices = find_printers()
        return devices[0] if devices else None

    def _check_detached(self, error: usb.core.USBError):
        """A vanished device invalidates the handle."""
        if getattr(error, 'errno', None) == errno.ENODEV or \
                getattr(error, 'backend_error_code', None) == _NO_DEVICE:
            self.invalidate()

    def invalidate(self):
        """Mark the device as unplugged; further writes fail immediately."""
        if not self.detached:
            logger.warning('USB printer %s:%s detached', self.vid, self.pid)
        self.detached = True

    def open(self) -> 'UsbPrinter':
        """
        Find and claim the printer.

        Raises:
            DeviceError: not found, claim failed, or no OUT endpoint
        """
        self.state = 'opening'
        try:
            device = self._find()
        except (usb.core.NoBackendError, usb.core.USBError) as e:
            raise DeviceError(str(e)) from e
        if device is None:
            raise DeviceError(f'Can not find printer:{self.vid}|{self.pid}')
        self._device = device

        try:
            try:
                config = device.get_active_configuration()
            except usb.core.USBError:
                device.set_configuration()
                config = device.get_active_configuration()

            for interface in config:
                number = interface.bInterfaceNumber
                # Kernel driver handling is not available on Windows
                if platform.system() != 'Windows':
                    try:
                        if device.is_kernel_driver_active(number):
                            device.detach_kernel_driver(number)
                    except (usb.core.USBError, NotImplementedError) as e:
                        logger.error('Could not detach kernel driver: %s', e)

                usb.util.claim_interface(device, number)
                self._interfaces.append(number)

                for endpoint in interface.endpoints():
                    address = endpoint.bEndpointAddress
                    if usb.util.endpoint_direction(address) == usb.util.ENDPOINT_OUT:
                        self._out_ep = address
                        break
                if self._out_ep is not None:
                    break
        except usb.core.USBError as e:
            self._check_detached(e)
            raise DeviceError(str(e)) from e

        if self._out_ep is None:
            raise DeviceError('Can not find endpoint from printer')

        self.state = 'open'
        return self

    def write(self, data: bytes) -> int:
        """
        Bulk-write data to the printer.

        Raises:
            DeviceError: device not open, detached, or transfer rejected
        """
        if self.detached:
            raise DeviceError('USB device detached')
        if self.state != 'open' or self._device is None:
            raise DeviceError('USB device not open')

        self.state = 'writing'
        try:
            return self._device.write(self._out_ep, data, self.timeout)
        except usb.core.USBError as e:
            self._check_detached(e)
            raise DeviceError(str(e)) from e
        finally:
            self.state = 'open'

    def close(self):
        """Release interfaces and free the handle. Safe to call twice."""
        device = self._device
        if device is None:
            self.state = 'closed'
            return

        try:
            if not self.detached:
                for number in self._interfaces:
                    try:
                        usb.util.release_interface(device, number)
                    except usb.core.USBError as e:
                        logger.debug('Release of interface %s failed: %s', number, e)
            usb.util.dispose_resources(device)
        except usb.core.USBError as e:
            logger.error('USB close failed: %s', e)
        finally:
            self._device = None
            self._interfaces = []
            self._out_ep = None
            self.state = 'closed'

    def __enter__(self) -> 'UsbPrinter':
        try:
            return self.open()
        except BaseException:
            self.close()
            raise

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class UsbTransport(BaseTransport):
    """Transport for USB receipt printers."""

    hardware_type = USB

    def __init__(self, finder: Callable[[], List[Any]] = find_printers,
                 device_factory: Callable[..., UsbPrinter] = UsbPrinter,
                 timeout: int = USB_TIMEOUT,
                 encoder: Callable[[str], bytes] = encode,
                 sleep: Callable[[float], None] = time.sleep):
        self.finder = finder
        self.device_factory = device_factory
        self.timeout = timeout
        self.encoder = encoder
        self.sleep = sleep

    def target(self, job: Job, success: bool = False) -> str:
        return f'USB:{job.usb_label}'

    def validate(self, job: Job) -> Optional[str]:
        if not self.finder():
            return 'USB Printers Not Found'
        try:
            job.usb_ids()
        except ValidationError as e:
            return str(e)
        return None

    def send(self, job: Job, markdown: str, hold_seconds: float = 0) -> Dict[str, Any]:
        vid, pid = job.usb_ids()
        data = self.encoder(markdown)

        try:
            with self.device_factory(vid, pid, timeout=self.timeout) as printer:
                try:
                    written = printer.write(data)
                except DeviceError as e:
                    return {'success': False, 'error': f'USB device write failed: {e}.'}
                if hold_seconds > 0:
                    self.sleep(hold_seconds)
        except DeviceError as e:
            return {'success': False, 'error': f'USB device open failed: {e}.'}

        return {
            'success': True,
            'bytes_sent': written,
            'held_seconds': hold_seconds,
        }
