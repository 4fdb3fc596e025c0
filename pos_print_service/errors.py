"""
Error Taxonomy
==============

Validation and infrastructure errors abort a whole request; device errors
are reported against a single job, as are network failures (which the
network transport returns as result dicts).
"""


class PrintServiceError(Exception):
    """Base class for print service errors."""


class ValidationError(PrintServiceError):
    """Malformed request or job fields, rejected before any I/O."""


class DeviceError(PrintServiceError):
    """USB printer could not be found, claimed or written to."""


class InfrastructureError(PrintServiceError):
    """Session marker storage failed."""
