"""
Base Transport
==============

Abstract base class for printer transports.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any

from ..models import Job


class BaseTransport(ABC):
    """Delivers an encoded receipt to one physical printer."""

    hardware_type = ''

    @abstractmethod
    def validate(self, job: Job) -> Optional[str]:
        """
        Check job preconditions before any I/O.

        Returns:
            Error message, or None when the job can be sent
        """
        pass

    @abstractmethod
    def send(self, job: Job, markdown: str, hold_seconds: float = 0) -> Dict[str, Any]:
        """
        Print receipt markdown on the job's printer.

        Args:
            job: Job being printed
            markdown: Receipt markdown from the formatters
            hold_seconds: Time the printer stays busy after the write

        Returns:
            Dict with success status and details
        """
        pass

    @abstractmethod
    def target(self, job: Job, success: bool = False) -> str:
        """Destination label used in outcome messages."""
        pass
