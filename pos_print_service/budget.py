"""
Device Time Budget
==================

Accumulated estimated busy time per physical printer for one request.

A USB job holds its device for the budget of that device after writing,
so a later job to the same printer is not sent while paper is still
feeding.
"""

from typing import Dict, Iterable, Iterator, Tuple

from .config import PRINT_TIME
from .models import Job


class DeviceTimeBudget:
    """Mapping of device key to accumulated seconds."""

    def __init__(self, unit_seconds: float = PRINT_TIME):
        self.unit_seconds = unit_seconds
        self._seconds: Dict[str, float] = {}

    @classmethod
    def from_jobs(cls, jobs: Iterable[Job], unit_seconds: float = PRINT_TIME) -> 'DeviceTimeBudget':
        """Build a budget covering every job of a request."""
        budget = cls(unit_seconds)
        for job in jobs:
            budget.add(job.device_key, job.duration_units)
        return budget

    def add(self, device_key: str, units: int = 1) -> float:
        """Add units of print time to a device; returns its new total."""
        total = self._seconds.get(device_key, 0.0) + units * self.unit_seconds
        self._seconds[device_key] = total
        return total

    def get(self, device_key: str) -> float:
        """Seconds budgeted for a device (0 when unknown)."""
        return self._seconds.get(device_key, 0.0)

    def items(self) -> Iterator[Tuple[str, float]]:
        return iter(self._seconds.items())

    def __contains__(self, device_key: str) -> bool:
        return device_key in self._seconds

    def __len__(self) -> int:
        return len(self._seconds)

    def __repr__(self) -> str:
        return f'DeviceTimeBudget({self._seconds!r})'
