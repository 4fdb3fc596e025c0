"""
POS Print Service Models
"""

from .job import Job, PrintRequest
from .outcome import Outcome, SUCCESS, FAILURE

__all__ = ['Job', 'PrintRequest', 'Outcome', 'SUCCESS', 'FAILURE']
