"""
Outcome Reporter
================

Collects the outcome of every job in a request, logs each one on the
done/fail channel and folds them into the response payload.

A request fails if any of its jobs failed; the first failure's message is
reported. Otherwise the last job's message is reported.
"""

import logging
from typing import Dict, Any, List, Optional

from .models import Outcome

logger = logging.getLogger(__name__)
done_logger = logging.getLogger('pos_print_service.done')
fail_logger = logging.getLogger('pos_print_service.fail')


class OutcomeReporter:
    """Per-request outcome log."""

    def __init__(self, session: str):
        self.session = session
        self.outcomes: List[Outcome] = []

    def info(self, line: str):
        logger.info(line)

    def record(self, outcome: Outcome) -> Outcome:
        """Append an outcome and log it."""
        self.outcomes.append(outcome)
        line = f'Session:{outcome.session}|{outcome.message}'
        if outcome.ok:
            done_logger.info(line)
        else:
            fail_logger.error(line)
        return outcome

    def success(self, message: str, kind: Optional[str] = None) -> Outcome:
        return self.record(Outcome.success(message, self.session, kind))

    def failure(self, message: str, kind: Optional[str] = None) -> Outcome:
        return self.record(Outcome.failure(message, self.session, kind))

    @property
    def failed(self) -> List[Outcome]:
        return [o for o in self.outcomes if not o.ok]

    def summary(self) -> Outcome:
        """Request-level outcome."""
        if not self.outcomes:
            return Outcome.failure('Print failed: nothing was dispatched.', self.session)
        failed = self.failed
        if failed:
            return Outcome.failure(failed[0].message, self.session)
        return Outcome.success(self.outcomes[-1].message, self.session)

    def to_dict(self) -> Dict[str, Any]:
        """Response payload: summary plus every job outcome."""
        data = self.summary().to_dict()
        data['results'] = [o.to_dict() for o in self.outcomes]
        return data
