"""
Dispatcher
==========

Runs every job of a print request against its transport, one after the
other, in group order (report, bill, order, refund).

A failing job never stops the batch; each job gets its own outcome.
"""

import logging
from typing import Callable, Dict, Iterable, Optional

from .budget import DeviceTimeBudget
from .config import OTHER_BRANDS, PRINT_TIME
from .errors import ValidationError
from .formatters import build_payload
from .models import Job, Outcome, PrintRequest
from .probe import ReachabilityMonitor
from .reporter import OutcomeReporter
from .transports import BaseTransport, default_transports

logger = logging.getLogger(__name__)


class Dispatcher:
    """Selects a transport per job and records the outcome."""

    def __init__(self, transports: Optional[Dict[str, BaseTransport]] = None,
                 monitor: Optional[ReachabilityMonitor] = None,
                 other_brands: Iterable[str] = OTHER_BRANDS,
                 unit_seconds: float = PRINT_TIME,
                 payload_builder: Callable[[Job], str] = build_payload):
        self.transports = transports if transports is not None else default_transports(monitor)
        self.other_brands = tuple(other_brands)
        self.unit_seconds = unit_seconds
        self.payload_builder = payload_builder

    def dispatch(self, request: PrintRequest,
                 reporter: Optional[OutcomeReporter] = None) -> OutcomeReporter:
        """Print every job of the request."""
        reporter = reporter or OutcomeReporter(request.session)
        budget = DeviceTimeBudget.from_jobs(request.jobs(), self.unit_seconds)
        logger.debug('Session:%s|budget %r', request.session, budget)

        for job in request.jobs():
            reporter.info(job.summary(request.session))
            reporter.record(self.dispatch_job(job, budget, request.session))
        return reporter

    def dispatch_job(self, job: Job, budget: DeviceTimeBudget, session: str) -> Outcome:
        """Print one job and classify the result."""
        kind = job.kind
        hardware_type = job.hardware_type

        if not isinstance(hardware_type, str):
            return Outcome.failure(
                f'Print {kind} failed: Unsupported hardwareType: {hardware_type}', session, kind)

        if hardware_type in self.other_brands:
            return Outcome.success(f'Print {kind}: ignore hardwareType {hardware_type}', session, kind)

        transport = self.transports.get(hardware_type)
        if transport is None:
            return Outcome.failure(
                f'Print {kind} failed: Unsupported hardwareType: {hardware_type}', session, kind)

        try:
            error = transport.validate(job)
            if error:
                return Outcome.failure(f'Print {kind} to {transport.target(job)} failed: {error}',
                                       session, kind)

            markdown = self.payload_builder(job)
            result = transport.send(job, markdown, hold_seconds=budget.get(job.device_key))
        except ValidationError as e:
            return Outcome.failure(f'Print {kind} failed: {e}', session, kind)
        except Exception as e:
            logger.exception('Session:%s|%s job crashed', session, kind)
            return Outcome.failure(f'Print {kind} failed: {e}', session, kind)

        if result['success']:
            return Outcome.success(f'Print {kind} to {transport.target(job, True)} success.',
                                   session, kind)
        return Outcome.failure(
            f"Print {kind} to {transport.target(job)} failed: {result.get('error', 'unknown error')}",
            session, kind)
