"""Concurrent fan-out/fan-in orchestration of per-instance checks."""

import asyncio
import logging
import time
from typing import Dict, List, Optional, Tuple

import httpx

from .config.models import FleetCheckConfig
from .probes.base import BaseProbe
from .probes.health_probe import HealthProbe
from .probes.metrics_probe import MetricsProbe
from .utils.logger import setup_logger
from .utils.metrics import AggregateReport, CheckResult, Instance
from .utils.status import CheckKind

# (instance position in the sweep, check kind)
CheckKey = Tuple[int, CheckKind]

DEADLINE_ERROR = "sweep deadline exceeded"


class CheckOrchestrator:
    """
    Runs every probe against every instance concurrently.

    One asyncio task is dispatched per (instance, probe). Each task owns
    its results until it publishes them on a single queue; the consumer
    counts arrivals against the (instance, kind) pairs it dispatched and
    stops when all have arrived or the sweep deadline passes. Pairs still
    outstanding at the deadline are resolved as failures, so the report
    always holds exactly one result per dispatched pair.
    """

    def __init__(
        self,
        config: FleetCheckConfig,
        client: httpx.AsyncClient,
        logger: logging.Logger = None,
        probes: Optional[List[BaseProbe]] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Run configuration
            client: Shared HTTP client handed to the default probes
            logger: Optional logger instance
            probes: Probes to dispatch per instance, defaults to the
                health probe and the metrics probe
        """
        self.config = config
        self.logger = (logger or setup_logger("sweep")).getChild(self.__class__.__name__)

        if probes is None:
            probes = [
                HealthProbe(config, client, self.logger),
                MetricsProbe(config, client, self.logger),
            ]
        self.probes = probes

    async def run(self, instances: List[Instance]) -> AggregateReport:
        """
        Sweep all instances and collect one result per dispatched pair.

        Args:
            instances: Targets, in directory order

        Returns:
            AggregateReport: Results ordered by instance then check kind
        """
        started_at = time.time()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.sweep.deadline_s

        expected: Dict[CheckKey, str] = {}
        for index, instance in enumerate(instances):
            for probe in self.probes:
                for kind in probe.kinds:
                    expected[(index, kind)] = instance.server_id

        if not expected:
            self.logger.info("No instances to check")
            return AggregateReport(results=[], dispatched=0, started_at=started_at)

        self.logger.info(
            f"Dispatching {len(instances) * len(self.probes)} task(s) "
            f"for {len(expected)} check(s) across {len(instances)} instance(s)"
        )

        queue: asyncio.Queue = asyncio.Queue()
        tasks = [
            asyncio.create_task(self._dispatch(queue, index, instance, probe))
            for index, instance in enumerate(instances)
            for probe in self.probes
        ]

        try:
            received = await self._collect(queue, expected, deadline)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                self.logger.warning(f"Cancelled {len(pending)} task(s) still running at the deadline")
                await asyncio.gather(*pending, return_exceptions=True)

        missing = [key for key in expected if key not in received]
        for key in missing:
            received[key] = CheckResult.failure(expected[key], key[1], DEADLINE_ERROR)

        results = [received[key] for key in sorted(expected, key=lambda k: (k[0], k[1].order))]
        report = AggregateReport(
            results=results,
            dispatched=len(expected),
            started_at=started_at,
            duration_s=time.time() - started_at,
            timed_out=len(missing)
        )

        self.logger.info("Sweep complete", extra=report.summary())
        return report

    async def _dispatch(
        self,
        queue: asyncio.Queue,
        index: int,
        instance: Instance,
        probe: BaseProbe
    ) -> None:
        """Run one probe against one instance and publish its batch."""
        try:
            results = await probe.run(instance)
        except Exception as e:
            self.logger.error(
                f"{probe.__class__.__name__} failed for {instance.server_id}: {e}",
                exc_info=True
            )
            results = probe.failures(instance, f"probe error: {e}")
        queue.put_nowait((index, results))

    async def _collect(
        self,
        queue: asyncio.Queue,
        expected: Dict[CheckKey, str],
        deadline: float
    ) -> Dict[CheckKey, CheckResult]:
        """
        Consume published batches until every expected pair has arrived.

        Args:
            queue: Completion queue shared by all dispatched tasks
            expected: Dispatched pairs mapped to their server id
            deadline: Event loop time at which collection stops

        Returns:
            dict: Received results keyed by pair, possibly incomplete if
                the deadline passed
        """
        loop = asyncio.get_running_loop()
        received: Dict[CheckKey, CheckResult] = {}

        while len(received) < len(expected):
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                index, batch = await asyncio.wait_for(queue.get(), timeout=remaining)
            except asyncio.TimeoutError:
                break

            for result in batch:
                key = (index, result.kind)
                if key not in expected:
                    self.logger.warning(f"Dropping undispatched {result.kind.value} result for {result.server_id}")
                elif key in received:
                    self.logger.warning(f"Dropping duplicate {result.kind.value} result for {result.server_id}")
                else:
                    received[key] = result

        if len(received) < len(expected):
            self.logger.error(
                f"Sweep deadline of {self.config.sweep.deadline_s}s reached with "
                f"{len(expected) - len(received)} of {len(expected)} check(s) outstanding"
            )

        return received
