"""Base probe abstract class for all per-instance checks."""

from abc import ABC, abstractmethod
from typing import Dict, List
import logging
from functools import wraps

import httpx

from ..config.models import FleetCheckConfig
from ..errors import ProbeTransportFailure
from ..utils.metrics import CheckResult, Instance
from ..utils.status import CheckKind


def safe_probe(func):
    """
    Decorator that turns any probe error into failure results.

    Transport failures are expected and logged at warning level; anything
    else is logged with a traceback. Either way the wrapped call returns
    one failure result per kind the probe owns, so a dispatched check is
    never lost.

    Args:
        func: Probe method taking (self, instance)

    Returns:
        Wrapped function that always returns a complete result batch
    """
    @wraps(func)
    async def wrapper(self, instance: Instance, *args, **kwargs):
        try:
            results = await func(self, instance, *args, **kwargs)
        except ProbeTransportFailure as e:
            self.logger.warning(f"{instance.server_id}: {e}")
            return self.failures(instance, str(e))
        except Exception as e:
            self.logger.error(f"Probe crashed for {instance.server_id}: {e}", exc_info=True)
            return self.failures(instance, f"probe error: {e}")
        return self.complete(instance, results)
    return wrapper


class BaseProbe(ABC):
    """Abstract base class for all probes."""

    def __init__(self, config: FleetCheckConfig, client: httpx.AsyncClient, logger: logging.Logger):
        """
        Initialize base probe.

        Args:
            config: Run configuration
            client: Shared HTTP client, reused across all probes of a sweep
            logger: Logger instance
        """
        self.config = config
        self.client = client
        self.logger = logger.getChild(self.__class__.__name__)

    @property
    @abstractmethod
    def kinds(self) -> List[CheckKind]:
        """Check kinds this probe produces for every instance."""

    @abstractmethod
    async def probe(self, instance: Instance) -> List[CheckResult]:
        """
        Run the check against one instance.

        Returns:
            List[CheckResult]: Results for some or all of self.kinds

        Raises:
            ProbeTransportFailure: If the remote call itself failed

        Note:
            Callers should go through run(), which never raises and always
            returns exactly one result per kind.
        """

    @safe_probe
    async def run(self, instance: Instance) -> List[CheckResult]:
        """Guarded entry point used by the orchestrator."""
        return await self.probe(instance)

    def complete(self, instance: Instance, results: List[CheckResult]) -> List[CheckResult]:
        """
        Reduce a probe's output to exactly one result per owned kind.

        Results for kinds this probe does not own are dropped, the first
        result wins for a repeated kind, and owned kinds with no result
        become explicit failures.

        Args:
            instance: Probed instance
            results: Raw probe output

        Returns:
            List[CheckResult]: One result per kind, in self.kinds order
        """
        by_kind: Dict[CheckKind, CheckResult] = {}
        for result in results:
            if result.kind not in self.kinds:
                self.logger.warning(
                    f"Discarding unexpected {result.kind.value} result for {instance.server_id}"
                )
                continue
            by_kind.setdefault(result.kind, result)

        return [
            by_kind.get(kind) or CheckResult.failure(instance.server_id, kind, "no result produced")
            for kind in self.kinds
        ]

    def failures(self, instance: Instance, error: str) -> List[CheckResult]:
        """One failure marker per owned kind."""
        return [CheckResult.failure(instance.server_id, kind, error) for kind in self.kinds]
