"""HTTP reachability probe."""

import asyncio
import time
from typing import List

import httpx

from ..utils.metrics import CheckResult, Instance
from ..utils.status import CheckKind
from .base import BaseProbe


class HealthProbe(BaseProbe):
    """GET the instance's landing page and time the response."""

    @property
    def kinds(self) -> List[CheckKind]:
        return [CheckKind.REACHABILITY]

    def target_url(self, instance: Instance) -> str:
        """
        Build the URL to probe for an instance.

        The first path rule whose pattern occurs in the project name
        (case-insensitive) supplies the path suffix, otherwise the root
        path is probed.

        Args:
            instance: Instance to probe

        Returns:
            str: Absolute http URL
        """
        url = f"http://{instance.server_ip}:{instance.http_port}/"
        project_name = (instance.project_name or "").lower()
        for pattern, suffix in self.config.probes.path_rules.items():
            if pattern.lower() in project_name:
                return url + suffix.lstrip('/')
        return url

    async def probe(self, instance: Instance) -> List[CheckResult]:
        """
        Check a single instance.

        Transport errors are returned as failed results, never raised.

        Args:
            instance: Instance to probe

        Returns:
            List[CheckResult]: One reachability result
        """
        url = self.target_url(instance)
        timeout_s = self.config.probes.health_timeout_s
        start_time = time.perf_counter()

        try:
            # httpx timeouts apply per phase, this bounds the whole exchange
            response = await asyncio.wait_for(
                self.client.get(url, timeout=timeout_s, follow_redirects=True),
                timeout=timeout_s
            )

        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            self.logger.debug(f"Timeout after {elapsed_ms:.0f}ms: {url}")
            return [CheckResult.failure(
                instance.server_id,
                CheckKind.REACHABILITY,
                f"Request timeout: {type(e).__name__}"
            )]

        except httpx.HTTPError as e:
            self.logger.debug(f"Request error for {url}: {e}")
            return [CheckResult.failure(
                instance.server_id,
                CheckKind.REACHABILITY,
                f"Request error: {type(e).__name__}: {e}"
            )]

        response_time_ms = (time.perf_counter() - start_time) * 1000
        self.logger.debug(f"Request time: {url} {response_time_ms:.0f}ms HTTP {response.status_code}")

        if response.is_success:
            return [CheckResult(
                server_id=instance.server_id,
                kind=CheckKind.REACHABILITY,
                success=True,
                value=response_time_ms
            )]

        return [CheckResult(
            server_id=instance.server_id,
            kind=CheckKind.REACHABILITY,
            success=False,
            value=response_time_ms,
            error=f"HTTP {response.status_code}"
        )]
