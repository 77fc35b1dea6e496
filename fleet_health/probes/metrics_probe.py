"""JMX runtime metrics probe via a Jolokia bulk read."""

import json
import math
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ProbeDecodeFailure, ProbeTransportFailure
from ..utils.metrics import CheckResult, Instance
from ..utils.status import CheckKind
from .base import BaseProbe
from .catalog import DEFAULT_CATALOG, MetricRequest, build_requests, canonical_mbean


class MetricsProbe(BaseProbe):
    """
    Read the catalog attributes of one instance in a single proxy request.

    The proxy answers with a JSON array of entries in no guaranteed order
    or count. Entries are matched back to their metric kind by MBean,
    attribute and path, and any kind without a usable entry is reported
    as an explicit failure.
    """

    @property
    def catalog(self):
        return self.config.probes.catalog or DEFAULT_CATALOG

    @property
    def kinds(self) -> List[CheckKind]:
        return [definition.kind for definition in self.catalog]

    async def probe(self, instance: Instance) -> List[CheckResult]:
        """
        Read all catalog metrics for one instance.

        Args:
            instance: Instance whose JMX agent is read through the proxy

        Returns:
            List[CheckResult]: Exactly one result per catalog kind

        Raises:
            ProbeTransportFailure: If the proxy could not be reached, timed
                out, or answered with a non-success status
        """
        if instance.jmx_port is None:
            return self.failures(instance, "no JMX port registered")

        requests = build_requests(instance, self.catalog)
        payload = await self._post_batch(instance, requests)

        try:
            entries = self._decode(payload)
        except ProbeDecodeFailure as e:
            self.logger.warning(f"{instance.server_id}: {e}")
            return self.failures(instance, str(e))

        return self._match(instance, requests, entries)

    async def _post_batch(self, instance: Instance, requests: List[MetricRequest]) -> bytes:
        proxy = self.config.metrics_proxy
        try:
            response = await self.client.post(
                proxy.url,
                json=[request.to_jolokia() for request in requests],
                timeout=proxy.timeout_s
            )
        except httpx.TimeoutException as e:
            raise ProbeTransportFailure(f"Metrics proxy timeout: {type(e).__name__}") from e
        except httpx.HTTPError as e:
            raise ProbeTransportFailure(f"Metrics proxy error: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise ProbeTransportFailure(f"Metrics proxy returned HTTP {response.status_code}")

        return response.content

    def _decode(self, payload: bytes) -> List[Dict[str, Any]]:
        """
        Parse a bulk-read response body.

        Args:
            payload: Raw response body

        Returns:
            List of response entries that are JSON objects

        Raises:
            ProbeDecodeFailure: If the body is not JSON or not an array
        """
        try:
            body = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as e:
            raise ProbeDecodeFailure(f"Unparseable metrics response: {e}") from e

        if isinstance(body, dict):
            # A whole-batch error from the proxy comes back as one object
            raise ProbeDecodeFailure(
                f"Metrics proxy error {body.get('status')}: {body.get('error', 'unexpected object response')}"
            )
        if not isinstance(body, list):
            raise ProbeDecodeFailure(f"Unexpected metrics response type: {type(body).__name__}")

        self.logger.debug(f"Metrics proxy returned {len(body)} entries")
        return [entry for entry in body if isinstance(entry, dict)]

    def _match(
        self,
        instance: Instance,
        requests: List[MetricRequest],
        entries: List[Dict[str, Any]]
    ) -> List[CheckResult]:
        """Pair response entries with requests and fill in missing kinds."""
        results: Dict[CheckKind, CheckResult] = {}

        for entry in entries:
            echoed = entry.get("request")
            request = self._find_request(requests, echoed) if isinstance(echoed, dict) else None
            if request is None:
                self.logger.debug(f"Ignoring entry for unrequested resource: {echoed}")
                continue
            if request.kind in results:
                continue
            results[request.kind] = self._entry_result(instance, request, entry)

        missing = [request.kind.value for request in requests if request.kind not in results]
        if missing:
            self.logger.warning(
                f"{instance.server_id}: {len(entries)} entries for {len(requests)} requests, "
                f"missing {', '.join(missing)}"
            )

        return [
            results.get(request.kind)
            or CheckResult.failure(instance.server_id, request.kind, "no response entry for metric")
            for request in requests
        ]

    @staticmethod
    def _find_request(requests: List[MetricRequest], echoed: Dict[str, Any]) -> Optional[MetricRequest]:
        """
        Find the request an entry answers.

        Matches on MBean, attribute and path as echoed by the proxy. When
        the echo is incomplete, the MBean alone decides, but only if a
        single request targets it.

        Args:
            requests: Requests sent in the batch
            echoed: The "request" object of a response entry

        Returns:
            The matching request, or None
        """
        mbean = echoed.get("mbean")
        if not isinstance(mbean, str):
            return None
        mbean = canonical_mbean(mbean)
        same_mbean = [r for r in requests if canonical_mbean(r.mbean) == mbean]

        attribute = echoed.get("attribute")
        path = echoed.get("path") or None
        for request in same_mbean:
            if request.attribute == attribute and request.path == path:
                return request

        if len(same_mbean) == 1 and attribute in (None, same_mbean[0].attribute):
            return same_mbean[0]
        return None

    @staticmethod
    def _entry_result(instance: Instance, request: MetricRequest, entry: Dict[str, Any]) -> CheckResult:
        status = entry.get("status")
        if status != 200:
            error = entry.get("error") or "remote read failed"
            return CheckResult.failure(instance.server_id, request.kind, f"status {status}: {error}")

        value = _numeric(entry.get("value"))
        if value is None:
            return CheckResult.failure(
                instance.server_id,
                request.kind,
                f"non-numeric value for {request.attribute}: {entry.get('value')!r}"
            )

        return CheckResult(
            server_id=instance.server_id,
            kind=request.kind,
            success=True,
            value=value
        )


def _numeric(value: Any) -> Optional[float]:
    """Return value as a number, or None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return value
    return None
