"""Report sink client for delivering sweep results to the admin portal."""

import json
import logging

import httpx

from ..config.models import DirectoryConfig, ReportConfig
from ..errors import ReportDeliveryFailure
from ..utils.metrics import AggregateReport


class ReportClient:
    """
    Delivers the aggregated report.

    Uses the same token and client identifier as the directory lookup.
    There is no retry: a failed delivery ends the run.
    """

    def __init__(
        self,
        config: ReportConfig,
        auth: DirectoryConfig,
        client: httpx.AsyncClient,
        logger: logging.Logger = None
    ):
        """
        Initialize report client.

        Args:
            config: Report sink configuration
            auth: Directory configuration holding the token headers
            client: Shared HTTP client
            logger: Optional logger instance
        """
        self.config = config
        self.auth = auth
        self.client = client
        self.logger = (logger or logging.getLogger(__name__)).getChild(self.__class__.__name__)

    async def send(self, report: AggregateReport) -> None:
        """
        POST the report as a JSON array of result records.

        Args:
            report: Completed sweep report

        Raises:
            ReportDeliveryFailure: If the report cannot be serialized, on
                transport failure, or on a non-2xx status
        """
        payload = report.to_payload()
        try:
            body = json.dumps(payload, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise ReportDeliveryFailure(f"Could not serialize report: {e}") from e

        self.logger.debug(f"Sending {len(payload)} result record(s) to {self.config.url}")

        try:
            response = await self.client.post(
                self.config.url,
                content=body,
                headers={
                    self.auth.token_header: self.auth.token,
                    "User-Agent": self.auth.user_agent,
                    "Content-Type": "application/json",
                },
                timeout=self.config.timeout_s
            )
        except httpx.HTTPError as e:
            raise ReportDeliveryFailure(f"Could not POST report: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise ReportDeliveryFailure(
                f"Report sink returned HTTP {response.status_code}",
                status_code=response.status_code
            )

        self.logger.info(f"Report delivered: {len(payload)} result(s)")
