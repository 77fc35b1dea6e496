"""Instance directory client: resolves the instances to sweep."""

import json
import logging
from typing import Dict, List

import httpx
from pydantic import ValidationError

from ..config.models import DirectoryConfig
from ..errors import DirectoryUnavailable
from ..utils.metrics import Instance


class DirectoryClient:
    """
    Client for the admin portal's instance directory.

    Returns the instances registered for this host, optionally filtered by
    address allow-list and client id.
    """

    def __init__(self, config: DirectoryConfig, client: httpx.AsyncClient, logger: logging.Logger = None):
        """
        Initialize directory client.

        Args:
            config: Directory configuration
            client: Shared HTTP client
            logger: Optional logger instance
        """
        self.config = config
        self.client = client
        self.logger = (logger or logging.getLogger(__name__)).getChild(self.__class__.__name__)

    def headers(self) -> Dict[str, str]:
        """Authentication and client identification headers."""
        return {
            self.config.token_header: self.config.token,
            "User-Agent": self.config.user_agent,
        }

    def params(self) -> Dict[str, str]:
        """Optional query filters."""
        params = {}
        if self.config.ips:
            params["ips"] = self.config.ips
        if self.config.client_id:
            params["clientID"] = self.config.client_id
        return params

    async def fetch_instances(self) -> List[Instance]:
        """
        Fetch the instance list.

        Returns:
            List[Instance]: Instances in directory order, empty if none

        Raises:
            DirectoryUnavailable: On transport failure, non-2xx status or
                an unparseable body
        """
        try:
            response = await self.client.get(
                self.config.url,
                params=self.params(),
                headers=self.headers(),
                timeout=self.config.timeout_s
            )
        except httpx.HTTPError as e:
            raise DirectoryUnavailable(f"Directory lookup failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise DirectoryUnavailable(
                f"Bad HTTP fetch: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code
            )

        body = response.text.strip()
        self.logger.debug(f"Directory returned {len(body)} bytes")
        if not body:
            return []

        try:
            records = json.loads(body)
        except ValueError as e:
            raise DirectoryUnavailable(f"Directory returned invalid JSON: {e}") from e

        if records is None:
            return []
        if not isinstance(records, list):
            raise DirectoryUnavailable(
                f"Directory returned {type(records).__name__}, expected a list"
            )

        return self._parse(records)

    def _parse(self, records: List) -> List[Instance]:
        instances = []
        for record in records:
            try:
                instances.append(Instance.model_validate(record))
            except ValidationError as e:
                self.logger.warning(
                    f"Skipping invalid directory record: {e.error_count()} error(s)",
                    extra={"record": record if isinstance(record, dict) else repr(record)}
                )

        self.logger.info(f"Directory returned {len(instances)} instance(s)")
        return instances
