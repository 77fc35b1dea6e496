"""
Error taxonomy for a fleet sweep.

Only DirectoryUnavailable and ReportDeliveryFailure end a run. Probe
failures are recovered inside their task and surface as failed
CheckResults in the aggregate report.
"""

from typing import Optional


class FleetCheckError(Exception):
    """Base class for all fleet health-check errors."""


class DirectoryUnavailable(FleetCheckError):
    """Instance directory lookup failed or returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProbeTransportFailure(FleetCheckError):
    """A probe's network call failed or timed out."""


class ProbeDecodeFailure(FleetCheckError):
    """A metrics batch response could not be decoded."""


class ReportDeliveryFailure(FleetCheckError):
    """The aggregated report could not be delivered to the report sink."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
