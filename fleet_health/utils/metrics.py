"""Data structures for sweep targets and check results."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
import time

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .status import CheckKind


class Instance(BaseModel):
    """One monitored application server as registered in the instance directory."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    server_id: str = Field(alias="ServerID")
    server_ip: str = Field(alias="ServerIP")
    http_port: int = Field(alias="HTTPPort", gt=0, lt=65536)
    # Missing or unusable when the instance exposes no JMX agent
    jmx_port: Optional[int] = Field(default=None, alias="JmxPort")
    jvm_route: Optional[str] = Field(default=None, alias="JvmRoute")
    project_id: Optional[str] = Field(default=None, alias="ProjectID")
    project_name: Optional[str] = Field(default="", alias="ProjectName")

    @field_validator("jmx_port", mode="before")
    @classmethod
    def parse_jmx_port(cls, v: Any) -> Optional[int]:
        """Blank, non-numeric or out-of-range ports mean no JMX agent."""
        if isinstance(v, bool):
            return None
        try:
            port = int(str(v).strip())
        except (TypeError, ValueError):
            return None
        return port if 0 < port < 65536 else None


@dataclass(frozen=True)
class CheckResult:
    """Outcome of exactly one probe kind against exactly one instance."""

    server_id: str
    kind: CheckKind
    success: bool
    value: Optional[float] = None  # Latency in ms or decoded metric value
    error: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def failure(cls, server_id: str, kind: CheckKind, error: str) -> "CheckResult":
        """Build an explicit failure marker for one (instance, kind) pair."""
        return cls(server_id=server_id, kind=kind, success=False, error=error)

    @property
    def response(self) -> Union[float, str, None]:
        """Payload as reported: the value on success, the error text otherwise."""
        if self.success:
            return self.value
        return self.error if self.error is not None else self.value

    def to_record(self) -> Dict[str, Any]:
        """Report wire form of this result."""
        return {
            "server_id": self.server_id,
            "kind": self.kind.value,
            "success": self.success,
            "response": self.response,
            "timestamp": int(self.timestamp),
        }


@dataclass
class AggregateReport:
    """All check results from one sweep."""

    results: List[CheckResult]
    dispatched: int
    started_at: float
    duration_s: float = 0.0
    timed_out: int = 0

    def to_payload(self) -> List[Dict[str, Any]]:
        """
        Serialize results for the report sink.

        Returns:
            List of result records, one per dispatched (instance, kind) pair
        """
        return [result.to_record() for result in self.results]

    def summary(self) -> Dict[str, Any]:
        """
        Totals for logging at the end of a sweep.

        Returns:
            dict: total, failed, timed_out and failures grouped by kind
        """
        failures = Counter(r.kind.value for r in self.results if not r.success)
        return {
            "total": len(self.results),
            "dispatched": self.dispatched,
            "failed": sum(failures.values()),
            "timed_out": self.timed_out,
            "failures_by_kind": dict(failures),
            "duration_s": round(self.duration_s, 3),
        }
