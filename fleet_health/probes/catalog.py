"""Declarative catalog of JMX attribute reads issued through the metrics proxy."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..config.models import MetricDefinition, canonical_mbean
from ..utils.metrics import Instance
from ..utils.status import CheckKind


DEFAULT_CATALOG = (
    MetricDefinition(
        kind=CheckKind.HEAP_USED,
        mbean="java.lang:type=Memory",
        attribute="HeapMemoryUsage",
        path="used",
    ),
    MetricDefinition(
        kind=CheckKind.THREAD_COUNT,
        mbean="java.lang:type=Threading",
        attribute="ThreadCount",
    ),
    MetricDefinition(
        kind=CheckKind.CPU_TIME,
        mbean="java.lang:type=OperatingSystem",
        attribute="ProcessCpuTime",
    ),
    MetricDefinition(
        kind=CheckKind.ACTIVE_SESSIONS,
        mbean="Catalina:type=Manager,host=localhost,context=/portal",
        attribute="activeSessions",
    ),
)


def jmx_service_url(host: str, port: int) -> str:
    """RMI connector address of a remote JMX agent."""
    return f"service:jmx:rmi:///jndi/rmi://{host}:{port}/jmxrmi"


@dataclass(frozen=True)
class MetricRequest:
    """One remote attribute read against one instance's JMX agent."""

    kind: CheckKind
    mbean: str
    attribute: str
    target_url: str
    path: Optional[str] = None

    def to_jolokia(self) -> Dict[str, Any]:
        """Jolokia bulk-request entry for this read."""
        request = {
            "type": "read",
            "mbean": self.mbean,
            "attribute": self.attribute,
            "target": {"url": self.target_url},
        }
        if self.path:
            request["path"] = self.path
        return request


def build_requests(
    instance: Instance,
    catalog: Optional[Sequence[MetricDefinition]] = None
) -> List[MetricRequest]:
    """
    Expand the catalog into concrete requests for one instance.

    Args:
        instance: Target instance, supplies the JMX address
        catalog: Metric definitions, DEFAULT_CATALOG when omitted

    Returns:
        List[MetricRequest]: One request per catalog row, in catalog order
    """
    target_url = jmx_service_url(instance.server_ip, instance.jmx_port)
    return [
        MetricRequest(
            kind=definition.kind,
            mbean=definition.mbean,
            attribute=definition.attribute,
            target_url=target_url,
            path=definition.path,
        )
        for definition in (catalog or DEFAULT_CATALOG)
    ]
