"""Shared pytest configuration and fixtures."""

import json
import pytest
import httpx

from fleet_health.config.models import FleetCheckConfig
from fleet_health.utils.logger import setup_logger
from fleet_health.utils.metrics import Instance


TOKEN = "s3cret-token"
JOLOKIA_URL = "http://jolokia.test:32222/jolokia"


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test", "DEBUG")


@pytest.fixture
def config():
    """Minimal valid configuration pointing at test hosts."""
    return FleetCheckConfig(
        directory={
            "url": "https://admin.test/longsight/json/jmx-instances",
            "token": TOKEN,
        },
        metrics_proxy={"url": JOLOKIA_URL, "timeout_s": 2},
        report={"url": "https://admin.test/longsight/healthinfo"},
        probes={"health_timeout_s": 2},
        sweep={"deadline_s": 5},
    )


@pytest.fixture
def make_instance():
    """Factory for instances as the directory would return them."""
    def _make(server_id="tc-a", ip="10.0.0.1", http_port=8080, jmx_port=51889, project_name="sakai-prod"):
        return Instance.model_validate({
            "ServerID": server_id,
            "JvmRoute": server_id,
            "ServerIP": ip,
            "HTTPPort": str(http_port),
            "JmxPort": "" if jmx_port is None else str(jmx_port),
            "ProjectID": "42",
            "ProjectName": project_name,
        })
    return _make


def jolokia_entry(mbean, attribute, value, status=200, path=None, error=None):
    """One Jolokia bulk-read response entry."""
    request = {"type": "read", "mbean": mbean, "attribute": attribute}
    if path:
        request["path"] = path
    entry = {"request": request, "status": status, "timestamp": 1700000000}
    if status == 200:
        entry["value"] = value
    else:
        entry["error"] = error or "javax.management.InstanceNotFoundException"
    return entry


def jolokia_success(heap=1048576, threads=120, cpu=987654321, sessions=17):
    """A complete, successful response for the default catalog."""
    return [
        jolokia_entry("java.lang:type=Memory", "HeapMemoryUsage", heap, path="used"),
        jolokia_entry("java.lang:type=Threading", "ThreadCount", threads),
        jolokia_entry("java.lang:type=OperatingSystem", "ProcessCpuTime", cpu),
        jolokia_entry("Catalina:type=Manager,host=localhost,context=/portal", "activeSessions", sessions),
    ]


def mock_client(handler):
    """AsyncClient whose requests are answered by handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def request_json(request: httpx.Request):
    return json.loads(request.content)
