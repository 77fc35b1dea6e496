"""End-to-end tests for the command-line sweep."""

import json

import pytest
import httpx

from fleet_health import main as cli

from conftest import JOLOKIA_URL, TOKEN, jolokia_success, request_json

DIRECTORY_URL = "https://admin.longsight.com/longsight/json/jmx-instances"
REPORT_URL = "https://admin.longsight.com/longsight/healthinfo"

INSTANCE = {
    "ServerID": "tc-101", "JvmRoute": "tc101", "ServerIP": "10.4.100.215",
    "HTTPPort": "8080", "JmxPort": "51889", "ProjectID": "7", "ProjectName": "sakai",
}


@pytest.fixture(autouse=True)
def quiet_process(monkeypatch):
    """Keep signal handlers and environment of the test runner untouched."""
    monkeypatch.setattr(cli.signal, "signal", lambda *args: None)
    for name in ("FLEET_HEALTH_TOKEN", "FLEET_HEALTH_CLIENT_ID", "FLEET_HEALTH_JOLOKIA_URL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fleet(monkeypatch):
    """Route every request the CLI makes to an in-memory fake admin portal."""
    state = {"directory_status": 200, "instances": [INSTANCE], "report_status": 200, "requests": []}

    def handler(request):
        state["requests"].append(request)
        url = str(request.url).split("?")[0]
        if url == DIRECTORY_URL:
            return httpx.Response(state["directory_status"], json=state["instances"])
        if url == REPORT_URL:
            return httpx.Response(state["report_status"])
        if url == JOLOKIA_URL:
            return httpx.Response(200, json=jolokia_success())
        return httpx.Response(200, text="portal")

    state["handler"] = handler
    transport = httpx.MockTransport(lambda request: state["handler"](request))
    real_client = httpx.AsyncClient
    monkeypatch.setattr(cli.httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))
    return state


def posted_report(state):
    reports = [r for r in state["requests"] if str(r.url) == REPORT_URL]
    assert len(reports) == 1
    return request_json(reports[0])


def run(*extra):
    return cli.main(["--token", TOKEN, "--jolokia", JOLOKIA_URL, "--log-level", "ERROR", *extra])


def test_full_sweep_reports_every_check(fleet):
    assert run() == 0

    records = posted_report(fleet)
    assert len(records) == 5
    assert {r["kind"] for r in records} == {
        "reachability", "heap_used", "thread_count", "cpu_time", "active_sessions"
    }
    assert all(r["success"] for r in records)
    health = [r for r in fleet["requests"] if r.url.host == "10.4.100.215"]
    assert str(health[0].url) == "http://10.4.100.215:8080/portal/"


def test_directory_failure_is_fatal_and_dispatches_nothing(fleet):
    fleet["directory_status"] = 503

    assert run() == 1
    assert len(fleet["requests"]) == 1


def test_empty_directory_sends_empty_report(fleet):
    fleet["instances"] = []

    assert run() == 0
    assert posted_report(fleet) == []


def test_report_failure_is_fatal(fleet):
    fleet["report_status"] = 500

    assert run() == 1


def test_dry_run_skips_delivery(fleet):
    assert run("--dry-run") == 0
    assert not [r for r in fleet["requests"] if str(r.url) == REPORT_URL]


def test_filters_forwarded(fleet):
    assert run("--ips", "10.4.100.215", "--client-id", "acme") == 0

    lookup = fleet["requests"][0]
    assert lookup.url.params["ips"] == "10.4.100.215"
    assert lookup.url.params["clientID"] == "acme"


def test_missing_token_exits_non_zero(fleet, capsys):
    assert cli.main(["--log-level", "ERROR"]) == 1
    assert "security token" in capsys.readouterr().err
    assert fleet["requests"] == []


def test_missing_config_file_exits_non_zero(fleet):
    assert cli.main(["--config", "/nonexistent/config.yaml", "--token", TOKEN]) == 1


def test_non_finite_metric_is_reported_as_failure(fleet):
    """NaN from the proxy becomes a failed check and the report still goes out."""
    entries = jolokia_success()
    entries[0]["value"] = float("nan")
    body = json.dumps(entries)

    handler = fleet["handler"]

    def nan_handler(request):
        if str(request.url) == JOLOKIA_URL:
            fleet["requests"].append(request)
            return httpx.Response(200, content=body)
        return handler(request)

    fleet["handler"] = nan_handler

    assert run() == 0

    records = {r["kind"]: r for r in posted_report(fleet)}
    assert records["heap_used"]["success"] is False
    assert "non-numeric" in records["heap_used"]["response"]
    assert records["thread_count"]["success"] is True
