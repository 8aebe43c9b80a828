"""Tests for observability module."""

from __future__ import annotations

from api.observability import new_request_id, request_log_fields
from core.db import QueryStats
from core.observability import StatusStrip, system_status


def test_system_status_warmup():
    s = system_status(QueryStats(total=2))
    assert s.status == "OK"
    assert "Warmup" in s.message


def test_system_status_nominal():
    s = system_status(QueryStats(total=10))
    assert s.status == "OK"
    assert s.message == "Nominal"


def test_system_status_warn():
    s = system_status(QueryStats(total=40, slow=15))
    assert s.status == "WARN"
    assert "Slow query" in s.message


def test_status_strip_dataclass():
    ss = StatusStrip(status="OK", message="test")
    assert ss.status == "OK"
    assert ss.message == "test"


def test_request_log_fields_are_ctx_prefixed():
    fields = request_log_fields(method="GET", path="/api/v1/health", status_code=200, duration_ms=1.234, client_ip=None)
    assert fields == {
        "ctx_method": "GET",
        "ctx_path": "/api/v1/health",
        "ctx_status_code": 200,
        "ctx_duration_ms": 1.23,
        "ctx_client_ip": "",
    }


def test_new_request_id_is_unique_hex():
    a, b = new_request_id(), new_request_id()
    assert a != b
    assert len(a) == 32
