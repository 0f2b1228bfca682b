# tests/unit/libs/ledger_common/test_ledger_common_support.py
import logging
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from ledger_common.health import create_health_router
from ledger_common.logging_utils import (
    CorrelationIdFilter,
    correlation_id_var,
    generate_correlation_id,
    principal_id_var,
)
from ledger_common.monitoring import observe_bulk_rows, observe_mutation
from ledger_common.utils import async_timed


def _sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_correlation_filter_injects_context():
    record = logging.LogRecord("ledger", logging.INFO, __file__, 1, "msg", None, None)
    correlation_token = correlation_id_var.set("LDG:abc")
    principal_token = principal_id_var.set("U-1")
    try:
        assert CorrelationIdFilter().filter(record) is True
    finally:
        correlation_id_var.reset(correlation_token)
        principal_id_var.reset(principal_token)

    assert record.correlation_id == "LDG:abc"
    assert record.principal_id == "U-1"
    assert record.request_id == "<not-set>"


def test_generate_correlation_id_is_prefixed():
    assert generate_correlation_id("LDG").startswith("LDG:")


@pytest.mark.asyncio
async def test_async_timed_records_failures_under_error_outcome():
    labels = {"repository": "TestRepository", "method": "explode", "outcome": "error"}
    before = _sample("db_operation_latency_seconds_count", labels)

    @async_timed(repository="TestRepository", method="explode")
    async def explode():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await explode()

    assert _sample("db_operation_latency_seconds_count", labels) == before + 1


def test_observe_helpers_skip_zero_counts():
    before = _sample("ledger_mutations_total", {"operation": "bulk_post"})
    observe_mutation("bulk_post", 0)
    observe_mutation("bulk_post", 3)
    assert _sample("ledger_mutations_total", {"operation": "bulk_post"}) == before + 3

    before_rows = _sample("ledger_bulk_rows_total", {"outcome": "invalid"})
    observe_bulk_rows("invalid", 2)
    assert _sample("ledger_bulk_rows_total", {"outcome": "invalid"}) == before_rows + 2


def _health_client() -> TestClient:
    app = FastAPI()
    app.include_router(create_health_router("db"))
    return TestClient(app)


def test_readiness_reports_database_ok():
    with patch("ledger_common.health.check_db_health", AsyncMock(return_value=True)):
        client = _health_client()
        response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "dependencies": {"database": "ok"}}


def test_readiness_fails_when_database_unavailable():
    with patch("ledger_common.health.check_db_health", AsyncMock(return_value=False)):
        client = _health_client()
        response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json()["detail"]["dependencies"] == {"database": "unavailable"}


def test_liveness():
    assert _health_client().get("/health/live").json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_async_timed_records_success_outcome():
    labels = {"repository": "TestRepository", "method": "answer", "outcome": "success"}
    before = _sample("db_operation_latency_seconds_count", labels)

    @async_timed(repository="TestRepository", method="answer")
    async def answer():
        return 42

    assert await answer() == 42
    assert _sample("db_operation_latency_seconds_count", labels) == before + 1
    assert _sample(
        "db_operation_latency_seconds_count",
        {"repository": "TestRepository", "method": "answer", "outcome": "error"},
    ) == 0.0
