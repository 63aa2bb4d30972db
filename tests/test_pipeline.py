"""End-to-end pipeline tests against scripted adapters."""

import asyncio
import json
import logging

import pytest

from fakes import FakeAdapter
from sqlwarden import querylog
from sqlwarden.adapters._base import AdapterError, NativeResult
from sqlwarden.config import WardenConfig
from sqlwarden.diagnostics import ErrorCategory
from sqlwarden.pipeline import Outcome, QueryPipeline
from sqlwarden.policy import ModePolicy


def _run(pipeline, query, response_format="markdown"):
    return asyncio.run(pipeline.run(query, response_format))


def _wide_rows(n_rows=400, width=100):
    return NativeResult(
        description=[("payload", "VAR_STRING")],
        rows=[("z" * width,) for _ in range(n_rows)],
    )


def test_select_runs_in_read_only():
    adapter = FakeAdapter()
    response = _run(QueryPipeline(adapter), "SELECT 1")
    assert response.outcome is Outcome.SUCCEEDED
    assert response.ok
    assert "| x |" in response.text
    assert adapter.calls == [["SELECT 1"]]


def test_commented_delete_is_rejected_in_read_only():
    adapter = FakeAdapter()
    response = _run(QueryPipeline(adapter), "/* c */ DELETE FROM a.b")
    assert response.outcome is Outcome.REJECTED
    assert "READ-ONLY" in response.text
    assert "--allow-write" in response.text
    assert adapter.calls == []


def test_drop_is_rejected_even_in_write_mode():
    adapter = FakeAdapter()
    config = WardenConfig(mode=ModePolicy.WRITE_ENABLED)
    response = _run(QueryPipeline(adapter, config), "DROP TABLE a.b")
    assert response.outcome is Outcome.REJECTED
    assert "Operation: DROP" in response.text
    assert adapter.calls == []


@pytest.mark.parametrize("mode", [ModePolicy.READ_ONLY, ModePolicy.WRITE_ENABLED])
def test_batch_with_drop_is_rejected(mode):
    adapter = FakeAdapter()
    response = _run(
        QueryPipeline(adapter, WardenConfig(mode=mode)),
        "SELECT * FROM a.b; DROP TABLE a.b;",
    )
    assert response.outcome is Outcome.REJECTED
    assert "Operation: DROP" in response.text
    assert adapter.calls == []


def test_large_result_is_truncated_to_budget():
    # 400 rows of ~104 characters render to well over 40,000 characters.
    adapter = FakeAdapter(_wide_rows())
    config = WardenConfig(character_budget=25_000)
    response = _run(QueryPipeline(adapter, config), "SELECT payload FROM t")
    assert response.outcome is Outcome.SUCCEEDED
    assert response.truncated is True
    assert len(response.text) == 25_000
    assert "**Response Truncated**" in response.text


def test_json_truncation_marks_metadata():
    adapter = FakeAdapter(_wide_rows())
    config = WardenConfig(character_budget=100_000)
    response = _run(QueryPipeline(adapter, config), "SELECT payload FROM t", "json")
    assert response.truncated is False
    assert json.loads(response.text)["metadata"]["truncated"] is False

    small = WardenConfig(character_budget=1_000)
    response = _run(QueryPipeline(FakeAdapter(_wide_rows()), small), "SELECT payload FROM t", "json")
    assert response.truncated is True
    assert len(response.text) <= 1_000
    assert '"truncated": true' in response.text


def test_access_denied_gives_permissions_hint_without_secrets():
    adapter = FakeAdapter(
        error=AdapterError(
            "Access denied for user 'app'@'%' to database 'shop' (password=hunter2)",
            category=ErrorCategory.ACCESS_DENIED,
        )
    )
    pipeline = QueryPipeline(adapter, secrets=["hunter2"])
    response = _run(pipeline, "SELECT * FROM shop.orders")
    assert response.outcome is Outcome.FAILED
    assert "permissions" in response.text
    assert "hunter2" not in response.text


def test_timeout_is_reported():
    adapter = FakeAdapter(delay=5)
    config = WardenConfig(query_timeout_ms=1_000)
    pipeline = QueryPipeline(adapter, config)
    # Shrink the executor deadline so the test stays fast.
    pipeline._executor._timeout_ms = 20
    response = _run(pipeline, "SELECT SLEEP(5)")
    assert response.outcome is Outcome.FAILED
    assert "Query execution timeout" in response.text
    assert "1000ms" in response.text


def test_write_allowed_in_write_mode():
    adapter = FakeAdapter(NativeResult(description=None, rowcount=2, lastrowid=9))
    config = WardenConfig(mode=ModePolicy.WRITE_ENABLED)
    response = _run(QueryPipeline(adapter, config), "INSERT INTO t VALUES (1), (2)")
    assert response.ok
    assert "- Rows affected: 2" in response.text
    assert "- Insert ID: 9" in response.text


def test_normalized_units_are_executed():
    adapter = FakeAdapter()
    _run(QueryPipeline(adapter), "-- fetch\nSELECT  1 ;\n SELECT 'a -- b';")
    assert adapter.calls == [["SELECT 1", "SELECT 'a -- b'"]]


@pytest.mark.parametrize(
    "query,code",
    [
        ("", "Q0003"),
        ("-- nothing", "Q0003"),
        ("x" * 10_001, "Q0002"),
        (None, "Q0001"),
    ],
)
def test_invalid_input_fails_with_validation_error(query, code):
    adapter = FakeAdapter()
    response = _run(QueryPipeline(adapter), query)
    assert response.outcome is Outcome.FAILED
    assert code in response.text
    assert adapter.calls == []


def test_unknown_response_format():
    response = _run(QueryPipeline(FakeAdapter()), "SELECT 1", "xml")
    assert response.outcome is Outcome.FAILED
    assert "response_format" in response.text


def test_unexpected_error_is_caught_and_logged(caplog):
    adapter = FakeAdapter(error=RuntimeError("driver bug"))
    with caplog.at_level(logging.ERROR, logger="sqlwarden"):
        response = _run(QueryPipeline(adapter), "SELECT 1")
    assert response.outcome is Outcome.FAILED
    assert "Q0901" in response.text
    assert "Unexpected error while running query" in caplog.text


def test_json_error_output():
    response = _run(QueryPipeline(FakeAdapter()), "DELETE FROM t", "json")
    data = json.loads(response.text)
    assert data["error"]["category"] == "rejected_by_policy"
    assert data["error"]["code"] == "Q0301"


def test_every_request_is_audited():
    pipeline = QueryPipeline(FakeAdapter(), db_name="shop")
    _run(pipeline, "SELECT * FROM shop.orders")
    _run(pipeline, "DELETE FROM shop.orders")
    entries = querylog.read_entries()
    assert [e["outcome"] for e in entries] == ["succeeded", "rejected"]
    assert entries[0]["tables"] == ["shop.orders"]
    assert entries[0]["row_count"] == 1
    assert entries[1]["blocked"] is True
    assert entries[1]["code"] == "Q0301"
    assert entries[1]["db"] == "shop"


def test_audit_can_be_disabled():
    pipeline = QueryPipeline(FakeAdapter(), WardenConfig(audit_log=False))
    _run(pipeline, "SELECT 1")
    assert querylog.read_entries() == []


def test_write_mode_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="sqlwarden"):
        QueryPipeline(FakeAdapter(), WardenConfig(mode=ModePolicy.WRITE_ENABLED))
    assert "Write mode enabled" in caplog.text
