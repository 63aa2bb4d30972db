"""Test the full policy pipeline: validate → normalize → split → classify → authorize."""

import logging

import pytest

from sqlwarden.diagnostics import codes
from sqlwarden.policy import (
    MAX_QUERY_LENGTH,
    ModePolicy,
    OperationKind,
    QueryValidationError,
    run_policy,
    validate_query,
)


def test_select_allowed_in_read_only():
    result = run_policy("SELECT 1", mode=ModePolicy.READ_ONLY)
    assert not result.blocked
    assert result.operation_kind == OperationKind.SELECT
    assert result.statements == ["SELECT 1"]


def test_commented_delete_rejected_in_read_only():
    result = run_policy("/* c */ DELETE FROM a.b", mode=ModePolicy.READ_ONLY)
    assert result.blocked
    assert result.operation_kind == OperationKind.DELETE
    assert "READ-ONLY" in result.verdict.reason


def test_drop_rejected_in_write_mode():
    result = run_policy("DROP TABLE a.b", mode=ModePolicy.WRITE_ENABLED)
    assert result.blocked
    assert result.operation_kind == OperationKind.DROP


@pytest.mark.parametrize("mode", [ModePolicy.READ_ONLY, ModePolicy.WRITE_ENABLED])
def test_batch_reports_first_rejecting_unit(mode):
    result = run_policy("SELECT * FROM a.b; DROP TABLE a.b;", mode=mode)
    assert result.blocked
    assert result.operation_kind == OperationKind.DROP
    assert [v.allowed for v in result.verdicts] == [True, False]


def test_evaluation_stops_at_first_rejection():
    result = run_policy("DELETE FROM t; DROP TABLE t; SELECT 1")
    assert result.operation_kind == OperationKind.DELETE
    assert len(result.verdicts) == 1
    assert len(result.statements) == 3


def test_allowed_batch_carries_first_kind():
    result = run_policy(
        "INSERT INTO t VALUES (1); SELECT * FROM t", mode=ModePolicy.WRITE_ENABLED
    )
    assert not result.blocked
    assert result.operation_kind == OperationKind.INSERT
    assert len(result.verdicts) == 2


def test_terminator_in_literal_does_not_split():
    result = run_policy("SELECT 'a; DROP TABLE t'")
    assert not result.blocked
    assert result.statements == ["SELECT 'a; DROP TABLE t'"]


def test_comments_only_is_empty_query():
    with pytest.raises(QueryValidationError) as exc_info:
        run_policy("-- nothing here\n/* or here */ ;")
    assert exc_info.value.code == codes.EMPTY_QUERY


def test_tables_collected_for_audit():
    result = run_policy("SELECT * FROM shop.orders o JOIN shop.users u ON o.uid = u.id")
    assert result.tables == ["shop.orders", "shop.users"]


def test_decisions_are_logged(caplog):
    with caplog.at_level(logging.INFO, logger="sqlwarden"):
        run_policy("DELETE FROM t")
    assert "Query BLOCKED [READ_ONLY] (DELETE): DELETE FROM t" in caplog.text


class TestValidateQuery:
    def test_accepts_normal_query(self):
        assert validate_query("SELECT 1") == "SELECT 1"

    def test_rejects_non_string(self):
        with pytest.raises(QueryValidationError) as exc_info:
            validate_query(42)
        assert exc_info.value.code == codes.INVALID_REQUEST

    @pytest.mark.parametrize("sql", ["", "   ", "\n\t"])
    def test_rejects_blank(self, sql):
        with pytest.raises(QueryValidationError) as exc_info:
            validate_query(sql)
        assert exc_info.value.code == codes.EMPTY_QUERY

    def test_length_limit_is_inclusive(self):
        validate_query("x" * MAX_QUERY_LENGTH)
        with pytest.raises(QueryValidationError) as exc_info:
            validate_query("x" * (MAX_QUERY_LENGTH + 1))
        assert exc_info.value.code == codes.QUERY_TOO_LONG

    def test_custom_limit(self):
        with pytest.raises(QueryValidationError):
            validate_query("SELECT 1", max_length=5)


@pytest.mark.parametrize(
    "sql,dialect",
    [
        ("SELECT $$'$$; DROP TABLE victim; --'", "duckdb"),
        ("SELECT $q$'$q$; DROP TABLE victim; --'", "postgres"),
        ("SELECT E'\\''; DROP TABLE victim; --'", "postgres"),
        ("SELECT 1 # '\n; DROP TABLE victim; -- '", "mysql"),
        ("SELECT 1 # '\n; DROP TABLE victim; -- '", None),
    ],
)
def test_quoting_tricks_do_not_hide_a_second_statement(sql, dialect):
    result = run_policy(sql, dialect=dialect)
    assert result.blocked
    assert result.operation_kind == OperationKind.DROP
    assert len(result.statements) == 2


def test_dollar_quote_does_not_hide_a_writable_cte():
    result = run_policy("WITH x AS (SELECT $$'$$) DELETE FROM t --'", dialect="postgres")
    assert result.blocked
    assert result.operation_kind == OperationKind.DELETE


def test_cte_with_locking_read_is_rejected_in_read_only():
    # Any write keyword after WITH wins, so FOR UPDATE counts as UPDATE.
    result = run_policy("WITH c AS (SELECT 1) SELECT * FROM c FOR UPDATE")
    assert result.blocked
    assert result.operation_kind == OperationKind.UPDATE

    plain = run_policy("SELECT * FROM t FOR UPDATE")
    assert not plain.blocked
    assert plain.operation_kind == OperationKind.SELECT


def test_unknown_dialect_is_an_error():
    with pytest.raises(ValueError, match="Unknown dialect"):
        run_policy("SELECT 1", dialect="oracle")
