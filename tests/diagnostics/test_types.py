"""Tests for the diagnostic types and code registry."""

from sqlwarden.diagnostics import Diagnostic, ErrorCategory, Level, codes
from sqlwarden.diagnostics.codes import DiagnosticCode


def test_code_format():
    assert str(codes.EMPTY_QUERY) == "Q0003"
    assert str(codes.WRITE_BLOCKED) == "Q0301"
    assert str(DiagnosticCode(42)) == "Q0042"


def test_codes_are_unique():
    registered = [v for v in vars(codes).values() if isinstance(v, DiagnosticCode)]
    assert len({c.value for c in registered}) == len(registered)


def test_builder_chain():
    diag = (
        Diagnostic.error(codes.ACCESS_DENIED, "Access denied", ErrorCategory.ACCESS_DENIED)
        .note("user lacks SELECT on shop.orders")
        .suggest("ask for a grant", "", "use another account")
    )
    assert diag.level == Level.ERROR
    assert diag.notes == ["user lacks SELECT on shop.orders"]
    # Empty suggestions are dropped.
    assert diag.suggestions == ["ask for a grant", "use another account"]


def test_database_categories():
    assert ErrorCategory.DEADLOCK.is_database_error
    assert ErrorCategory.DATABASE_OTHER.is_database_error
    assert not ErrorCategory.TIMEOUT.is_database_error
    assert not ErrorCategory.REJECTED_BY_POLICY.is_database_error
    assert not ErrorCategory.UNKNOWN.is_database_error
