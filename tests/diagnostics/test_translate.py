"""Test failure translation and secret scrubbing."""

import pytest

from sqlwarden.adapters._base import AdapterError, QueryTimeout
from sqlwarden.diagnostics import ErrorCategory, codes
from sqlwarden.diagnostics.render import render_markdown
from sqlwarden.diagnostics.translate import rejection_diagnostic, scrub, translate_error
from sqlwarden.policy import ModePolicy, OperationKind, QueryValidationError
from sqlwarden.policy.rules import evaluate


class TestScrub:
    def test_url_credentials(self):
        text = "could not connect to postgresql://app:hunter2@db:5432/shop"
        assert scrub(text) == "could not connect to postgresql://app:****@db:5432/shop"

    def test_password_pairs(self):
        assert scrub("dsn host=db password=hunter2 user=app") == (
            "dsn host=db password=**** user=app"
        )
        assert "s3cret" not in scrub("PASSWORD: 's3cret'")

    def test_configured_secrets(self):
        assert scrub("login failed for token abc123xyz", ["abc123xyz"]) == (
            "login failed for token ****"
        )

    def test_empty_secrets_are_ignored(self):
        assert scrub("nothing to hide", ["", ""]) == "nothing to hide"


def test_rejection_diagnostic():
    diag = rejection_diagnostic(evaluate(OperationKind.DELETE, ModePolicy.READ_ONLY))
    assert diag.category is ErrorCategory.REJECTED_BY_POLICY
    assert diag.code == codes.WRITE_BLOCKED
    assert "READ-ONLY" in diag.message
    assert "Operation: DELETE" in diag.notes
    assert any("--allow-write" in s for s in diag.suggestions)


def test_rejection_requires_rejected_verdict():
    with pytest.raises(ValueError):
        rejection_diagnostic(evaluate(OperationKind.SELECT, ModePolicy.READ_ONLY))


def test_validation_error():
    diag = translate_error(
        QueryValidationError("query must not be empty", codes.EMPTY_QUERY),
        query_timeout_ms=30_000,
    )
    assert diag.category is ErrorCategory.VALIDATION
    assert diag.code == codes.EMPTY_QUERY


def test_timeout_mentions_limit():
    diag = translate_error(QueryTimeout(5000), query_timeout_ms=5000)
    assert diag.category is ErrorCategory.TIMEOUT
    assert diag.code == codes.QUERY_TIMEOUT
    assert "5000ms" in render_markdown(diag)
    assert any("LIMIT" in s for s in diag.suggestions)


@pytest.mark.parametrize(
    "category,code",
    [
        (ErrorCategory.NOT_FOUND, codes.OBJECT_NOT_FOUND),
        (ErrorCategory.ACCESS_DENIED, codes.ACCESS_DENIED),
        (ErrorCategory.SYNTAX, codes.SYNTAX_ERROR),
        (ErrorCategory.CONSTRAINT_VIOLATION, codes.CONSTRAINT_VIOLATION),
        (ErrorCategory.LOCK_TIMEOUT, codes.LOCK_TIMEOUT),
        (ErrorCategory.DEADLOCK, codes.DEADLOCK),
        (ErrorCategory.CONNECTION_LOST, codes.CONNECTION_LOST),
        (ErrorCategory.CONNECTION_REFUSED, codes.CONNECTION_REFUSED),
        (ErrorCategory.TOO_MANY_CONNECTIONS, codes.TOO_MANY_CONNECTIONS),
        (ErrorCategory.DATABASE_OTHER, codes.DATABASE_ERROR),
    ],
)
def test_database_categories_map_to_codes(category, code):
    diag = translate_error(AdapterError("boom", category=category), query_timeout_ms=1000)
    assert diag.category is category
    assert diag.code == code
    assert diag.suggestions


def test_non_database_category_on_adapter_error_falls_back():
    diag = translate_error(
        AdapterError("odd", category=ErrorCategory.VALIDATION), query_timeout_ms=1000
    )
    assert diag.category is ErrorCategory.DATABASE_OTHER
    assert diag.code == codes.DATABASE_ERROR


def test_access_denied_never_leaks_password():
    exc = AdapterError(
        "MySQL execution failed: Access denied for user 'app'@'10.0.0.1' "
        "(using password: YES) dsn=mysql://app:hunter2@db/shop",
        category=ErrorCategory.ACCESS_DENIED,
        driver_code="1045",
    )
    diag = translate_error(exc, query_timeout_ms=1000, secrets=["hunter2"])
    text = render_markdown(diag)
    assert "hunter2" not in text
    assert "permissions" in text
    assert "Driver code: 1045" in text


def test_unexpected_exception_is_unknown():
    diag = translate_error(RuntimeError("kaboom"), query_timeout_ms=1000)
    assert diag.category is ErrorCategory.UNKNOWN
    assert diag.code == codes.UNEXPECTED_ERROR
    assert "RuntimeError" in diag.message
    assert diag.notes == ["kaboom"]
