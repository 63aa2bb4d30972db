"""Test best-effort table extraction for audit entries."""

from sqlwarden.policy.tables import extract_tables, tables_in_statement


def test_simple_select():
    assert tables_in_statement("SELECT * FROM users") == {"users"}


def test_schema_qualified():
    assert tables_in_statement("SELECT * FROM shop.users") == {"shop.users"}


def test_cte_names_are_not_tables():
    sql = "WITH cte AS (SELECT * FROM customers) SELECT * FROM cte"
    assert tables_in_statement(sql) == {"customers"}


def test_write_targets_are_included():
    assert tables_in_statement("DELETE FROM shop.orders WHERE id = 1") == {"shop.orders"}


def test_unparseable_statement_contributes_nothing():
    assert tables_in_statement("SELECT * FROM t WHERE name = 'abc") == set()


def test_statement_without_tables():
    assert tables_in_statement("SELECT 1") == set()


def test_batch_is_sorted_and_deduplicated():
    statements = ["SELECT * FROM b", "SELECT * FROM a JOIN b ON 1=1"]
    assert extract_tables(statements) == ["a", "b"]


def test_dialect_is_passed_through():
    sql = "SELECT * FROM `shop`.`orders`"
    assert extract_tables([sql], dialect="mysql") == ["shop.orders"]
