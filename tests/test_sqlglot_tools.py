from __future__ import annotations

import logging

import pytest

from askdb.database.connection import Dialect
from askdb.sqlglot_tools import (
    SqlglotService,
    SqlIdentifierRequest,
    SqlPolicyRequest,
    SqlValidationRequest,
    to_sqlglot_dialect,
)

SCHEMA_MAP = {
    "customers": ["id", "name", "country"],
    "orders": ["id", "customer_id", "amount"],
}


def test_to_sqlglot_dialect_known() -> None:
    assert to_sqlglot_dialect(Dialect.POSTGRESQL) == "postgres"
    assert to_sqlglot_dialect(Dialect.MYSQL) == "mysql"
    assert to_sqlglot_dialect(Dialect.MSSQL) == "tsql"


def test_validate_normalizes() -> None:
    svc = SqlglotService(logger=logging.getLogger(__name__))
    v = svc.validate(SqlValidationRequest(sql="select 1", dialect="postgres"))
    assert v.is_valid is True
    assert v.normalized_sql is not None
    assert v.target_dialect == "postgres"


def test_validate_reports_parse_error() -> None:
    v = SqlglotService().validate(SqlValidationRequest(sql="SELECT * FROM (", dialect="mysql"))
    assert v.is_valid is False
    assert v.error_message


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT id FROM customers",
        "WITH big AS (SELECT id FROM orders WHERE amount > 10) SELECT id FROM big",
        "SELECT id FROM customers UNION SELECT customer_id FROM orders",
        "SELECT 1;",
    ],
)
def test_policy_allows_single_read(sql: str) -> None:
    res = SqlglotService().check_policy(SqlPolicyRequest(sql=sql, dialect="postgres"))
    assert res.allowed, res.reason
    assert res.statement_count == 1


@pytest.mark.parametrize(
    "sql",
    [
        "DROP TABLE customers",
        "DELETE FROM orders",
        "UPDATE customers SET name = 'x'",
        "INSERT INTO orders (id) VALUES (1)",
        "CREATE TABLE t (id INT)",
    ],
)
def test_policy_rejects_writes_and_ddl(sql: str) -> None:
    res = SqlglotService().check_policy(SqlPolicyRequest(sql=sql, dialect="postgres"))
    assert not res.allowed
    assert res.reason is not None
    assert "read-only" in res.reason


def test_policy_rejects_select_into() -> None:
    res = SqlglotService().check_policy(
        SqlPolicyRequest(sql="SELECT * INTO archive FROM orders", dialect="tsql")
    )
    assert not res.allowed


def test_policy_rejects_multiple_statements() -> None:
    res = SqlglotService().check_policy(
        SqlPolicyRequest(sql="SELECT 1; DROP TABLE customers", dialect="mysql")
    )
    assert not res.allowed
    assert res.statement_count == 2
    assert res.reason == "Expected exactly one statement, found 2"


def test_policy_allow_writes_permits_dml_only() -> None:
    svc = SqlglotService()
    dml = svc.check_policy(
        SqlPolicyRequest(
            sql="DELETE FROM orders WHERE id = 1", dialect="postgres", allow_writes=True
        )
    )
    assert dml.allowed
    ddl = svc.check_policy(
        SqlPolicyRequest(sql="DROP TABLE orders", dialect="postgres", allow_writes=True)
    )
    assert not ddl.allowed


def test_policy_fails_closed_on_parse_error() -> None:
    res = SqlglotService().check_policy(SqlPolicyRequest(sql="SELECT * FROM (", dialect="postgres"))
    assert not res.allowed
    assert res.statement_count == 0
    assert res.reason is not None
    assert res.reason.startswith("SQL parsing error")


def test_unknown_identifiers_clean_join() -> None:
    res = SqlglotService().unknown_identifiers(
        SqlIdentifierRequest(
            sql=(
                "SELECT c.name, SUM(o.amount) AS total FROM customers c "
                "JOIN orders o ON o.customer_id = c.id GROUP BY c.name ORDER BY total DESC"
            ),
            dialect="postgres",
            schema_map=SCHEMA_MAP,
        )
    )
    assert res.is_clean
    assert res.unknown_tables == []
    assert res.unknown_columns == []


def test_unknown_identifiers_reports_missing_names() -> None:
    res = SqlglotService().unknown_identifiers(
        SqlIdentifierRequest(
            sql="SELECT email, email FROM customers JOIN invoices ON invoices.id = customers.id",
            dialect="postgres",
            schema_map=SCHEMA_MAP,
        )
    )
    assert res.unknown_tables == ["invoices"]
    assert res.unknown_columns == ["email"]
    assert not res.is_clean


def test_unknown_identifiers_case_insensitive_and_cte() -> None:
    res = SqlglotService().unknown_identifiers(
        SqlIdentifierRequest(
            sql="WITH recent AS (SELECT ID FROM ORDERS) SELECT COUNT(*) FROM recent",
            dialect="tsql",
            schema_map=SCHEMA_MAP,
        )
    )
    assert res.is_clean


def test_unknown_identifiers_parse_error() -> None:
    res = SqlglotService().unknown_identifiers(
        SqlIdentifierRequest(sql="SELECT * FROM (", dialect="mysql", schema_map=SCHEMA_MAP)
    )
    assert res.parse_error is not None
    assert not res.is_clean
