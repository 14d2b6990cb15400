"""
Unit tests for catalog queries, table discovery and column introspection

Tests verify:
- Query results are mapped to table/column lists and counts
- Driver errors are classified into the replication error taxonomy
- Transient errors are retried and every query ends its transaction
- Allow-list and exclude-list handling
"""

from unittest.mock import Mock

import psycopg2
import psycopg2.errors
import pytest
from psycopg2 import sql

from replication.catalog import Catalog
from replication.discovery import ColumnIntrospector, TableDiscovery, resolve_tables
from replication.errors import CatalogQueryError, DatabaseConnectionError, TableNotFoundError


class ScriptedCursor:
    def __init__(self, connection):
        self.connection = connection
        self.result = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, query, params=None):
        self.connection.executed.append((query, params))
        response = self.connection.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        self.result = response

    def fetchall(self):
        return self.result


class ScriptedConnection:
    """Connection whose queries return (or raise) scripted responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.executed = []
        self.rollbacks = 0
        self.closed = False

    def cursor(self):
        return ScriptedCursor(self)

    def rollback(self):
        self.rollbacks += 1


def make_catalog(connection, **kwargs):
    return Catalog(connection, retry_sleep=lambda _delay: None, **kwargs)


class TestCatalog:
    """Test Catalog queries"""

    def test_list_tables(self):
        """Test table names are returned in query order"""
        conn = ScriptedConnection([("orders",), ("users",)])
        catalog = make_catalog(conn)

        assert catalog.list_tables() == ["orders", "users"]
        query, params = conn.executed[0]
        assert "pg_tables" in query
        assert "ORDER BY tablename" in query
        assert params == ("public",)

    def test_list_tables_other_schema(self):
        """Test the configured schema is queried"""
        conn = ScriptedConnection([])
        make_catalog(conn, schema="sales").list_tables()
        assert conn.executed[0][1] == ("sales",)

    def test_list_columns_by_ordinal(self):
        """Test columns are read from information_schema by ordinal position"""
        conn = ScriptedConnection([("id",), ("email",), ("created_at",)])
        catalog = make_catalog(conn)

        assert catalog.list_columns("users") == ["id", "email", "created_at"]
        query, params = conn.executed[0]
        assert "information_schema.columns" in query
        assert "ORDER BY ordinal_position" in query
        assert params == ("public", "users")

    def test_list_columns_qualified_table(self):
        """Test a schema-qualified name overrides the default schema"""
        conn = ScriptedConnection([("id",)])
        make_catalog(conn).list_columns("audit.events")
        assert conn.executed[0][1] == ("audit", "events")

    def test_count_rows(self):
        """Test COUNT(*) is composed with a quoted identifier"""
        conn = ScriptedConnection([(1234,)])
        catalog = make_catalog(conn)

        assert catalog.count_rows("users") == 1234
        query, _ = conn.executed[0]
        assert query == sql.SQL("SELECT COUNT(*) FROM {table}").format(
            table=sql.Identifier("public", "users")
        )

    def test_every_query_ends_its_transaction(self):
        """Test a successful query is followed by a rollback"""
        conn = ScriptedConnection([("users",)])
        make_catalog(conn).list_tables()
        assert conn.rollbacks == 1

    def test_missing_table_count(self):
        """Test UndefinedTable becomes TableNotFoundError"""
        conn = ScriptedConnection(psycopg2.errors.UndefinedTable('relation "ghost" does not exist'))
        catalog = make_catalog(conn)

        with pytest.raises(TableNotFoundError) as exc_info:
            catalog.count_rows("ghost")

        assert exc_info.value.table == "ghost"
        assert isinstance(exc_info.value, CatalogQueryError)
        assert isinstance(exc_info.value.__cause__, psycopg2.errors.UndefinedTable)
        assert conn.rollbacks == 1

    def test_query_error(self):
        """Test other statement errors become CatalogQueryError"""
        conn = ScriptedConnection(psycopg2.ProgrammingError("permission denied"))

        with pytest.raises(CatalogQueryError, match="list_tables failed"):
            make_catalog(conn).list_tables()

    def test_transient_error_is_retried(self):
        """Test connection errors are retried and the transaction reset"""
        conn = ScriptedConnection(
            psycopg2.OperationalError("server closed the connection unexpectedly"),
            [("users",)],
        )

        assert make_catalog(conn).list_tables() == ["users"]
        assert len(conn.executed) == 2
        assert conn.rollbacks == 2

    def test_connection_error_after_retries(self):
        """Test persistent connection loss becomes DatabaseConnectionError"""
        error = psycopg2.OperationalError("could not connect to server")
        conn = ScriptedConnection(error, error, error)

        with pytest.raises(DatabaseConnectionError):
            make_catalog(conn, max_retries=2).list_tables()

        assert len(conn.executed) == 3

    def test_invalid_table_name(self):
        """Test names that are not identifiers never reach SQL"""
        conn = ScriptedConnection()

        with pytest.raises(CatalogQueryError, match="Invalid table name"):
            make_catalog(conn).count_rows("users; DROP TABLE users")

        assert conn.executed == []

    def test_invalid_schema(self):
        """Test the schema name is validated up front"""
        with pytest.raises(ValueError):
            Catalog(ScriptedConnection(), schema="public; --")


class TestTableDiscovery:
    """Test discovery and table set resolution"""

    def setup_method(self):
        self.catalog = Mock(spec=Catalog)
        self.catalog.list_tables.return_value = ["audit_log", "orders", "users"]
        self.discovery = TableDiscovery(self.catalog)

    def test_discover_all(self):
        """Test every table is returned without excludes"""
        assert self.discovery.discover() == ["audit_log", "orders", "users"]

    def test_discover_with_exclude(self):
        """Test excluded tables are removed, order is kept"""
        assert self.discovery.discover({"audit_log", "missing"}) == ["orders", "users"]

    def test_explicit_list_bypasses_discovery(self):
        """Test an allow-list is used verbatim"""
        tables = resolve_tables(self.discovery, explicit=["users", "orders"], exclude=["users"])

        assert tables == ["users", "orders"]
        self.catalog.list_tables.assert_not_called()

    def test_empty_explicit_list_discovers(self):
        """Test an empty allow-list falls back to discovery"""
        assert resolve_tables(self.discovery, explicit=[], exclude=["users"]) == [
            "audit_log", "orders",
        ]

    def test_catalog_failure_propagates(self):
        """Test discovery failure is raised to the caller"""
        self.catalog.list_tables.side_effect = CatalogQueryError("list_tables failed")

        with pytest.raises(CatalogQueryError):
            resolve_tables(self.discovery)


class TestColumnIntrospector:
    """Test column introspection"""

    def test_columns_in_catalog_order(self):
        """Test columns are returned as an ordered tuple"""
        catalog = Mock(spec=Catalog)
        catalog.list_columns.return_value = ["id", "email", "name"]

        assert ColumnIntrospector(catalog).columns_of("users") == ("id", "email", "name")

    def test_unknown_table(self):
        """Test no columns means the table does not exist"""
        catalog = Mock(spec=Catalog)
        catalog.role = "source"
        catalog.list_columns.return_value = []

        with pytest.raises(TableNotFoundError, match="ghost not found in source"):
            ColumnIntrospector(catalog).columns_of("ghost")
