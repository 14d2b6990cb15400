"""
SQL safety utilities for preventing SQL injection.

Table and column names reach SQL from configuration files, the command line
and the source catalog. They are validated here and composed with
``psycopg2.sql.Identifier``; values always travel as bound parameters.
"""

import re
from collections.abc import Sequence

from psycopg2 import sql

# Strict ASCII-only patterns for SQL identifiers (PostgreSQL also allows $)
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_$]*$")
VALID_SCHEMA_TABLE = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_$]*(\.[a-zA-Z_][a-zA-Z0-9_$]*)?$"
)
MAX_IDENTIFIER_LENGTH = 63  # NAMEDATALEN - 1


def validate_identifier(identifier: str) -> None:
    """
    Validate a SQL identifier (column name, schema name).

    Raises:
        ValueError: If the identifier is empty, too long or contains
            characters outside [A-Za-z0-9_$]
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        raise ValueError(
            f"SQL identifier too long ({len(identifier)} > {MAX_IDENTIFIER_LENGTH}): "
            f"{identifier!r}"
        )

    if not VALID_IDENTIFIER.match(identifier):
        raise ValueError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, underscores and dollar signs are allowed, "
            "and it must start with a letter or underscore."
        )


def validate_table_name(table_name: str) -> None:
    """
    Validate a table name, optionally schema-qualified ("public.users").

    Raises:
        ValueError: If the identifier format is invalid
    """
    if not table_name:
        raise ValueError("Table name cannot be empty")

    if not VALID_SCHEMA_TABLE.match(table_name):
        raise ValueError(
            f"Invalid table name: {table_name!r}. "
            "Expected 'table' or 'schema.table' made of ASCII letters, digits and underscores."
        )

    for part in table_name.split("."):
        validate_identifier(part)


def table_identifier(table_name: str, default_schema: str | None = None) -> sql.Identifier:
    """
    Build a quoted identifier for a table.

    A bare name is qualified with ``default_schema`` when one is given.
    """
    validate_table_name(table_name)

    if "." in table_name:
        schema, table = table_name.split(".", 1)
        return sql.Identifier(schema, table)

    if default_schema:
        validate_identifier(default_schema)
        return sql.Identifier(default_schema, table_name)

    return sql.Identifier(table_name)


def column_list(columns: Sequence[str]) -> sql.Composed:
    """Comma-separated quoted column list, in the given order."""
    if not columns:
        raise ValueError("Column list cannot be empty")

    for column in columns:
        validate_identifier(column)

    return sql.SQL(", ").join(sql.Identifier(column) for column in columns)


def build_select_all(
    table_name: str,
    columns: Sequence[str],
    schema: str | None = None,
) -> sql.Composed:
    """``SELECT <columns> FROM <table>`` with the columns in the given order."""
    return sql.SQL("SELECT {columns} FROM {table}").format(
        columns=column_list(columns),
        table=table_identifier(table_name, schema),
    )


def build_insert(
    table_name: str,
    columns: Sequence[str],
    schema: str | None = None,
) -> sql.Composed:
    """Parameterized ``INSERT`` with one ``%s`` placeholder per column."""
    return sql.SQL("INSERT INTO {table} ({columns}) VALUES ({placeholders})").format(
        table=table_identifier(table_name, schema),
        columns=column_list(columns),
        placeholders=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
    )


def build_truncate(table_name: str, schema: str | None = None, cascade: bool = True) -> sql.Composed:
    """``TRUNCATE TABLE <table> [CASCADE]``."""
    statement = "TRUNCATE TABLE {table} CASCADE" if cascade else "TRUNCATE TABLE {table}"
    return sql.SQL(statement).format(table=table_identifier(table_name, schema))


def build_count(table_name: str, schema: str | None = None) -> sql.Composed:
    """``SELECT COUNT(*) FROM <table>``."""
    return sql.SQL("SELECT COUNT(*) FROM {table}").format(
        table=table_identifier(table_name, schema)
    )
