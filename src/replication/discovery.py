"""Table discovery and column introspection."""

import logging
from collections.abc import Iterable

from utils.logging import ContextLogger, as_context_logger

from .catalog import Catalog
from .errors import TableNotFoundError


class TableDiscovery:
    """Lists the tables to replicate when no explicit list is configured."""

    def __init__(self, catalog: Catalog, logger: ContextLogger | logging.Logger | None = None):
        self.catalog = catalog
        self.logger = as_context_logger(logger, __name__)

    def discover(self, exclude: Iterable[str] = ()) -> list[str]:
        """
        Every table of the catalog schema not named in ``exclude``.

        Raises:
            CatalogQueryError: If the catalog cannot be queried
        """
        excluded = set(exclude)
        available = self.catalog.list_tables()
        tables = [table for table in available if table not in excluded]

        self.logger.info(
            f"Discovered {len(tables)} tables to replicate",
            excluded=len(available) - len(tables),
        )
        return tables


def resolve_tables(
    discovery: TableDiscovery,
    explicit: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> list[str]:
    """
    Table set of a run.

    A non-empty explicit list is used verbatim, in its given order, and
    discovery is not consulted. Otherwise every discovered table minus
    ``exclude`` is returned.
    """
    explicit = list(explicit)
    if explicit:
        discovery.logger.info(f"Using {len(explicit)} explicitly configured tables")
        return explicit
    return discovery.discover(exclude)


class ColumnIntrospector:
    """Ordered column lists, as the copier needs them."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def columns_of(self, table: str) -> tuple[str, ...]:
        """
        Columns of ``table`` in catalog ordinal order.

        Raises:
            TableNotFoundError: If the catalog knows no columns for the table
            CatalogQueryError: If the catalog query fails
        """
        columns = tuple(self.catalog.list_columns(table))
        if not columns:
            raise TableNotFoundError(
                f"Table {table} not found in {self.catalog.role} database", table=table
            )
        return columns
