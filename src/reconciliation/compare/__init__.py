"""
Comparison logic for data reconciliation.

This submodule compares what was observed in the source and destination
databases:
- Row count comparison per table
- Table set comparison between the two catalogs
"""

from .counts import VerificationOutcome, compare_row_counts
from .tables import SchemaCheck, compare_table_sets

__all__ = [
    'VerificationOutcome',
    'compare_row_counts',
    'SchemaCheck',
    'compare_table_sets',
]
