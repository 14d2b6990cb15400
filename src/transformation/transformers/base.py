"""
Base transformer class and common utilities.

Provides the abstract base class for value transformers, the closed
classification of row values, and shared metrics for transformations.
"""

import datetime
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from typing import Any

from prometheus_client import Counter

logger = logging.getLogger(__name__)


# Metrics
TRANSFORMATIONS_APPLIED = Counter(
    "transformations_applied_total",
    "Total values rewritten by an anonymization rule",
    ["rule"],
)

TRANSFORMATIONS_SKIPPED = Counter(
    "transformations_skipped_total",
    "Values passed through because they were not text",
    ["value_kind"],
)


class ValueKind(Enum):
    """Runtime kind of a value read from a source row."""

    NULL = "null"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    BYTES = "bytes"
    OTHER = "other"


def value_kind(value: Any) -> ValueKind:
    """
    Classify a value as returned by the database driver.

    Only ``ValueKind.TEXT`` is ever eligible for anonymization; an SSN
    stored as an integer column stays an integer.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, str):
        return ValueKind.TEXT
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float, Decimal)):
        return ValueKind.NUMBER
    if isinstance(value, (datetime.date, datetime.time, datetime.timedelta)):
        return ValueKind.TIMESTAMP
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BYTES
    return ValueKind.OTHER


class Transformer(ABC):
    """Base class for data transformers."""

    @abstractmethod
    def transform(self, value: Any, context: dict[str, Any]) -> Any:
        """
        Transform a single value.

        Args:
            value: Value to transform
            context: Transformation context (field_name, table, ...)

        Returns:
            Transformed value
        """

    def get_type(self) -> str:
        """Get transformer type for metrics."""
        return self.__class__.__name__
