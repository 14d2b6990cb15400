"""
Field anonymizer: the per-value transform used by the streaming copier.
"""

import logging
from collections.abc import Sequence
from typing import Any

from .base import (
    TRANSFORMATIONS_APPLIED,
    TRANSFORMATIONS_SKIPPED,
    Transformer,
    ValueKind,
    value_kind,
)
from .rules import AnonymizationRule, create_default_rules, find_rule

logger = logging.getLogger(__name__)


class FieldAnonymizer(Transformer):
    """
    Apply the first matching anonymization rule to text values.

    Rule selection depends only on the field name; the produced value may be
    randomized. Values that are not text, and fields that match no rule,
    are returned unchanged.
    """

    def __init__(self, rules: Sequence[AnonymizationRule] | None = None):
        """
        Initialize the anonymizer.

        Args:
            rules: Ordered rules, highest priority first (default rule set if None)
        """
        self.rules = list(rules) if rules is not None else create_default_rules()
        self._rule_cache: dict[str, AnonymizationRule | None] = {}

    def select_rule(self, field_name: str) -> AnonymizationRule | None:
        """Rule that would handle ``field_name``, or None."""
        try:
            return self._rule_cache[field_name]
        except KeyError:
            rule = find_rule(self.rules, field_name)
            self._rule_cache[field_name] = rule
            return rule

    def transform_field(self, field_name: str, value: Any) -> Any:
        """
        Anonymize one value.

        Args:
            field_name: Column name the value was read from
            value: Value as returned by the database driver

        Returns:
            Anonymized string, or the value itself when it is not text or the
            field matches no rule
        """
        kind = value_kind(value)
        if kind is not ValueKind.TEXT:
            if kind is not ValueKind.NULL:
                TRANSFORMATIONS_SKIPPED.labels(value_kind=kind.value).inc()
            return value

        rule = self.select_rule(field_name)
        if rule is None:
            return value

        TRANSFORMATIONS_APPLIED.labels(rule=rule.name).inc()
        return rule.transform(value)

    def transform(self, value: Any, context: dict[str, Any]) -> Any:
        """Transformer interface: the field name comes from ``context``."""
        return self.transform_field(context.get("field_name", ""), value)

    def transform_row(self, columns: Sequence[str], row: Sequence[Any]) -> tuple:
        """
        Anonymize a row positionally.

        Raises:
            ValueError: If the row width differs from the column list
        """
        if len(columns) != len(row):
            raise ValueError(
                f"Row has {len(row)} values but {len(columns)} columns were introspected"
            )
        return tuple(
            self.transform_field(column, value) for column, value in zip(columns, row)
        )

    def describe(self, columns: Sequence[str]) -> dict[str, str]:
        """Map each column that will be anonymized to its rule name."""
        described = {}
        for column in columns:
            rule = self.select_rule(column)
            if rule is not None:
                described[column] = rule.name
        return described
