"""
Data transformation applied to rows in flight.

Provides field-name driven PII anonymization for the streaming copier.
"""

from transformation.transformers import (
    AnonymizationRule,
    FieldAnonymizer,
    PIIAnonymizer,
    Transformer,
    ValueKind,
    create_default_rules,
    value_kind,
)

__all__ = [
    "Transformer",
    "ValueKind",
    "value_kind",
    "PIIAnonymizer",
    "AnonymizationRule",
    "FieldAnonymizer",
    "create_default_rules",
]
