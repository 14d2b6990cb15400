"""
Value anonymization for replicated rows.

Supports:
- Ordered, first-match-wins field-name rules
- Email, phone, password, name, SSN, credit card and address replacement
- Text-only rewriting: numbers, timestamps, binaries and NULLs pass through
"""

from .anonymizer import FieldAnonymizer
from .base import Transformer, ValueKind, value_kind
from .pii import PIIAnonymizer
from .rules import AnonymizationRule, create_default_rules, find_rule

__all__ = [
    "Transformer",
    "ValueKind",
    "value_kind",
    "PIIAnonymizer",
    "AnonymizationRule",
    "create_default_rules",
    "find_rule",
    "FieldAnonymizer",
]
