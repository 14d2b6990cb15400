"""
Anonymization rules and the default rule set.

A rule pairs a set of field-name substrings with a transform. Rules are
evaluated in list order and the first match wins, so a column named
``email_address`` is handled by the email rule and never reaches the
address rule.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .pii import PIIAnonymizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnonymizationRule:
    """
    Field-name predicate plus the transform applied to matching text values.

    Attributes:
        name: Rule name, used in logs and metrics
        patterns: Lowercase substrings; the rule matches a field whose
            lowercased name contains any of them
        transform: Function from the original string to its replacement
    """

    name: str
    patterns: tuple[str, ...]
    transform: Callable[[str], str]

    def __post_init__(self):
        if not self.patterns:
            raise ValueError(f"Rule {self.name!r} needs at least one pattern")
        object.__setattr__(
            self, "patterns", tuple(pattern.lower() for pattern in self.patterns)
        )

    def matches(self, field_name: str) -> bool:
        """Case-insensitive substring match against the field name."""
        lowered = field_name.lower()
        return any(pattern in lowered for pattern in self.patterns)


def create_default_rules(anonymizer: PIIAnonymizer | None = None) -> list[AnonymizationRule]:
    """
    Build the standard PII rule list, highest priority first.

    Args:
        anonymizer: PIIAnonymizer supplying the transforms (a new one by default)

    Returns:
        Ordered list of AnonymizationRule
    """
    pii = anonymizer or PIIAnonymizer()

    rules = [
        AnonymizationRule("email", ("email", "mail"), pii.anonymize_email),
        AnonymizationRule("phone", ("phone", "mobile", "tel"), pii.anonymize_phone),
        AnonymizationRule(
            "password",
            ("password", "passwd", "pwd"),
            lambda _value: pii.anonymize_password(),
        ),
        AnonymizationRule(
            "name",
            ("name", "firstname", "lastname", "fullname"),
            pii.anonymize_name,
        ),
        AnonymizationRule("ssn", ("ssn", "social"), pii.anonymize_ssn),
        AnonymizationRule("credit_card", ("credit", "card", "cc"), pii.anonymize_credit_card),
        AnonymizationRule("address", ("address", "street", "addr"), pii.anonymize_address),
    ]

    logger.debug(f"Created default anonymization rules: {[rule.name for rule in rules]}")
    return rules


def find_rule(rules: Sequence[AnonymizationRule], field_name: str) -> AnonymizationRule | None:
    """Return the first rule matching ``field_name``, or None."""
    for rule in rules:
        if rule.matches(field_name):
            return rule
    return None
