"""
PII anonymization primitives.

Each method takes the original string and returns a synthetic replacement
that keeps just enough shape (first letters, last card digits, country
code) for the data to stay recognisable in a development database.
"""

import logging
import random
import re
import secrets

import bcrypt

logger = logging.getLogger(__name__)

PLACEHOLDER_DOMAINS = ("example.com", "test.com", "sample.org")
PLACEHOLDER_EMAIL = "anonymous@example.com"
PLACEHOLDER_PHONE = "+1-555-0100"
PLACEHOLDER_NAME = "Anonymous User"
PLACEHOLDER_CARD = "****-****-****-0000"
PLACEHOLDER_PASSWORD = "changeme123"

MASK_CHAR = "*"
MAX_EMAIL_MASK = 5
NAME_MASK_SUFFIX = "***"
MIN_PHONE_DIGITS = 10
BCRYPT_ROUNDS = 10

NON_DIGITS = re.compile(r"\D", re.ASCII)


class PIIAnonymizer:
    """
    Replace personal data with synthetic values.

    Randomized parts (email domain, phone suffix, SSN suffix, house number)
    come from ``rng``, which defaults to the operating system CSPRNG.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        domains: tuple[str, ...] = PLACEHOLDER_DOMAINS,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ):
        """
        Initialize the anonymizer.

        Args:
            rng: Random source; pass a seeded ``random.Random`` for reproducible output
            domains: Placeholder domains for anonymized emails
            bcrypt_rounds: bcrypt cost factor for the placeholder password hash
        """
        if not domains:
            raise ValueError("At least one placeholder domain is required")

        self.rng = rng or secrets.SystemRandom()
        self.domains = tuple(domains)
        self.bcrypt_rounds = bcrypt_rounds
        self._password_hash: str | None = None

    def _random_suffix(self) -> str:
        return f"{self.rng.randrange(10000):04d}"

    def anonymize_email(self, email: str) -> str:
        """
        Keep the first character of the local part, mask up to five more.

        Examples:
            john.doe@company.com -> j*****@test.com
            ab@company.com -> a*@example.com
        """
        if email == "":
            return ""

        parts = email.split("@")
        if len(parts) != 2 or not parts[0]:
            return PLACEHOLDER_EMAIL

        local = parts[0]
        masked = local[0] + MASK_CHAR * min(len(local) - 1, MAX_EMAIL_MASK)
        return f"{masked}@{self.rng.choice(self.domains)}"

    def anonymize_phone(self, phone: str) -> str:
        """
        Keep the first two digits as a fake country code.

        Examples:
            +44 20 7946 0958 -> +44-555-1234
            555-0199 -> +1-555-0100
        """
        if phone == "":
            return ""

        digits = NON_DIGITS.sub("", phone)
        if len(digits) < MIN_PHONE_DIGITS:
            return PLACEHOLDER_PHONE

        return f"+{digits[:2]}-555-{self._random_suffix()}"

    def anonymize_password(self) -> str:
        """
        bcrypt hash of a well-known placeholder password.

        The hash is computed once per anonymizer: the cost factor makes each
        computation deliberately slow, and every row receives the same secret.
        """
        if self._password_hash is None:
            self._password_hash = bcrypt.hashpw(
                PLACEHOLDER_PASSWORD.encode("utf-8"),
                bcrypt.gensalt(rounds=self.bcrypt_rounds),
            ).decode("ascii")
        return self._password_hash

    def anonymize_name(self, name: str) -> str:
        """
        Keep the first character of every word.

        Examples:
            John Ronald Tolkien -> J*** R*** T***
        """
        if name == "":
            return ""

        parts = name.split()
        if not parts:
            return PLACEHOLDER_NAME

        return " ".join(part[0] + NAME_MASK_SUFFIX for part in parts)

    def anonymize_ssn(self, ssn: str) -> str:
        """Fixed ***-**-NNNN shape with a random suffix."""
        if ssn == "":
            return ""

        return f"{MASK_CHAR * 3}-{MASK_CHAR * 2}-{self._random_suffix()}"

    def anonymize_credit_card(self, card: str) -> str:
        """
        Keep the last four digits.

        Examples:
            4532-1234-5678-9010 -> ****-****-****-9010
            123 -> ****-****-****-0000
        """
        if card == "":
            return ""

        digits = NON_DIGITS.sub("", card)
        if len(digits) < 4:
            return PLACEHOLDER_CARD

        return f"****-****-****-{digits[-4:]}"

    def anonymize_address(self, address: str) -> str:
        """Synthetic street address with a random house number."""
        if address == "":
            return ""

        house_number = self.rng.randrange(9999) + 1
        return f"{house_number} Anonymous Street, Privacy City, XX 00000"
