# src/normalizers/phone_normalizer.py

"""WhatsApp number normalisation to a single dialable (E.164) format.

Sellers type their numbers in every conceivable local style
(``024 123 4567``, ``(0)24-123-4567``, ``233241234567``). Everything that
leaves this module is either ``None`` or a string of the form
``+<country code><national number>`` with no separators, which is the
only form ``wa.me`` links accept.
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger("shoplink.phone")

_E164_RE = re.compile(r"^\+[1-9]\d{1,3}\d{4,14}$")
_STRIP_RE = re.compile(r"[^\d+]")

_MIN_LENGTH = 8
_MAX_LENGTH = 18

ERROR_REQUIRED = "Phone number is required"
ERROR_UNRECOGNISED = "Please enter a valid phone number with country code"
ERROR_FORMAT = "Invalid phone number format"


@dataclass(frozen=True)
class CountryRule:
    """Calling-code prefix and accepted local lengths for one country."""

    prefix: str
    local_lengths: frozenset[int]
    strip_trunk_zero: bool = True

    def localise(self, digits: str) -> str:
        """Drop the domestic trunk ``0`` where the country uses one."""
        if self.strip_trunk_zero and digits.startswith("0"):
            return digits[1:]
        return digits


COUNTRY_RULES: dict[str, CountryRule] = {
    "GH": CountryRule("+233", frozenset({9})),
    "NG": CountryRule("+234", frozenset({10})),
    "KE": CountryRule("+254", frozenset({9})),
    "ZA": CountryRule("+27", frozenset({9})),
    "US": CountryRule("+1", frozenset({10}), strip_trunk_zero=False),
}

# Legacy profiles store the country by name
_COUNTRY_ALIASES: dict[str, str] = {
    "GHANA": "GH",
    "NIGERIA": "NG",
    "KENYA": "KE",
    "SOUTH AFRICA": "ZA",
    "UNITED STATES": "US",
    "USA": "US",
}

# Unknown countries fall back to Ghana for bare 9-digit numbers. This
# matches the behaviour existing seller records were created with.
_FALLBACK_RULE = COUNTRY_RULES["GH"]

_HINTS: dict[str, str] = {
    "GH": "Include country code, e.g., +233 24 123 4567 or 0241234567",
    "NG": "Include country code, e.g., +234 803 123 4567 or 08031234567",
    "KE": "Include country code, e.g., +254 712 345 678 or 0712345678",
    "ZA": "Include country code, e.g., +27 82 123 4567 or 0821234567",
    "US": "Include country code, e.g., +1 555 123 4567",
}


@dataclass(frozen=True)
class PhoneValidation:
    """Outcome of :func:`validate`."""

    is_valid: bool
    error: str | None = None
    normalized: str | None = None


def resolve_country(country: str | None) -> str:
    """Map an ISO-2 code or English country name to an upper-case key."""
    key = (country or "").strip().upper()
    return _COUNTRY_ALIASES.get(key, key)


def clean(raw: str) -> str:
    """Keep digits plus a single leading ``+``; ``00`` counts as ``+``."""
    stripped = _STRIP_RE.sub("", raw.strip())
    digits = stripped.replace("+", "")
    if stripped.startswith("+"):
        return f"+{digits}"
    # International 00 dialing prefix read as +. Older storefront builds
    # rejected it; sellers paste it often enough to accept it here.
    if digits.startswith("00"):
        return f"+{digits[2:]}"
    return digits


def is_valid_e164(phone: str | None) -> bool:
    """True for ``+<cc><national>`` strings of 8 to 18 characters."""
    if not phone or not isinstance(phone, str):
        return False
    return (
        _E164_RE.match(phone) is not None
        and _MIN_LENGTH <= len(phone) <= _MAX_LENGTH
    )


def needs_update(phone: str | None) -> bool:
    """Flag stored numbers that are not yet in dialable form."""
    return not is_valid_e164(phone)


def normalize(raw: str | None, country: str | None = "GH") -> str | None:
    """Convert *raw* to dialable form, or ``None`` when it cannot be."""
    if not raw or not isinstance(raw, str):
        return None

    cleaned = clean(raw)

    if cleaned.startswith("+"):
        return cleaned if is_valid_e164(cleaned) else None

    rule = COUNTRY_RULES.get(resolve_country(country))
    if rule is None:
        local = _FALLBACK_RULE.localise(cleaned)
        if len(local) == 9:
            logger.debug(
                "Unknown country %r, assuming Ghana for %s",
                country,
                cleaned,
            )
            return f"{_FALLBACK_RULE.prefix}{local}"
        return None

    local = rule.localise(cleaned)
    if len(local) in rule.local_lengths:
        return f"{rule.prefix}{local}"

    if cleaned.startswith(rule.prefix[1:]):
        return f"+{cleaned}"

    return None


def validate(raw: str | None, country: str | None = "GH") -> PhoneValidation:
    """Normalise and validate a phone number for storage.

    Re-validating an accepted ``normalized`` value, with any country hint,
    returns the identical value.
    """
    if not raw or not isinstance(raw, str) or not raw.strip():
        return PhoneValidation(is_valid=False, error=ERROR_REQUIRED)

    normalized = normalize(raw, country)
    if normalized is None:
        return PhoneValidation(is_valid=False, error=ERROR_UNRECOGNISED)

    if not is_valid_e164(normalized):
        return PhoneValidation(is_valid=False, error=ERROR_FORMAT)

    return PhoneValidation(is_valid=True, normalized=normalized)


def format_for_display(phone: str | None) -> str:
    """Space out a dialable number for humans. Never store the result."""
    if not phone or not is_valid_e164(phone):
        return phone or ""

    if phone.startswith("+233") and len(phone) == 13:
        local = phone[4:]
        return f"+233 {local[:2]} {local[2:5]} {local[5:]}"
    if phone.startswith("+234") and len(phone) == 14:
        local = phone[4:]
        return f"+234 {local[:3]} {local[3:6]} {local[6:]}"
    if phone.startswith("+254") and len(phone) == 13:
        local = phone[4:]
        return f"+254 {local[:3]} {local[3:6]} {local[6:]}"
    if phone.startswith("+27") and len(phone) == 12:
        local = phone[3:]
        return f"+27 {local[:2]} {local[2:5]} {local[5:]}"
    if phone.startswith("+1") and len(phone) == 12:
        local = phone[2:]
        return f"+1 ({local[:3]}) {local[3:6]}-{local[6:]}"
    return phone


def phone_hint(country: str | None = "GH") -> str:
    """Input hint shown beside the phone field."""
    return _HINTS.get(resolve_country(country), _HINTS["GH"])
