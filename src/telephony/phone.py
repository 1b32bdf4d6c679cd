"""Phone number classification for toll-free migration.

Classification is a pure string predicate over the number exactly as Twilio
returns it; nothing here normalises before matching. Patterns are compiled
once and applied with ``fullmatch`` so no match state survives a call.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional

import phonenumbers
from phonenumbers import NumberParseException

from core.logging_config import get_logger
from core.types import NumberType, PhoneNumberRecord

LOGGER = get_logger(__name__)

TOLL_FREE_PREFIXES = ("800", "833", "844", "855", "866", "877", "888")

TOLL_FREE_PATTERN = re.compile(r"(?:\+?1)?8(?:00|33|44|55|66|77|88)[2-9]\d{6}")
LONG_CODE_PATTERN = re.compile(r"\+1\d{10}")
SHORT_CODE_PATTERN = re.compile(r"(?:\+?1)?\d{5,6}")


def is_toll_free(phone_number: str) -> bool:
    """True for a North-American toll-free number, with or without a +1/1 prefix."""
    return TOLL_FREE_PATTERN.fullmatch(phone_number) is not None


def is_long_code(phone_number: str) -> bool:
    """True for exactly ``+1`` followed by ten digits."""
    return LONG_CODE_PATTERN.fullmatch(phone_number) is not None


def is_short_code(phone_number: str) -> bool:
    """True for a five or six digit short code, with or without a +1/1 prefix."""
    return SHORT_CODE_PATTERN.fullmatch(phone_number) is not None


def classify_number(phone_number: str) -> NumberType:
    """
    Classify a phone number string.

    Toll-free is checked before long code because every ``+1`` toll-free
    number also has the long-code shape; only ``get_long_code_numbers``
    needs the raw predicates.

    Returns:
        The NumberType, UNKNOWN when no shape matches.
    """
    if is_toll_free(phone_number):
        return NumberType.TOLL_FREE
    if is_short_code(phone_number):
        return NumberType.SHORT_CODE
    if is_long_code(phone_number):
        return NumberType.LONG_CODE
    return NumberType.UNKNOWN


def get_long_code_numbers(records: Iterable[PhoneNumberRecord]) -> List[PhoneNumberRecord]:
    """
    Keep the records that are long codes and neither toll-free nor short codes.

    Numbers matching no known shape are dropped silently; they are never
    migration candidates.
    """
    return [
        record
        for record in records
        if is_long_code(record.phone_number)
        and not is_toll_free(record.phone_number)
        and not is_short_code(record.phone_number)
    ]


def normalize_phone_e164(value: Optional[str], default_region: str = "US") -> Optional[str]:
    """
    Normalize an operator-typed phone number to E.164 format.

    Short codes are not valid E.164 numbers, so digit strings that already
    look like one are returned unchanged.

    Args:
        value: Raw phone number string.
        default_region: Default region for parsing (ISO 3166-1 alpha-2).

    Returns:
        E.164 formatted phone number (or the short code) if valid, otherwise None.
    """
    if not value:
        return None

    cleaned = re.sub(r"[^\d+]", "", value.strip())
    if not cleaned:
        return None

    if is_short_code(cleaned):
        return cleaned

    try:
        parsed = phonenumbers.parse(value, default_region)
        if phonenumbers.is_valid_number(parsed):
            return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    except NumberParseException:
        LOGGER.debug("Could not parse phone number %r", value)

    return None


__all__ = [
    "TOLL_FREE_PREFIXES",
    "is_toll_free",
    "is_long_code",
    "is_short_code",
    "classify_number",
    "get_long_code_numbers",
    "normalize_phone_e164",
]
