"""Test phone number classification."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add src to path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from core.types import NumberType, PhoneNumberRecord
from telephony.phone import (
    classify_number,
    get_long_code_numbers,
    is_long_code,
    is_short_code,
    is_toll_free,
    normalize_phone_e164,
)


SAMPLES = [
    "+18002345678",
    "18332345678",
    "8442345678",
    "+18001234567",
    "+14155551234",
    "4155551234",
    "+1415555123",
    "12345",
    "123456",
    "+112345",
    "1123456",
    "123",
    "",
    "+447700900123",
    "+18002345678 ",
    "abc",
]


def test_is_toll_free_valid():
    """Test toll-free prefixes with and without country code."""
    assert is_toll_free("+18002345678") is True
    assert is_toll_free("18332345678") is True
    assert is_toll_free("8442345678") is True
    for prefix in ("800", "833", "844", "855", "866", "877", "888"):
        assert is_toll_free(f"+1{prefix}5551234") is True


def test_is_toll_free_invalid():
    """Test exchange digit and prefix rules."""
    # Exchange digit must be 2-9
    assert is_toll_free("+18001234567") is False
    assert is_toll_free("+18000234567") is False
    # Not a toll-free NPA
    assert is_toll_free("+18222345678") is False
    assert is_toll_free("+14155551234") is False


def test_is_toll_free_anchored():
    """Partial matches must not count."""
    assert is_toll_free("+180023456789") is False
    assert is_toll_free("x+18002345678") is False
    assert is_toll_free("+18002345678\n") is False


def test_is_toll_free_is_stateless():
    """Repeated calls give the same answer."""
    results = [is_toll_free("+18002345678") for _ in range(5)]
    assert results == [True] * 5


def test_is_long_code():
    """Test long code shape."""
    assert is_long_code("+14155551234") is True
    assert is_long_code("4155551234") is False
    assert is_long_code("14155551234") is False
    assert is_long_code("+1415555123") is False
    assert is_long_code("+141555512345") is False


def test_is_short_code():
    """Test short code shape."""
    assert is_short_code("12345") is True
    assert is_short_code("123456") is True
    assert is_short_code("+112345") is True
    assert is_short_code("1123456") is True
    assert is_short_code("123") is False
    assert is_short_code("1234567890") is False


@pytest.mark.parametrize("number", SAMPLES)
def test_classification_is_exclusive(number):
    """Every string has exactly one classification."""
    kind = classify_number(number)
    matches = {
        NumberType.TOLL_FREE: kind is NumberType.TOLL_FREE,
        NumberType.LONG_CODE: kind is NumberType.LONG_CODE,
        NumberType.SHORT_CODE: kind is NumberType.SHORT_CODE,
        NumberType.UNKNOWN: kind is NumberType.UNKNOWN,
    }
    assert sum(matches.values()) == 1


def test_classify_number():
    """Test classification of known shapes."""
    assert classify_number("+18002345678") is NumberType.TOLL_FREE
    assert classify_number("+14155551234") is NumberType.LONG_CODE
    assert classify_number("12345") is NumberType.SHORT_CODE
    assert classify_number("+18001234567") is NumberType.LONG_CODE
    assert classify_number("4155551234") is NumberType.UNKNOWN


def test_short_and_toll_free_never_overlap_long_code():
    """Short codes never have the long-code shape."""
    for number in SAMPLES:
        assert not (is_short_code(number) and is_long_code(number))
        assert not (is_short_code(number) and is_toll_free(number))


def test_get_long_code_numbers():
    """Only genuine long codes survive the filter."""
    records = [
        PhoneNumberRecord(sid="PN1", phone_number="+14155551234"),
        PhoneNumberRecord(sid="PN2", phone_number="+18002345678"),
        PhoneNumberRecord(sid="PN3", phone_number="12345"),
        PhoneNumberRecord(sid="PN4", phone_number="4155551234"),
        PhoneNumberRecord(sid="PN5", phone_number="+12125550100"),
    ]

    result = get_long_code_numbers(records)

    assert [r.sid for r in result] == ["PN1", "PN5"]


def test_record_number_type():
    """Records expose their derived type."""
    assert PhoneNumberRecord(sid="PN1", phone_number="+18772345678").number_type is NumberType.TOLL_FREE
    assert PhoneNumberRecord(sid="PN2", phone_number="+14155551234").number_type is NumberType.LONG_CODE


def test_normalize_phone_valid():
    """Test valid phone number normalization."""
    assert normalize_phone_e164("225-555-0100") == "+12255550100"
    assert normalize_phone_e164("(225) 555-0100") == "+12255550100"
    assert normalize_phone_e164("+1 225 555 0100") == "+12255550100"


def test_normalize_phone_keeps_short_codes():
    """Short codes are not E.164 but are still classified."""
    assert normalize_phone_e164("12345") == "12345"


def test_normalize_phone_invalid():
    """Test invalid phone number handling."""
    assert normalize_phone_e164("invalid") is None
    assert normalize_phone_e164("") is None
    assert normalize_phone_e164(None) is None
