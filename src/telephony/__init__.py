"""Telephony tools: number classification, Twilio access and delivery telemetry."""
from .phone import (
    classify_number,
    get_long_code_numbers,
    is_long_code,
    is_short_code,
    is_toll_free,
    normalize_phone_e164,
)
from .telemetry import count_recent_delivery_errors
from .twilio_client import TwilioProvider, get_twilio_provider, reset_twilio_provider

__all__ = [
    "classify_number",
    "get_long_code_numbers",
    "is_long_code",
    "is_short_code",
    "is_toll_free",
    "normalize_phone_e164",
    "count_recent_delivery_errors",
    "TwilioProvider",
    "get_twilio_provider",
    "reset_twilio_provider",
]
