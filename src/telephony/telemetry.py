"""Delivery-error telemetry for long-code migration decisions."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from core.config import get_settings
from core.exceptions import TwilioError
from core.logging_config import get_logger
from core.types import MessageRecord
from core.utils import days_ago, ensure_aware, utcnow
from .phone import is_long_code

LOGGER = get_logger(__name__)
SETTINGS = get_settings()


class MessageSource(Protocol):
    def list_messages(
        self, from_number: str, sent_after: Optional[datetime] = None
    ) -> Sequence[MessageRecord]: ...


def count_qualifying_errors(
    messages: Iterable[MessageRecord],
    error_codes: Iterable[int],
    since: datetime,
    until: datetime,
) -> int:
    """
    Count messages that carry a target error code, went to a US long code,
    and were sent in ``[since, until)``.
    """
    codes = set(error_codes)
    count = 0
    for message in messages:
        if message.error_code not in codes:
            continue
        if not message.to or not is_long_code(message.to):
            continue
        sent = ensure_aware(message.date_sent)
        if sent is None or not (since <= sent < until):
            continue
        count += 1
    return count


def count_recent_delivery_errors(
    provider: MessageSource,
    account_sid: str,
    phone_number: str,
    window_days: Optional[int] = None,
    error_codes: Optional[Iterable[int]] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Count recent carrier-filtering errors on messages sent from a number.

    A failed fetch counts as zero errors: without evidence the number is
    left where it is.

    Args:
        provider: Provider scoped to the account that owns the number.
        account_sid: Account sid, used for logging.
        phone_number: Sender number in E.164 form.
        window_days: Trailing window (defaults to ERROR_WINDOW_DAYS).
        error_codes: Codes that count (defaults to DELIVERY_ERROR_CODES).
        now: Reference instant (defaults to the current UTC time).

    Returns:
        Number of qualifying messages.
    """
    window_days = window_days if window_days is not None else SETTINGS.error_window_days
    codes = set(error_codes) if error_codes is not None else set(SETTINGS.delivery_error_codes)
    until = ensure_aware(now) or utcnow()
    since = days_ago(window_days, until)

    try:
        messages = provider.list_messages(phone_number, sent_after=since)
    except TwilioError as e:
        LOGGER.error(
            "Error fetching messages for %s on %s, treating as 0 errors: %s",
            phone_number, account_sid, e,
        )
        return 0
    except Exception:
        LOGGER.exception(
            "Unexpected error fetching messages for %s on %s, treating as 0 errors",
            phone_number, account_sid,
        )
        return 0

    count = count_qualifying_errors(messages, codes, since, until)
    LOGGER.info(
        "Number of %s errors for %s in the last %d days: %d",
        "/".join(str(c) for c in sorted(codes)), phone_number, window_days, count,
    )
    return count


__all__ = [
    "count_qualifying_errors",
    "count_recent_delivery_errors",
]
