"""Toll-free number pool and purchase budget.

Replacement numbers come from the sub-account's unassigned toll-free
numbers first; only when that pool is empty is a new number purchased, and
purchases are capped across the whole run by a PurchaseBudget.
"""
from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Deque, Dict, Optional, Sequence

from core.config import get_settings
from core.logging_config import get_logger
from core.types import MessagingServiceRecord, PhoneNumberRecord
from telephony.phone import is_toll_free

LOGGER = get_logger(__name__)
SETTINGS = get_settings()


class AllocationSource(str, Enum):
    POOL = "pool"
    PURCHASE = "purchase"


class AllocationFailure(str, Enum):
    BUDGET_EXHAUSTED = "budget_exhausted"
    INVENTORY_EXHAUSTED = "inventory_exhausted"


class PurchaseBudget:
    """
    Run-wide cap on toll-free purchases.

    Once a purchase attempt finds the budget or the provider's inventory
    exhausted, the reason sticks and no later purchase is attempted.
    """

    def __init__(self, maximum: Optional[int] = None, used: int = 0) -> None:
        """
        Args:
            maximum: Purchase ceiling, None for unlimited.
            used: Purchases already made.
        """
        if maximum is not None and maximum < 0:
            raise ValueError("maximum must be >= 0")
        self.maximum = maximum
        self.used = used
        self.exhausted: Optional[AllocationFailure] = None
        self._lock = threading.Lock()

    @property
    def unlimited(self) -> bool:
        return self.maximum is None

    @property
    def remaining(self) -> Optional[int]:
        if self.maximum is None:
            return None
        return max(self.maximum - self.used, 0)

    def can_purchase(self) -> bool:
        with self._lock:
            if self.exhausted is not None:
                return False
            return self.maximum is None or self.used < self.maximum

    def record_purchase(self) -> None:
        with self._lock:
            self.used += 1

    def mark_exhausted(self, reason: AllocationFailure) -> None:
        with self._lock:
            if self.exhausted is None:
                self.exhausted = reason
                LOGGER.warning(f"Toll-free purchasing stopped for this run: {reason.value}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "used": self.used,
            "maximum": self.maximum,
            "exhausted": self.exhausted.value if self.exhausted else None,
        }


@dataclass(frozen=True)
class AllocationResult:
    """A replacement number, or the reason none could be supplied."""

    number: Optional[PhoneNumberRecord] = None
    source: Optional[AllocationSource] = None
    failure: Optional[AllocationFailure] = None

    @property
    def allocated(self) -> bool:
        return self.failure is None and self.source is not None


def compute_unassigned(
    provider: Any,
    services: Optional[Sequence[MessagingServiceRecord]] = None,
) -> Deque[PhoneNumberRecord]:
    """
    Toll-free numbers owned by the provider's account that no messaging
    service of that account uses, in provider order.

    Args:
        provider: Provider scoped to one sub-account.
        services: The account's messaging services if already listed.
    """
    toll_free = [n for n in provider.list_incoming_numbers() if is_toll_free(n.phone_number)]

    if services is None:
        services = provider.list_messaging_services()

    in_use = set()
    for service in services:
        for number in provider.list_service_numbers(service.sid):
            in_use.add(number.phone_number)

    unassigned = deque(n for n in toll_free if n.phone_number not in in_use)
    LOGGER.info(
        f"Found {len(unassigned)} unassigned toll-free numbers "
        f"({len(toll_free)} toll-free owned) on {provider.account_sid}"
    )
    return unassigned


def allocate(
    provider: Any,
    pool: Deque[PhoneNumberRecord],
    budget: PurchaseBudget,
    country: Optional[str] = None,
) -> AllocationResult:
    """
    Supply one replacement toll-free number.

    Reuses the head of ``pool`` when possible. Otherwise, budget permitting,
    searches for one available toll-free number and buys it. At most one
    purchase is attempted per call.

    Raises:
        TwilioError: If the search or purchase call fails.
    """
    if pool:
        number = pool.popleft()
        LOGGER.info(f"Reusing unassigned toll-free number {number.phone_number}")
        return AllocationResult(number=number, source=AllocationSource.POOL)

    if not budget.can_purchase():
        reason = budget.exhausted or AllocationFailure.BUDGET_EXHAUSTED
        budget.mark_exhausted(reason)
        LOGGER.info("Reached the maximum number of toll-free numbers allowed for purchase")
        return AllocationResult(failure=reason)

    country = country or SETTINGS.toll_free_country
    available = provider.search_toll_free(country=country, limit=1)
    if not available:
        LOGGER.warning(f"No toll-free numbers available for purchase in {country}")
        budget.mark_exhausted(AllocationFailure.INVENTORY_EXHAUSTED)
        return AllocationResult(failure=AllocationFailure.INVENTORY_EXHAUSTED)

    purchased = provider.purchase_number(available[0])
    budget.record_purchase()
    return AllocationResult(number=purchased, source=AllocationSource.PURCHASE)


def plan_allocation(
    pool: Deque[PhoneNumberRecord],
    budget: PurchaseBudget,
) -> AllocationResult:
    """
    Dry-run counterpart of ``allocate``.

    Consumes ``pool`` and ``budget`` exactly as ``allocate`` would but never
    talks to the provider, so a planned purchase carries no number. Provider
    inventory is assumed to be available.
    """
    if pool:
        return AllocationResult(number=pool.popleft(), source=AllocationSource.POOL)

    if not budget.can_purchase():
        reason = budget.exhausted or AllocationFailure.BUDGET_EXHAUSTED
        budget.mark_exhausted(reason)
        return AllocationResult(failure=reason)

    budget.record_purchase()
    return AllocationResult(source=AllocationSource.PURCHASE)


__all__ = [
    "AllocationSource",
    "AllocationFailure",
    "PurchaseBudget",
    "AllocationResult",
    "compute_unassigned",
    "allocate",
    "plan_allocation",
]
