"""Rate ledger interfaces.

The transport and services depend on this abstraction so the in-memory
ledger can later be swapped for a shared store (e.g., Redis) without
changing call sites.

Binance reports two kinds of consumed capacity on every response:

- ``weight``: request weight per IP, e.g. ``X-MBX-USED-WEIGHT-1M: 12``
- ``orders``: order count per account, e.g. ``X-MBX-ORDER-COUNT-10S: 3``

The suffix after the prefix is the window key (``1M``, ``10S``). Ceilings for
the same windows come from ``exchangeInfo.rateLimits``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping

WEIGHT_HEADER_PREFIX = "X-MBX-USED-WEIGHT-"
ORDER_COUNT_HEADER_PREFIX = "X-MBX-ORDER-COUNT-"

HeaderPairs = Iterable[tuple[str, str]]


class LimitCategory(str, Enum):
    """Category a window belongs to."""

    WEIGHT = "weight"
    ORDERS = "orders"


CeilingTriple = tuple["LimitCategory | str", str, int]


def window_key(interval_num: int, interval: str) -> str:
    """Derive a window key from a declared rate-limit interval.

    Uses the same shape the exchange uses in usage header names, so ceiling
    lookups line up with observed usage.

    Args:
        interval_num: Interval count, e.g. ``10``.
        interval: Interval unit name, e.g. ``"SECOND"``.

    Returns:
        Window key such as ``"10S"`` or ``"1M"``.

    Raises:
        ValueError: If the count is not positive or the unit is empty.
    """
    if interval_num < 1:
        raise ValueError("interval_num must be >= 1")
    if not interval:
        raise ValueError("interval must be a non-empty string")
    return f"{interval_num}{interval[0].upper()}"


@dataclass(frozen=True)
class WindowCounters:
    """Per-window values for both categories.

    Attributes:
        weight: Window key -> value for request weight.
        orders: Window key -> value for order count.
    """

    weight: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    orders: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def for_category(self, category: LimitCategory) -> Mapping[str, int]:
        return self.weight if category is LimitCategory.WEIGHT else self.orders


@dataclass(frozen=True)
class LedgerState:
    """Point-in-time view of the ledger.

    Attributes:
        ceilings: Declared maximum per window (empty until fetched).
        used: Last server-reported consumption per window.
    """

    ceilings: WindowCounters = field(default_factory=WindowCounters)
    used: WindowCounters = field(default_factory=WindowCounters)


def compute_remaining(state: LedgerState, category: LimitCategory) -> dict[str, int]:
    """Remaining capacity for every window with a known ceiling.

    Windows without a ceiling are omitted; windows without usage count as 0
    used. Negative values are returned unclamped.
    """
    used = state.used.for_category(category)
    return {
        key: ceiling - used.get(key, 0)
        for key, ceiling in state.ceilings.for_category(category).items()
    }


class AbstractRateLedger(ABC):
    """Interface for rate ledgers.

    A ledger is passive: it records what the exchange reports and never
    delays or rejects a request.
    """

    @abstractmethod
    def record_usage(self, headers: HeaderPairs) -> None:
        """Record used weight/order counts from response headers.

        Args:
            headers: Response header ``(name, value)`` pairs.
        """
        raise NotImplementedError

    @abstractmethod
    def refresh_ceilings(self, ceiling_pairs: Iterable[CeilingTriple]) -> None:
        """Replace all ceilings with ``(category, window_key, limit)`` triples."""
        raise NotImplementedError

    @abstractmethod
    def snapshot(self) -> LedgerState:
        """Return an immutable, consistent copy of the ledger state."""
        raise NotImplementedError

    def used_weight(self) -> Mapping[str, int]:
        return self.snapshot().used.weight

    def used_orders(self) -> Mapping[str, int]:
        return self.snapshot().used.orders

    def remaining(self) -> dict[str, dict[str, int]]:
        """Remaining capacity per category.

        Returns:
            ``{"weight": {...}, "orders": {...}}``; both empty until ceilings
            have been loaded.
        """
        state = self.snapshot()
        return {
            LimitCategory.WEIGHT.value: compute_remaining(state, LimitCategory.WEIGHT),
            LimitCategory.ORDERS.value: compute_remaining(state, LimitCategory.ORDERS),
        }

    def remaining_weight(self) -> dict[str, int]:
        return compute_remaining(self.snapshot(), LimitCategory.WEIGHT)

    def remaining_orders(self) -> dict[str, int]:
        return compute_remaining(self.snapshot(), LimitCategory.ORDERS)
