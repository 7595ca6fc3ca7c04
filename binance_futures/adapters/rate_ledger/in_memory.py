"""In-memory rate ledger.

Notes:
- Per-process only: each process sees the usage reported to its own calls.
- Thread-safe: all mutations run under one lock; mappings are copy-on-write,
  so readers always get a consistent snapshot without copying.
- Never performs I/O, so it is safe to call from coroutines as well.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Iterable, Mapping

from binance_futures.adapters.rate_ledger.base import (
    ORDER_COUNT_HEADER_PREFIX,
    WEIGHT_HEADER_PREFIX,
    AbstractRateLedger,
    CeilingTriple,
    HeaderPairs,
    LedgerState,
    LimitCategory,
    WindowCounters,
)

logger = logging.getLogger(__name__)


def _parse_count(value: str) -> int | None:
    """Parse a header value made of ASCII digits only, or None if malformed."""
    if not isinstance(value, str):
        return None
    digits = value.strip()
    if not digits.isascii() or not digits.isdigit():
        return None
    return int(digits)


def _parse_limit(limit: object) -> int | None:
    """Return a positive integer ceiling, or None if malformed."""
    if isinstance(limit, bool) or not isinstance(limit, int):
        return None
    return limit if limit > 0 else None


def _coerce_category(tag: LimitCategory | str) -> LimitCategory | None:
    try:
        return LimitCategory(tag)
    except ValueError:
        return None


class InMemoryRateLedger(AbstractRateLedger):
    """Ledger of used and declared request weight / order counts.

    Construct one per application (or per API key) and pass it to the
    transport and to LimitsService. Usage values are overwritten with what
    the server reports, never summed, because the exchange already returns
    the cumulative count for the current window.
    """

    def __init__(
        self,
        *,
        weight_prefix: str = WEIGHT_HEADER_PREFIX,
        order_prefix: str = ORDER_COUNT_HEADER_PREFIX,
    ) -> None:
        """Initialize an empty ledger.

        Args:
            weight_prefix: Header name prefix carrying used weight.
            order_prefix: Header name prefix carrying used order count.

        Raises:
            ValueError: If a prefix is empty.
        """
        if not weight_prefix or not order_prefix:
            raise ValueError("header prefixes must be non-empty strings")

        self._prefixes = (
            (LimitCategory.WEIGHT, weight_prefix),
            (LimitCategory.ORDERS, order_prefix),
        )
        self._lock = threading.RLock()
        self._state = LedgerState()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        state = self._state
        return (
            f"InMemoryRateLedger(used_weight={dict(state.used.weight)}, "
            f"used_orders={dict(state.used.orders)}, "
            f"ceilings_loaded={bool(state.ceilings.weight or state.ceilings.orders)})"
        )

    def _extract_usage(self, headers: HeaderPairs) -> dict[LimitCategory, dict[str, int]]:
        """Pick usage entries out of a header list.

        Malformed entries are logged and skipped; they never affect other keys.
        """
        found: dict[LimitCategory, dict[str, int]] = {
            LimitCategory.WEIGHT: {},
            LimitCategory.ORDERS: {},
        }

        for name, value in headers:
            for category, prefix in self._prefixes:
                if not name.startswith(prefix):
                    continue

                key = name[len(prefix):]
                count = _parse_count(value)
                if not key or count is None:
                    logger.warning(
                        "rate_ledger.malformed_header",
                        extra={
                            "header_name": name,
                            "header_value": value,
                            "category": category.value,
                        },
                    )
                    break

                found[category][key] = count
                break

        return found

    def record_usage(self, headers: HeaderPairs) -> None:
        """Apply used weight/order counts reported in response headers.

        Each reported window overwrites its previous value. Windows not
        present in ``headers`` keep their last known value, and a category
        with no matching headers is left untouched.

        Args:
            headers: Response header ``(name, value)`` pairs.
        """
        found = self._extract_usage(headers)
        if not found[LimitCategory.WEIGHT] and not found[LimitCategory.ORDERS]:
            return

        with self._lock:
            used = self._state.used
            self._state = LedgerState(
                ceilings=self._state.ceilings,
                used=WindowCounters(
                    weight=_merged(used.weight, found[LimitCategory.WEIGHT]),
                    orders=_merged(used.orders, found[LimitCategory.ORDERS]),
                ),
            )

        logger.debug(
            "rate_ledger.usage_recorded",
            extra={
                "weight": found[LimitCategory.WEIGHT],
                "orders": found[LimitCategory.ORDERS],
            },
        )

    def refresh_ceilings(self, ceiling_pairs: Iterable[CeilingTriple]) -> None:
        """Replace declared ceilings for both categories.

        Triples with an unknown category tag are ignored. Triples with an
        empty window key or a limit that is not a positive integer are
        logged and skipped. Both categories are replaced, even if one of them
        receives no triples.

        Args:
            ceiling_pairs: ``(category, window_key, limit)`` triples.
        """
        ceilings: dict[LimitCategory, dict[str, int]] = {
            LimitCategory.WEIGHT: {},
            LimitCategory.ORDERS: {},
        }
        ignored = 0
        for tag, key, limit in ceiling_pairs:
            category = _coerce_category(tag)
            if category is None:
                ignored += 1
                continue

            ceiling = _parse_limit(limit)
            if not key or ceiling is None:
                logger.warning(
                    "rate_ledger.malformed_ceiling",
                    extra={"category": category.value, "window": key, "limit": limit},
                )
                ignored += 1
                continue

            ceilings[category][key] = ceiling

        with self._lock:
            self._state = LedgerState(
                ceilings=WindowCounters(
                    weight=MappingProxyType(ceilings[LimitCategory.WEIGHT]),
                    orders=MappingProxyType(ceilings[LimitCategory.ORDERS]),
                ),
                used=self._state.used,
            )

        logger.info(
            "rate_ledger.ceilings_refreshed",
            extra={
                "weight": ceilings[LimitCategory.WEIGHT],
                "orders": ceilings[LimitCategory.ORDERS],
                "ignored": ignored,
            },
        )

    def snapshot(self) -> LedgerState:
        """Return the current state.

        The returned object and its mappings are read-only and are never
        mutated afterwards, so no copy is needed.
        """
        with self._lock:
            return self._state

    def reset(self) -> None:
        """Drop all recorded usage and ceilings."""
        with self._lock:
            self._state = LedgerState()


def _merged(current: Mapping[str, int], updates: dict[str, int]) -> Mapping[str, int]:
    if not updates:
        return current
    return MappingProxyType({**current, **updates})
