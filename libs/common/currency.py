"""Currency conversion utilities for the store.

Internal storage unit: whole Thai baht (int). Catalog prices, order totals
and line totals are all whole baht.
Payment processor unit: satang (100 satang = ฿1), the smallest THB unit
expected by Stripe's ``unit_amount`` and ``amount_total`` fields.
"""

from __future__ import annotations

SATANG_PER_BAHT: int = 100


def baht_to_satang(baht: int) -> int:
    """Convert whole baht to satang. ฿1 = 100 satang."""
    return int(baht) * SATANG_PER_BAHT


def satang_to_baht(satang: int) -> int:
    """Convert satang to whole baht, rounding half-up."""
    return (int(satang) + SATANG_PER_BAHT // 2) // SATANG_PER_BAHT
