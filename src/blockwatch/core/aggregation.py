"""Fold classified transactions into block-level metrics.

`aggregate_transactions` is pure: it only reads the already-parsed values it
is given. Ratios are percentages; a zero denominator (empty block, zero
block value) yields `RATIO_SENTINEL` instead of raising.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from blockwatch.constants import UNKNOWN_CLASS
from blockwatch.core.models import BlockMetrics

RATIO_SENTINEL = 0.0


def safe_pct(part: float, total: float) -> float:
    """Return 100 * part / total, or the sentinel when total is zero."""
    if total == 0:
        return RATIO_SENTINEL
    return 100.0 * part / total


def normalize_class(tag: str | None) -> str:
    """Lowercase a classification tag; empty tags become 'unknown'."""
    t = (tag or "").strip().lower()
    return t or UNKNOWN_CLASS


def aggregate_transactions(
    transactions: Iterable[tuple[str | None, float]],
    *,
    total_value: float,
    total_tx_count: int | None = None,
    priority_class: str = "mev",
) -> BlockMetrics:
    """Compute per-class counts/sums and ratios for `priority_class`.

    Parameters
    ----------
    transactions : Iterable[tuple[str | None, float]]
        (classification tag, value) per classified transaction.
    total_value : float
        Block value used as the denominator of the value ratio.
    total_tx_count : int | None
        Number of transactions in the block; defaults to the number of
        classified transactions when not known.
    priority_class : str
        Class whose ratios are reported.
    """
    counts: dict[str, int] = defaultdict(int)
    values: dict[str, float] = defaultdict(float)
    seen = 0
    for tag, value in transactions:
        cls = normalize_class(tag)
        counts[cls] += 1
        values[cls] += value
        seen += 1

    total = seen if total_tx_count is None else total_tx_count
    target = normalize_class(priority_class)
    return BlockMetrics(
        priority_class=target,
        class_counts=dict(counts),
        class_values=dict(values),
        count_pct=safe_pct(counts.get(target, 0), total),
        value_pct=safe_pct(values.get(target, 0.0), total_value),
    )
