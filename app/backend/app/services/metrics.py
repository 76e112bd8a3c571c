"""Total metric primitives shared by every statistics report.

Each function returns a documented default instead of raising when the
natural computation is undefined (empty input, zero denominator).
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeVar

T = TypeVar("T")

Number = Decimal | int | float

ZERO = Decimal("0")
HUNDRED = Decimal("100")
Q2 = Decimal("0.01")


def to_decimal(value: Number | None) -> Decimal:
    """Coerce a numeric value to ``Decimal`` (``None`` becomes zero)."""

    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def q2(value: Number) -> Decimal:
    return to_decimal(value).quantize(Q2, rounding=ROUND_HALF_UP)


def safe_ratio(numerator: Number, denominator: Number) -> Decimal:
    """Return ``numerator / denominator * 100``, or zero for a non-positive denominator."""

    denominator_value = to_decimal(denominator)
    if denominator_value <= ZERO:
        return ZERO
    return to_decimal(numerator) / denominator_value * HUNDRED


def safe_average(total: Number, count: Number) -> Decimal:
    """Return ``total / count``, or zero when ``count`` is not positive."""

    count_value = to_decimal(count)
    if count_value <= ZERO:
        return ZERO
    return to_decimal(total) / count_value


def evolution_percent(current: Number, previous: Number) -> Decimal:
    """Percentage change from ``previous`` to ``current``.

    A non-positive ``previous`` yields 100 when there is any current activity
    and 0 otherwise.
    """

    current_value = to_decimal(current)
    previous_value = to_decimal(previous)
    if previous_value > ZERO:
        return (current_value - previous_value) / previous_value * HUNDRED
    if current_value > ZERO:
        return HUNDRED
    return ZERO


def sum_by(
    records: Iterable[T],
    predicate: Callable[[T], bool] | None,
    extractor: Callable[[T], Number | None],
) -> Decimal:
    total = ZERO
    for record in records:
        if predicate is None or predicate(record):
            total += to_decimal(extractor(record))
    return total


def count_by(records: Iterable[T], predicate: Callable[[T], bool] | None = None) -> int:
    if predicate is None:
        return sum(1 for _ in records)
    return sum(1 for record in records if predicate(record))


def distinct_count(records: Iterable[T], key: Callable[[T], Hashable]) -> int:
    """Count distinct keys; ``key`` must return a stable entity id."""

    return len({key(record) for record in records})


def first_by(records: Iterable[T], key: Callable[[T], object]) -> T | None:
    """Return the record that sorts first by ``key``, or ``None`` when empty.

    Callers encode "largest first, then tie-breaker" in the key, e.g.
    ``(-amount, date)``, so ties resolve deterministically.
    """

    return min(records, key=key, default=None)
