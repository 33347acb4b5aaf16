"""Aggregations over transaction sequences for charts and reports.

Every function is pure: it takes a sequence of transactions (or numbers) and
returns fresh plain data. Empty input yields empty or zero-valued results.
"""

from __future__ import annotations

import datetime as dt
from bisect import bisect_right
from collections import Counter
from typing import Dict, List, Literal, Optional, Sequence

from .currency import KNOWN_CURRENCIES
from .models import (
    AggregationBucket,
    CurrencyShare,
    DateRange,
    HistogramResult,
    MonthlyAverage,
    SeasonalBreakdown,
    SummaryStatistics,
    Transaction,
)

TimeUnit = Literal["day", "week", "month", "year"]
CurrencyMetric = Literal["value", "count"]
SeasonalAxis = Literal["month", "quarter", "weekday"]

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
QUARTER_LABELS = ("Q1", "Q2", "Q3", "Q4")
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def _weekday_index(day: dt.date) -> int:
    """0 for Sunday through 6 for Saturday."""
    return day.isoweekday() % 7


def bucket_key(day: dt.date, unit: TimeUnit) -> str:
    if unit == "day":
        return day.isoformat()
    if unit == "week":
        return (day - dt.timedelta(days=_weekday_index(day))).isoformat()
    if unit == "month":
        return day.replace(day=1).isoformat()
    if unit == "year":
        return day.replace(month=1, day=1).isoformat()
    raise ValueError(f"unknown time unit: {unit!r}")


def by_time_bucket(transactions: Sequence[Transaction], unit: TimeUnit) -> List[AggregationBucket]:
    """Sum base values per period; undated transactions and empty periods are omitted."""
    buckets: Dict[str, AggregationBucket] = {}
    for t in transactions:
        if t.date is None:
            continue
        key = bucket_key(t.date, unit)
        bucket = buckets.setdefault(key, AggregationBucket(key=key))
        bucket.total += t.base_value
        bucket.count += 1
    return [buckets[key] for key in sorted(buckets)]


def by_currency(transactions: Sequence[Transaction], metric: CurrencyMetric) -> Dict[str, float]:
    if metric not in ("value", "count"):
        raise ValueError(f"unknown currency metric: {metric!r}")
    totals: Dict[str, float] = {code: 0.0 for code in KNOWN_CURRENCIES}
    for t in transactions:
        for amount in t.amounts:
            assert amount.currency_code in totals, f"unknown currency {amount.currency_code!r}"
            if metric == "value":
                totals[amount.currency_code] += amount.base_value
            else:
                totals[amount.currency_code] += 1
    return totals


def histogram(amounts: Sequence[float], bucket_count: int) -> HistogramResult:
    """Equal-width bins between the smallest and largest positive amount.

    Bins are ``[start, end)`` except the last, which is closed so the maximum
    lands in it. Non-positive amounts are not counted.
    """
    if bucket_count < 1:
        raise ValueError("bucket_count must be at least 1")
    values = [a for a in amounts if a > 0]
    if not values:
        return HistogramResult()

    low, high = min(values), max(values)
    width = (high - low) / bucket_count
    edges = [low + i * width for i in range(bucket_count)] + [high]
    counts = [0] * bucket_count
    for value in values:
        index = bisect_right(edges, value) - 1 if width else 0
        counts[min(max(index, 0), bucket_count - 1)] += 1

    labels = [f"{edges[i]:.2f}-{edges[i + 1]:.2f}" for i in range(bucket_count)]
    return HistogramResult(labels=labels, counts=counts)


def seasonal(transactions: Sequence[Transaction], axis: SeasonalAxis) -> SeasonalBreakdown:
    """Mean base value per calendar slot; every slot is always present."""
    if axis == "month":
        labels, slot_of = MONTH_LABELS, lambda d: d.month - 1
    elif axis == "quarter":
        labels, slot_of = QUARTER_LABELS, lambda d: (d.month - 1) // 3
    elif axis == "weekday":
        labels, slot_of = WEEKDAY_LABELS, _weekday_index
    else:
        raise ValueError(f"unknown seasonal axis: {axis!r}")

    totals = [0.0] * len(labels)
    counts = [0] * len(labels)
    for t in transactions:
        if t.date is None:
            continue
        slot = slot_of(t.date)
        totals[slot] += t.base_value
        counts[slot] += 1

    averages = [total / count if count else 0.0 for total, count in zip(totals, counts)]
    return SeasonalBreakdown(labels=list(labels), averages=averages, counts=counts)


def monthly_averages(transactions: Sequence[Transaction]) -> List[MonthlyAverage]:
    grouped: Dict[str, List[float]] = {}
    for t in transactions:
        if t.date is None:
            continue
        grouped.setdefault(t.date.strftime("%Y-%m"), []).append(t.base_value)
    return [
        MonthlyAverage(month=month, count=len(values), total=sum(values), average=sum(values) / len(values))
        for month, values in sorted(grouped.items())
    ]


def currency_distribution(transactions: Sequence[Transaction]) -> Dict[str, CurrencyShare]:
    """Per-currency amount count, florin value and share of all amounts."""
    counts: Dict[str, int] = {}
    values: Dict[str, float] = {}
    for t in transactions:
        for amount in t.amounts:
            counts[amount.currency_code] = counts.get(amount.currency_code, 0) + 1
            values[amount.currency_code] = values.get(amount.currency_code, 0.0) + amount.base_value

    total = sum(counts.values())
    return {
        code: CurrencyShare(count=count, total_value=values[code], percentage=count / total * 100)
        for code, count in counts.items()
    }


def date_range(transactions: Sequence[Transaction]) -> Optional[DateRange]:
    dates = [t.date for t in transactions if t.date is not None]
    if not dates:
        return None
    return DateRange(start=min(dates), end=max(dates))


def unique_entities(transactions: Sequence[Transaction]) -> int:
    return len({entity for t in transactions for entity in t.entities})


def summarize(transactions: Sequence[Transaction]) -> SummaryStatistics:
    if not transactions:
        return SummaryStatistics()

    total_value = sum(t.base_value for t in transactions)
    currency_counts = Counter(a.currency_code for t in transactions for a in t.amounts)
    most_common = currency_counts.most_common(1)

    return SummaryStatistics(
        total_count=len(transactions),
        total_value=total_value,
        average_value=total_value / len(transactions),
        date_range=date_range(transactions),
        unique_entities=unique_entities(transactions),
        most_common_currency=most_common[0][0] if most_common else None,
    )
