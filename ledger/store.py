from __future__ import annotations

import math
from typing import Generic, Iterable, List, Sequence, Tuple, TypeVar

from pydantic import BaseModel

from .models import FilterCriteria, Transaction

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    page: int
    total_pages: int
    total_items: int


def paginate(items: Sequence[T], page: int, per_page: int) -> Page[T]:
    """Return the 1-based ``page`` of ``items``, clamped to the valid range."""
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    total_pages = max(1, math.ceil(len(items) / per_page))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        page=page,
        total_pages=total_pages,
        total_items=len(items),
    )


def _matches_search(transaction: Transaction, needle: str) -> bool:
    if needle in transaction.text.casefold():
        return True
    return any(needle in entity.casefold() for entity in transaction.entities)


def _sort_by_date(transactions: List[Transaction]) -> List[Transaction]:
    dated = [t for t in transactions if t.date is not None]
    undated = [t for t in transactions if t.date is None]
    dated.sort(key=lambda t: t.date, reverse=True)
    return dated + undated


class TransactionStore:
    """Owns the loaded transactions and produces filtered views of them.

    The collection is only ever replaced as a whole, so a reader sees either
    the previous load or the next one.
    """

    def __init__(self, transactions: Iterable[Transaction] = ()) -> None:
        self._transactions: Tuple[Transaction, ...] = tuple(transactions)

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self._transactions

    def __len__(self) -> int:
        return len(self._transactions)

    def replace(self, transactions: Iterable[Transaction]) -> None:
        loaded = tuple(transactions)
        self._transactions = loaded

    def currencies(self) -> List[str]:
        return list(dict.fromkeys(code for t in self._transactions for code in t.currency_codes))

    def apply_filter(self, criteria: FilterCriteria) -> List[Transaction]:
        """Search, then currency filter, then sort. Never mutates the store."""
        filtered = list(self._transactions)

        needle = criteria.search_text.strip().casefold()
        if needle:
            filtered = [t for t in filtered if _matches_search(t, needle)]

        if criteria.currency_code:
            code = criteria.currency_code
            filtered = [t for t in filtered if code in t.currency_codes]

        if criteria.sort_key == "date":
            return _sort_by_date(filtered)
        if criteria.sort_key == "amount":
            return sorted(filtered, key=lambda t: t.base_value, reverse=True)
        return sorted(filtered, key=lambda t: t.text.casefold())
