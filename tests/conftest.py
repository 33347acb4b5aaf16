"""Shared fixtures: a transaction factory and the bundled sample ledger."""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pytest

from ledger.models import MonetaryAmount, Transaction

SAMPLE_XML_PATH = Path(__file__).resolve().parent.parent / "demo-data" / "aldersbach-sample.xml"


@pytest.fixture
def make_transaction():
    """Build transactions with sequential ids unless one is given."""
    counter = iter(range(10_000))

    def _make(
        text: str = "Item ein Eintrag",
        date: Optional[str] = None,
        amounts: Iterable[Tuple[float, str]] = (),
        people: Iterable[str] = (),
        places: Iterable[str] = (),
        commodities: Iterable[str] = (),
        category: str = "trade",
        id: Optional[int] = None,
    ) -> Transaction:
        return Transaction(
            id=next(counter) if id is None else id,
            date=dt.date.fromisoformat(date) if date else None,
            text=text,
            amounts=tuple(MonetaryAmount(quantity=q, currency_code=c) for q, c in amounts),
            category=category,
            people=tuple(people),
            places=tuple(places),
            commodities=tuple(commodities),
        )

    return _make


@pytest.fixture
def sample_xml() -> str:
    return SAMPLE_XML_PATH.read_text(encoding="utf-8")
