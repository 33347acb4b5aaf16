from __future__ import annotations

from typing import List, Optional

from .diagnostics import CollectingDiagnostics, Diagnostics
from .entities import extract_entities
from .models import Category, MonetaryAmount, RawAmount, RawRecord, Transaction
from .validation import (
    DEFAULT_AMOUNT_UPPER_BOUND,
    MAX_YEAR,
    MIN_YEAR,
    is_known_currency,
    parse_amount,
    parse_historical_date,
)

# Latin and German bookkeeping formulae; income wins when both appear.
INCOME_KEYWORDS = ("recepimus", "einnahmen", "eingenommen", "empfangen")
EXPENSE_KEYWORDS = ("für", "dabimus", "ausgaben", "ausgeben", "bezahlt")


def infer_category(text: str) -> Category:
    lowered = text.casefold()
    if any(keyword in lowered for keyword in INCOME_KEYWORDS):
        return "income"
    if any(keyword in lowered for keyword in EXPENSE_KEYWORDS):
        return "expense"
    return "trade"


class TransactionParser:
    """Turn decoded :class:`RawRecord` objects into validated transactions.

    Malformed records yield ``None`` and malformed amounts are dropped; both
    are reported to the injected diagnostics sink. Only a missing record
    object raises, since that is a caller bug rather than bad data.
    """

    def __init__(
        self,
        diagnostics: Optional[Diagnostics] = None,
        *,
        amount_upper_bound: float = DEFAULT_AMOUNT_UPPER_BOUND,
        min_year: int = MIN_YEAR,
        max_year: int = MAX_YEAR,
    ) -> None:
        self.diagnostics = diagnostics if diagnostics is not None else CollectingDiagnostics()
        self.amount_upper_bound = amount_upper_bound
        # Configured bounds can only narrow the years a Transaction accepts.
        self.min_year = max(min_year, MIN_YEAR)
        self.max_year = min(max_year, MAX_YEAR)

    def parse(self, record: RawRecord, sequence_index: int) -> Optional[Transaction]:
        if record is None:
            raise TypeError("record must not be None")

        text = (record.text or "").strip()
        if not text:
            self.diagnostics.report_skipped_record(sequence_index, "empty text")
            return None

        date = None
        if record.date:
            date = parse_historical_date(
                record.date, min_year=self.min_year, max_year=self.max_year
            )

        amounts = self._parse_amounts(record.amounts, sequence_index)
        entities = extract_entities(text)

        return Transaction(
            id=sequence_index,
            source_id=record.source_id,
            date=date,
            text=text,
            amounts=tuple(amounts),
            category=infer_category(text),
            people=tuple(entities.people),
            places=tuple(entities.places),
            commodities=tuple(entities.commodities),
            raw_source=record.raw_source,
        )

    def _parse_amounts(self, raw_amounts: List[RawAmount], sequence_index: int) -> List[MonetaryAmount]:
        kept: List[MonetaryAmount] = []
        for raw in raw_amounts:
            quantity = parse_amount(raw.quantity, upper_bound=self.amount_upper_bound)
            if quantity is None:
                self.diagnostics.report_skipped_amount(
                    sequence_index, "invalid quantity", raw.quantity or ""
                )
                continue

            code = (raw.currency_code or "").strip()
            if not code:
                self.diagnostics.report_skipped_amount(sequence_index, "missing currency", raw.quantity or "")
                continue
            if not is_known_currency(code):
                self.diagnostics.report_unknown_currency(sequence_index, code)
                self.diagnostics.report_skipped_amount(sequence_index, "unknown currency", code)
                continue

            kept.append(MonetaryAmount(quantity=quantity, currency_code=code))
        return kept
