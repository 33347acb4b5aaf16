"""Tests for turning raw records into transactions."""

import datetime as dt

import pytest
from pydantic import ValidationError

from ledger.diagnostics import CollectingDiagnostics
from ledger.models import MonetaryAmount, RawAmount, RawRecord, Transaction
from ledger.parser import TransactionParser, infer_category

SCENARIO_A = (
    "Item den .28. Maii, Martin Öder von Aitenpach geben .4. Schaff waitz p. 4 ½. f. thut. .18. f."
)


def _record(text="Item ein Eintrag", date=None, amounts=(), source_id=None):
    return RawRecord(
        source_id=source_id,
        text=text,
        date=date,
        amounts=[RawAmount(quantity=q, currency_code=c) for q, c in amounts],
    )


@pytest.fixture
def parser():
    return TransactionParser(CollectingDiagnostics())


class TestParse:
    """Validation and enrichment of a single record."""

    def test_scenario_entry(self, parser):
        record = _record(SCENARIO_A, date="1520-05-28", amounts=[("18", "f")], source_id="T1")
        transaction = parser.parse(record, 0)

        assert transaction is not None
        assert transaction.id == 0
        assert transaction.source_id == "T1"
        assert transaction.date == dt.date(1520, 5, 28)
        assert transaction.base_value == pytest.approx(18.0)
        assert transaction.category == "trade"
        assert any("Martin" in e for e in transaction.entities)
        assert any("Aitenpach" in e for e in transaction.entities)
        assert transaction.commodities == ("Weizen",)

    def test_out_of_range_date_is_absent(self, parser):
        transaction = parser.parse(_record("Item Holz", date="2400-12-24", amounts=[("2", "f")]), 3)
        assert transaction is not None
        assert transaction.date is None
        assert transaction.text == "Item Holz"

    def test_wider_configured_years_keep_the_record(self):
        parser = TransactionParser(CollectingDiagnostics(), max_year=1900)
        transaction = parser.parse(_record("Item Holz", date="1850-06-01"), 0)
        assert transaction is not None
        assert transaction.date is None
        assert (parser.min_year, parser.max_year) == (1200, 1800)

    def test_narrower_configured_years(self):
        parser = TransactionParser(CollectingDiagnostics(), min_year=1500, max_year=1600)
        assert parser.parse(_record(date="1450-01-01"), 0).date is None
        assert parser.parse(_record(date="1520-05-28"), 1).date == dt.date(1520, 5, 28)

    def test_missing_date(self, parser):
        assert parser.parse(_record(date=None), 0).date is None

    def test_text_is_stripped(self, parser):
        assert parser.parse(_record("  Item Holz  "), 0).text == "Item Holz"

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_text_skips_record(self, parser, text):
        assert parser.parse(_record(text), 7) is None
        assert parser.diagnostics.skipped_records == [(7, "empty text")]

    def test_none_record_raises(self, parser):
        with pytest.raises(TypeError):
            parser.parse(None, 0)

    def test_multiple_amounts_are_summed(self, parser):
        transaction = parser.parse(_record(amounts=[("6", "f"), ("12", "s")]), 0)
        assert transaction.base_value == pytest.approx(6.4)
        assert transaction.currency_codes == ("f", "s")

    def test_record_without_amounts_is_kept(self, parser):
        transaction = parser.parse(_record(), 0)
        assert transaction.amounts == ()
        assert transaction.base_value == 0.0


class TestAmountDiagnostics:
    """Malformed amounts are dropped and reported, the record survives."""

    def test_invalid_quantity(self, parser):
        transaction = parser.parse(_record(amounts=[("zwelf", "gr"), ("30", "gr")]), 4)
        assert [a.quantity for a in transaction.amounts] == [30.0]
        assert parser.diagnostics.skipped_amounts == [(4, "invalid quantity", "zwelf")]

    def test_quantity_above_bound(self):
        parser = TransactionParser(CollectingDiagnostics(), amount_upper_bound=500)
        transaction = parser.parse(_record(amounts=[("600", "f")]), 0)
        assert transaction.amounts == ()
        assert parser.diagnostics.skipped_amounts == [(0, "invalid quantity", "600")]

    def test_unknown_currency(self, parser):
        transaction = parser.parse(_record(amounts=[("3", "t"), ("5", "ducat")]), 5)
        assert transaction.currency_codes == ("t",)
        assert parser.diagnostics.unknown_currencies == [(5, "ducat")]
        assert parser.diagnostics.skipped_amounts == [(5, "unknown currency", "ducat")]

    def test_missing_currency(self, parser):
        transaction = parser.parse(_record(amounts=[("3", None)]), 1)
        assert transaction.amounts == ()
        assert parser.diagnostics.skipped_amounts == [(1, "missing currency", "3")]

    def test_default_diagnostics(self):
        parser = TransactionParser()
        parser.parse(_record(""), 2)
        assert parser.diagnostics.skipped_records == [(2, "empty text")]


class TestIdempotence:
    """Same record, same transaction apart from the sequence index."""

    def test_parse_twice(self, parser):
        record = _record(SCENARIO_A, date="1520-05-28", amounts=[("18", "f")])
        first = parser.parse(record, 0)
        second = parser.parse(record, 9)
        assert first.model_dump(exclude={"id"}) == second.model_dump(exclude={"id"})


class TestInferCategory:
    """Keyword-based classification."""

    def test_income(self):
        assert infer_category("Recepimus von Hans") == "income"
        assert infer_category("Einnahmen vom Salzhandel") == "income"

    def test_expense(self):
        assert infer_category("Dem Schmid für Eisen") == "expense"
        assert infer_category("DABIMUS dem Kellner") == "expense"

    def test_income_wins(self):
        assert infer_category("Recepimus für Wein") == "income"

    def test_default_trade(self):
        assert infer_category("Item geben .2. f.") == "trade"


class TestTransactionModel:
    """Invariants enforced by the model itself."""

    def test_frozen(self, make_transaction):
        transaction = make_transaction(text="Item Holz")
        with pytest.raises(ValidationError):
            transaction.text = "changed"

    def test_date_outside_years_rejected(self):
        with pytest.raises(ValidationError):
            Transaction(id=0, text="Item", date=dt.date(1900, 1, 1))

    def test_empty_text_rejected(self):
        with pytest.raises(ValidationError):
            Transaction(id=0, text="")

    def test_unknown_currency_rejected(self):
        with pytest.raises(ValidationError):
            MonetaryAmount(quantity=1, currency_code="ducat")

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            MonetaryAmount(quantity=-1, currency_code="f")

    def test_entities_people_then_places(self, make_transaction):
        transaction = make_transaction(people=["Hans Mair", "Passau"], places=["Passau", "Linz"])
        assert transaction.entities == ("Hans Mair", "Passau", "Linz")
