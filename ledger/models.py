from __future__ import annotations

import datetime as dt
from typing import Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .currency import KNOWN_CURRENCIES, to_base_unit
from .validation import MAX_YEAR, MIN_YEAR

Category = Literal["income", "expense", "trade"]
SortKey = Literal["date", "amount", "text"]


class MonetaryAmount(BaseModel):
    model_config = ConfigDict(frozen=True)

    quantity: float = Field(..., ge=0, description="Quantity in the record's own unit")
    currency_code: str = Field(..., description="One of the known historical currency codes")

    @field_validator("currency_code")
    @classmethod
    def _known_currency(cls, value: str) -> str:
        if value not in KNOWN_CURRENCIES:
            raise ValueError(f"unknown currency code: {value!r}")
        return value

    @property
    def base_value(self) -> float:
        return to_base_unit(self.quantity, self.currency_code)


class Transaction(BaseModel):
    """A validated ledger entry. Built once by the parser, never mutated."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Sequence index within the loaded collection")
    source_id: Optional[str] = Field(None, description="Identifier of the originating record")
    date: Optional[dt.date] = None
    text: str = Field(..., min_length=1, description="Original free-text entry")
    amounts: Tuple[MonetaryAmount, ...] = ()
    category: Category = "trade"
    people: Tuple[str, ...] = ()
    places: Tuple[str, ...] = ()
    commodities: Tuple[str, ...] = ()
    raw_source: str = Field("", repr=False, description="Serialized source record, display only")

    @field_validator("date")
    @classmethod
    def _year_in_range(cls, value: Optional[dt.date]) -> Optional[dt.date]:
        if value is not None and not (MIN_YEAR <= value.year <= MAX_YEAR):
            raise ValueError(f"date year {value.year} outside [{MIN_YEAR}, {MAX_YEAR}]")
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def base_value(self) -> float:
        """Sum of all amounts converted to florins."""
        return sum((a.base_value for a in self.amounts), 0.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def entities(self) -> Tuple[str, ...]:
        """People followed by places, deduplicated in first-occurrence order."""
        return tuple(dict.fromkeys(self.people + self.places))

    @property
    def currency_codes(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(a.currency_code for a in self.amounts))


class RawAmount(BaseModel):
    quantity: Optional[str] = None
    currency_code: Optional[str] = None


class RawRecord(BaseModel):
    """A decoded source record before validation."""

    source_id: Optional[str] = None
    text: Optional[str] = None
    date: Optional[str] = None
    amounts: List[RawAmount] = []
    raw_source: str = ""


class FilterCriteria(BaseModel):
    search_text: str = ""
    currency_code: Optional[str] = None
    sort_key: SortKey = "date"


class AggregationBucket(BaseModel):
    key: str
    total: float = 0.0
    count: int = 0


class HistogramResult(BaseModel):
    labels: List[str] = []
    counts: List[int] = []


class SeasonalBreakdown(BaseModel):
    labels: List[str]
    averages: List[float]
    counts: List[int]


class RelatedTransaction(BaseModel):
    transaction: Transaction
    score: int


class DateRange(BaseModel):
    start: dt.date
    end: dt.date


class MonthlyAverage(BaseModel):
    month: str
    count: int
    total: float
    average: float


class CurrencyShare(BaseModel):
    count: int
    total_value: float
    percentage: float


class SummaryStatistics(BaseModel):
    total_count: int = 0
    total_value: float = 0.0
    average_value: float = 0.0
    date_range: Optional[DateRange] = None
    unique_entities: int = 0
    most_common_currency: Optional[str] = None


class ExportMetadata(BaseModel):
    exported_at: dt.datetime
    source: str
    record_count: int
    date_range: Union[DateRange, Literal["unavailable"]]
    currencies: List[str]
    applied_filters: FilterCriteria


class ExportRow(BaseModel):
    id: int
    source_id: Optional[str]
    date: str
    text: str
    amounts: List[Tuple[float, str]]
    category: Category
    base_value: float
    entities: str
    commodities: str


class ExportStatistics(BaseModel):
    total_value: float
    average_value: float
    currency_distribution: Dict[str, float]
    unique_entities: int
    currency_shares: Dict[str, CurrencyShare] = {}
    most_common_currency: Optional[str] = None
    monthly_averages: List[MonthlyAverage] = []


class ExportPayload(BaseModel):
    metadata: ExportMetadata
    rows: List[ExportRow]
    statistics: ExportStatistics
