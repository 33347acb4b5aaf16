"""Export payload assembly and its CSV/JSON renderings.

:func:`build_export_payload` is format-agnostic. The CSV, JSON and PDF
serializers below are thin consumers of it; byte-level concerns such as a BOM
are left to whoever writes the file.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional, Sequence

import pandas as pd
from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .aggregation import by_currency, currency_distribution, date_range, monthly_averages, summarize
from .currency import currency_name
from .models import (
    ExportMetadata,
    ExportPayload,
    ExportRow,
    ExportStatistics,
    FilterCriteria,
    Transaction,
)

EXPORT_SOURCE = "Aldersbach Monastery Financial Dashboard"
UNKNOWN_DATE = "unknown"
UNAVAILABLE = "unavailable"

CSV_COLUMNS = [
    "Date",
    "Entry (German)",
    "Amount",
    "Currency",
    "Type",
    "Florin Equivalent",
    "People/Places",
    "Commodities",
    "Source",
]


def _format_quantity(quantity: float) -> str:
    return f"{quantity:g}"


def build_row(transaction: Transaction) -> ExportRow:
    return ExportRow(
        id=transaction.id,
        source_id=transaction.source_id,
        date=transaction.date.isoformat() if transaction.date else UNKNOWN_DATE,
        text=transaction.text,
        amounts=[(a.quantity, a.currency_code) for a in transaction.amounts],
        category=transaction.category,
        base_value=transaction.base_value,
        entities="; ".join(transaction.entities),
        commodities="; ".join(transaction.commodities),
    )


def build_export_payload(
    transactions: Sequence[Transaction],
    applied_filters: FilterCriteria,
    *,
    source: str = EXPORT_SOURCE,
    exported_at: Optional[dt.datetime] = None,
) -> ExportPayload:
    summary = summarize(transactions)
    span = date_range(transactions)
    currencies = list(dict.fromkeys(code for t in transactions for code in t.currency_codes))

    metadata = ExportMetadata(
        exported_at=exported_at or dt.datetime.now(dt.timezone.utc),
        source=source,
        record_count=len(transactions),
        date_range=span if span is not None else UNAVAILABLE,
        currencies=currencies,
        applied_filters=applied_filters,
    )
    statistics = ExportStatistics(
        total_value=summary.total_value,
        average_value=summary.average_value,
        currency_distribution=by_currency(transactions, "value"),
        unique_entities=summary.unique_entities,
        currency_shares=currency_distribution(transactions),
        most_common_currency=summary.most_common_currency,
        monthly_averages=monthly_averages(transactions),
    )
    return ExportPayload(
        metadata=metadata,
        rows=[build_row(t) for t in transactions],
        statistics=statistics,
    )


def payload_to_dataframe(payload: ExportPayload) -> pd.DataFrame:
    records: List[dict] = []
    for row in payload.rows:
        records.append(
            {
                "Date": row.date,
                "Entry (German)": row.text,
                "Amount": " + ".join(_format_quantity(q) for q, _ in row.amounts),
                "Currency": ", ".join(dict.fromkeys(code for _, code in row.amounts)),
                "Type": row.category,
                "Florin Equivalent": round(row.base_value, 2),
                "People/Places": row.entities,
                "Commodities": row.commodities,
                "Source": row.source_id or "",
            }
        )
    return pd.DataFrame(records, columns=CSV_COLUMNS)


def payload_to_csv(payload: ExportPayload) -> str:
    return payload_to_dataframe(payload).to_csv(index=False)


def payload_to_json(payload: ExportPayload) -> str:
    return payload.model_dump_json(indent=2)


PDF_TITLE = "Aldersbach Monastery Financial Records"
PDF_TABLE_HEADER = ("Date", "Entry", "Amounts", "Type", "Florins")
PDF_ENTRY_WIDTH = 60


def _pdf_text(value: object) -> str:
    # The core PDF fonts only cover Latin-1, which includes the German letters.
    return str(value).encode("latin-1", "replace").decode("latin-1")


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def pdf_transaction_rows(payload: ExportPayload) -> List[List[str]]:
    """Body rows of the PDF transaction table, one per payload row."""
    return [
        [
            row.date,
            _truncate(row.text, PDF_ENTRY_WIDTH),
            ", ".join(f"{_format_quantity(q)} {code}" for q, code in row.amounts) or "-",
            row.category,
            f"{row.base_value:.2f}",
        ]
        for row in payload.rows
    ]


def _pdf_heading(pdf: FPDF, text: str) -> None:
    pdf.ln(4)
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(0, 8, _pdf_text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", size=10)


def _pdf_line(pdf: FPDF, text: str) -> None:
    pdf.cell(0, 6, _pdf_text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _pdf_table(pdf: FPDF, header: Sequence[str], rows: Sequence[Sequence[str]], col_widths) -> None:
    with pdf.table(col_widths=col_widths) as table:
        for values in [list(header), *rows]:
            table_row = table.row()
            for value in values:
                table_row.cell(_pdf_text(value))


def payload_to_pdf(payload: ExportPayload) -> bytes:
    """Render a report: header, summary, currency distribution, transactions."""
    meta = payload.metadata
    stats = payload.statistics

    pdf = FPDF(orientation="P", unit="mm", format="A4")
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 18)
    pdf.cell(0, 10, _pdf_text(PDF_TITLE), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", size=10)
    pdf.cell(
        0, 6, _pdf_text(f"Report generated: {meta.exported_at:%Y-%m-%d %H:%M}"),
        align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT,
    )
    _pdf_line(pdf, f"Source: {meta.source}")
    filters = meta.applied_filters
    _pdf_line(
        pdf,
        f"Filters: search '{filters.search_text or '-'}', "
        f"currency {filters.currency_code or 'all'}, sorted by {filters.sort_key}",
    )

    if isinstance(meta.date_range, str):
        span = meta.date_range
    else:
        span = f"{meta.date_range.start.isoformat()} to {meta.date_range.end.isoformat()}"

    _pdf_heading(pdf, "Summary Statistics")
    _pdf_line(pdf, f"Total transactions: {meta.record_count}")
    _pdf_line(pdf, f"Date range: {span}")
    _pdf_line(pdf, f"Total value: {stats.total_value:.2f} florins")
    _pdf_line(pdf, f"Average transaction: {stats.average_value:.2f} florins")
    _pdf_line(pdf, f"Unique people and places: {stats.unique_entities}")
    _pdf_line(pdf, f"Most common currency: {stats.most_common_currency or '-'}")

    if stats.currency_shares:
        _pdf_heading(pdf, "Currency Distribution")
        _pdf_table(
            pdf,
            ("Currency", "Count", "Percentage", "Total (Florins)"),
            [
                [
                    f"{currency_name(code)} ({code})",
                    str(share.count),
                    f"{share.percentage:.1f}%",
                    f"{share.total_value:.2f}",
                ]
                for code, share in stats.currency_shares.items()
            ],
            col_widths=(40, 20, 20, 25),
        )

    _pdf_heading(pdf, "Transaction Records")
    rows = pdf_transaction_rows(payload)
    if rows:
        _pdf_table(pdf, PDF_TABLE_HEADER, rows, col_widths=(20, 80, 30, 15, 15))
    else:
        _pdf_line(pdf, "No transactions match the applied filters.")

    return bytes(pdf.output())
