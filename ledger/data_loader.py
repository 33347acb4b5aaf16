"""Decoding of bookkeeping XML into raw records and whole-collection loads.

Source documents describe transactions with a bookkeeping vocabulary, e.g.::

    <bk:Transaction rdf:about="https://example.org/o:ak.1520#T1">
      <bk:entry>Item ... thut .18. f.</bk:entry>
      <bk:when>1520-05-28</bk:when>
      <bk:Money>
        <bk:quantity>18</bk:quantity>
        <bk:unit rdf:resource="https://example.org/units#f"/>
      </bk:Money>
    </bk:Transaction>

Elements are matched by local name so any namespace prefix (or none) works.
This is the only module that knows about the document format; everything
downstream consumes :class:`RawRecord`.
"""

from __future__ import annotations

import glob
import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .diagnostics import Diagnostics, LoggingDiagnostics, timed
from .models import RawAmount, RawRecord, Transaction
from .parser import TransactionParser

log = logging.getLogger("aldersbach.data_loader")

_ID_ATTRIBUTES = ("about", "id")


@dataclass(frozen=True)
class LoadResult:
    transactions: Tuple[Transaction, ...]
    skipped: int
    duration_ms: float


def _local_name(name: object) -> str:
    if not isinstance(name, str):
        return ""
    return name.rsplit("}", 1)[-1].rsplit(":", 1)[-1]


def _find_all(element: ET.Element, name: str) -> List[ET.Element]:
    return [e for e in element.iter() if e is not element and _local_name(e.tag) == name]


def _find_first(element: ET.Element, name: str) -> Optional[ET.Element]:
    found = _find_all(element, name)
    return found[0] if found else None


def _text_of(element: ET.Element, name: str) -> Optional[str]:
    found = _find_first(element, name)
    if found is None:
        return None
    return "".join(found.itertext()).strip()


def _attribute(element: ET.Element, name: str) -> Optional[str]:
    for key, value in element.attrib.items():
        if _local_name(key) == name:
            return value
    return None


def _currency_code(money: ET.Element) -> Optional[str]:
    unit = _find_first(money, "unit")
    if unit is None:
        return None
    resource = _attribute(unit, "resource")
    if resource:
        return resource.rsplit("#", 1)[-1].strip() or None
    text = "".join(unit.itertext()).strip()
    return text or None


def decode_record(element: ET.Element) -> RawRecord:
    source_id = None
    for name in _ID_ATTRIBUTES:
        source_id = _attribute(element, name)
        if source_id:
            break

    amounts = [
        RawAmount(quantity=_text_of(money, "quantity"), currency_code=_currency_code(money))
        for money in _find_all(element, "Money")
    ]
    return RawRecord(
        source_id=source_id,
        text=_text_of(element, "entry"),
        date=_text_of(element, "when"),
        amounts=amounts,
        raw_source=ET.tostring(element, encoding="unicode"),
    )


def decode_records(xml_text: str) -> List[RawRecord]:
    """Decode every ``Transaction`` element in document order.

    Raises ``xml.etree.ElementTree.ParseError`` when the document is not
    well-formed; a broken file must not produce a partial collection.
    """
    root = ET.fromstring(xml_text)
    elements = [e for e in root.iter() if _local_name(e.tag) == "Transaction"]
    return [decode_record(e) for e in elements]


def load_collection(
    xml_text: str,
    parser: Optional[TransactionParser] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> LoadResult:
    """Parse a whole document into transactions, skipping malformed records."""
    if diagnostics is None:
        diagnostics = parser.diagnostics if parser is not None else LoggingDiagnostics()
    if parser is None:
        parser = TransactionParser(diagnostics)

    transactions: List[Transaction] = []
    skipped = 0
    with timed(diagnostics, "data_load") as elapsed:
        for index, record in enumerate(decode_records(xml_text)):
            try:
                transaction = parser.parse(record, index)
            except ValueError as exc:
                diagnostics.report_skipped_record(index, f"invalid record: {exc}")
                transaction = None
            if transaction is None:
                skipped += 1
                continue
            transactions.append(transaction)

    log.info(
        "Data loaded",
        extra={
            "context": {
                "transactions": len(transactions),
                "skipped": skipped,
                "with_dates": sum(1 for t in transactions if t.date is not None),
                "duration_ms": round(elapsed.duration_ms, 2),
            }
        },
    )
    return LoadResult(transactions=tuple(transactions), skipped=skipped, duration_ms=elapsed.duration_ms)


def load_file(path: Union[os.PathLike, str], parser: Optional[TransactionParser] = None) -> LoadResult:
    return load_collection(Path(path).read_text(encoding="utf-8"), parser)


def list_data_files(data_dir: Union[os.PathLike, str]) -> List[Path]:
    """XML documents available for loading, sorted by name."""
    pattern = os.path.join(os.fspath(data_dir), "*.xml")
    return sorted(Path(p) for p in glob.glob(pattern))
