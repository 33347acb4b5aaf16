"""Reporting of data-quality events raised while loading ledger records.

The parser never reaches for a global logger; it is handed a
:class:`Diagnostics` sink. :class:`LoggingDiagnostics` forwards events to the
application logger, :class:`CollectingDiagnostics` keeps them in memory.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

SLOW_OPERATION_MS = 100.0


class Diagnostics(Protocol):
    def report_skipped_amount(self, record_index: int, reason: str, text: str) -> None: ...

    def report_skipped_record(self, record_index: int, reason: str) -> None: ...

    def report_unknown_currency(self, record_index: int, code: str) -> None: ...

    def report_duration(self, operation: str, duration_ms: float, **context: Any) -> None: ...


class LoggingDiagnostics:
    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        slow_threshold_ms: float = SLOW_OPERATION_MS,
    ) -> None:
        self.logger = logger or logging.getLogger("aldersbach.diagnostics")
        self.slow_threshold_ms = slow_threshold_ms

    def report_skipped_amount(self, record_index: int, reason: str, text: str) -> None:
        self.logger.debug(
            "Amount skipped",
            extra={"context": {"record": record_index, "reason": reason, "text": text}},
        )

    def report_skipped_record(self, record_index: int, reason: str) -> None:
        self.logger.info(
            "Record skipped",
            extra={"context": {"record": record_index, "reason": reason}},
        )

    def report_unknown_currency(self, record_index: int, code: str) -> None:
        self.logger.warning(
            "Unknown currency code",
            extra={"context": {"record": record_index, "code": code}},
        )

    def report_duration(self, operation: str, duration_ms: float, **context: Any) -> None:
        payload = {"operation": operation, "duration_ms": round(duration_ms, 2), **context}
        if duration_ms > self.slow_threshold_ms:
            self.logger.warning(f"Slow {operation}", extra={"context": payload})
        else:
            self.logger.debug(f"{operation} completed", extra={"context": payload})


@dataclass
class CollectingDiagnostics:
    skipped_amounts: List[Tuple[int, str, str]] = field(default_factory=list)
    skipped_records: List[Tuple[int, str]] = field(default_factory=list)
    unknown_currencies: List[Tuple[int, str]] = field(default_factory=list)
    durations: List[Tuple[str, float, Dict[str, Any]]] = field(default_factory=list)

    def report_skipped_amount(self, record_index: int, reason: str, text: str) -> None:
        self.skipped_amounts.append((record_index, reason, text))

    def report_skipped_record(self, record_index: int, reason: str) -> None:
        self.skipped_records.append((record_index, reason))

    def report_unknown_currency(self, record_index: int, code: str) -> None:
        self.unknown_currencies.append((record_index, code))

    def report_duration(self, operation: str, duration_ms: float, **context: Any) -> None:
        self.durations.append((operation, duration_ms, dict(context)))


@dataclass
class Timer:
    duration_ms: float = 0.0


@contextmanager
def timed(diagnostics: Diagnostics, operation: str, **context: Any) -> Iterator[Timer]:
    """Report the wall-clock duration of the enclosed block in milliseconds."""
    timer = Timer()
    start = time.perf_counter()
    try:
        yield timer
    finally:
        timer.duration_ms = (time.perf_counter() - start) * 1000.0
        diagnostics.report_duration(operation, timer.duration_ms, **context)
