"""
Exception taxonomy for window construction, ledger mutation and simulation.

Per-sample faults (MalformedWindow, MissingInferenceData) are filtered where
they are detected. InsufficientFunds is recovered by clamping the purchase.
InconsistentPriceHistory and CalendarStall abort the run.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .data import Company


class StockPredictorError(Exception):
    """Base class for all domain errors."""


class MalformedWindow(StockPredictorError):  # noqa: N818
    """Window has the wrong length or zero range."""


class MissingInferenceData(StockPredictorError):  # noqa: N818
    """No usable window exists for a company on the requested date."""


class InsufficientFunds(StockPredictorError):  # noqa: N818
    """Purchase cost exceeds the ledger balance."""


class InconsistentPriceHistory(StockPredictorError):  # noqa: N818
    """The calendar and a company's price history disagree."""

    def __init__(self, message: str, company: Company | None = None, as_of: date | None = None):
        self.company = company
        self.as_of = as_of
        context = []
        if company is not None:
            context.append(f'company={company.exchange}:{company.symbol}')
        if as_of is not None:
            context.append(f'date={as_of.isoformat()}')
        super().__init__(f'{message} ({", ".join(context)})' if context else message)


class CalendarStall(StockPredictorError):  # noqa: N818
    """Date advance did not move the simulation forward."""

    def __init__(self, as_of: date):
        self.as_of = as_of
        super().__init__(f'Calendar failed to advance past {as_of.isoformat()}')


__all__ = [
    'StockPredictorError',
    'MalformedWindow',
    'MissingInferenceData',
    'InsufficientFunds',
    'InconsistentPriceHistory',
    'CalendarStall',
]
