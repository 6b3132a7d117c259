"""
Post-run attribution of purchased capital and CSV exports for plotting.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

import pandas as pd

from ..calendar import month_label, month_starts
from ..data import Company
from .book import Side, Transaction


@dataclass
class BiasWindow:
    """Purchase capital attributed to one company in one calendar month."""

    year: int
    month: int
    bias: float = 0.0


@dataclass
class CompanyBias:
    company: Company
    windows: list[BiasWindow] = field(default_factory=list)

    @classmethod
    def empty(cls, company: Company, start: date, end: date) -> CompanyBias:
        """One zeroed bucket per month from ``start`` up to, not including, ``end``."""
        return cls(
            company=company,
            windows=[BiasWindow(year=d.year, month=d.month) for d in month_starts(start, end)],
        )

    def values(self) -> list[float]:
        return [window.bias for window in self.windows]


def compute_company_bias(
    companies: Iterable[Company],
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> list[CompanyBias]:
    """
    Fold every BUY's purchase value into its (company, year, month) bucket.

    SELL transactions and purchases outside the reporting window are ignored.
    """
    biases = [CompanyBias.empty(company, start, end) for company in companies]
    by_company = {bias.company: bias for bias in biases}

    for transaction in transactions:
        if transaction.side is not Side.BUY:
            continue

        company_bias = by_company.get(transaction.holding.company)
        if company_bias is None:
            continue

        for window in company_bias.windows:
            if window.year == transaction.date.year and window.month == transaction.date.month:
                window.bias += transaction.holding.purchase_value()

    return biases


def bias_matrix(biases: Sequence[CompanyBias], start: date, end: date) -> pd.DataFrame:
    """Dense companies x months frame (zero where nothing was bought), rows keyed ``exchange:symbol``."""
    columns = [month_label(d) for d in month_starts(start, end)]
    index = [str(bias.company) for bias in biases]
    rows = [bias.values() for bias in biases]
    return pd.DataFrame(rows, index=index, columns=columns, dtype=float).fillna(0.0)


def holding_durations(transactions: Sequence[Transaction]) -> list[int]:
    """
    Calendar days between each BUY and the SELL of the same holding.

    Holdings never sold count as 0. With a zero-day hold the SELL is dated on
    the row before the purchase, so negative spans are clamped to 0. Sorted
    longest first.
    """
    sale_dates: dict[int, date] = {}
    for transaction in transactions:
        if transaction.side is Side.SELL:
            sale_dates.setdefault(transaction.holding.id, transaction.date)

    durations = []
    for transaction in transactions:
        if transaction.side is not Side.BUY:
            continue
        sold_on = sale_dates.get(transaction.holding.id)
        durations.append(max(0, (sold_on - transaction.date).days) if sold_on is not None else 0)

    return sorted(durations, reverse=True)


def export_balance_history_csv(balance_history: Sequence[tuple[date, float]], output_path: str | Path) -> None:
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with output_file.open('w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['date', 'value'])
        for day, value in balance_history:
            writer.writerow([day.isoformat(), round(value, 2)])


def export_bias_csv(matrix: pd.DataFrame, output_path: str | Path) -> None:
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    matrix.to_csv(output_file, index_label='company')


def export_transactions_csv(transactions: Sequence[Transaction], output_path: str | Path) -> None:
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with output_file.open('w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['date', 'side', 'holding_id', 'exchange', 'symbol', 'count', 'purchase_price', 'sale_price'])
        for t in transactions:
            writer.writerow([
                t.date.isoformat(),
                t.side.value,
                t.holding.id,
                t.holding.company.exchange,
                t.holding.company.symbol,
                t.holding.count,
                t.holding.purchase_price,
                '' if t.holding.sale_price is None else t.holding.sale_price,
            ])
