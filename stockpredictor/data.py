"""
Price history structures and CSV loading.

Each company's rows are kept in chronological order with at most one row per
date, so exact-date and first-on-or-after lookups are binary searches.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

CSV_DATE_FORMAT = '%d-%m-%Y'
_CSV_COLUMNS = ['Date', 'Low', 'Open', 'Volume', 'High', 'Close', 'Adjusted Close']


@dataclass(frozen=True)
class PriceDataItem:
    """Single daily OHLCV row."""

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: int
    adjusted_close: float


@dataclass(frozen=True)
class Company:
    """Identity of a listed company."""

    symbol: str
    exchange: str

    def __str__(self) -> str:
        return f'{self.exchange}:{self.symbol}'


@dataclass
class CompanyPriceData:
    """A company together with its chronological price rows."""

    symbol: str
    exchange: str
    price_data: list[PriceDataItem] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.price_data = sorted(self.price_data, key=lambda item: item.date)
        self._dates = [item.date for item in self.price_data]
        if len(set(self._dates)) != len(self._dates):
            raise ValueError(f'Duplicate dates in price history for {self.symbol}')

    def company(self) -> Company:
        return Company(symbol=self.symbol, exchange=self.exchange)

    def __len__(self) -> int:
        return len(self.price_data)

    @property
    def last_date(self) -> date | None:
        return self._dates[-1] if self._dates else None

    def closes(self) -> list[float]:
        return [item.close for item in self.price_data]

    def index_of(self, on: date) -> int | None:
        """Index of the row dated exactly ``on``, if any."""
        idx = bisect_left(self._dates, on)
        if idx < len(self._dates) and self._dates[idx] == on:
            return idx
        return None

    def first_index_on_or_after(self, on: date) -> int | None:
        """Index of the first row dated ``on`` or later, if any."""
        idx = bisect_left(self._dates, on)
        return idx if idx < len(self._dates) else None

    def close_on(self, on: date) -> float | None:
        idx = self.index_of(on)
        return self.price_data[idx].close if idx is not None else None

    def last_n_days(self, curr_date: date, window_size: int) -> list[PriceDataItem] | None:
        """
        Rows strictly before ``curr_date`` usable for predicting from that date.

        The reference row must exist, at least ``window_size`` rows must precede
        it, and a following row must exist so the prediction has a trading day
        to play out on.
        """
        curr_idx = self.index_of(curr_date)
        if curr_idx is None:
            return None

        next_idx = curr_idx + 1
        if next_idx <= window_size or next_idx >= len(self.price_data):
            return None

        rows = self.price_data[curr_idx - window_size : curr_idx]
        if len(rows) < window_size:
            return None
        return rows

    def refresh_data(self, start: date, end: date, data_root: str | Path) -> None:
        path = Path(data_root) / self.exchange / 'csv' / f'{self.symbol}.csv'
        self.price_data = load_price_csv(path, start, end, self.symbol)
        self.__post_init__()


class CompaniesPriceData:
    """Ordered collection of company price histories."""

    def __init__(self, companies: list[CompanyPriceData] | None = None):
        self.companies: list[CompanyPriceData] = []
        self._index: dict[Company, CompanyPriceData] = {}
        for company in companies or []:
            self.push(company)

    def push(self, company: CompanyPriceData) -> None:
        if not company.symbol:
            return
        self.companies.append(company)
        self._index[company.company()] = company

    def extend(self, other: CompaniesPriceData) -> None:
        for company in other.companies:
            self.push(company)

    def flush(self) -> None:
        self.companies = []
        self._index = {}

    def find(self, company: Company) -> CompanyPriceData | None:
        return self._index.get(company)

    def __iter__(self) -> Iterator[CompanyPriceData]:
        return iter(self.companies)

    def __len__(self) -> int:
        return len(self.companies)

    def refresh_data(self, start: date, end: date, data_root: str | Path) -> None:
        total = len(self.companies)
        for idx, company in enumerate(self.companies):
            if idx % 10 == 0:
                logger.info(f'Fetching data... company {idx} of {total}')
            company.refresh_data(start, end, data_root)
        logger.info('Company data fetch complete')


def load_price_csv(path: Path, start: date, end: date, symbol: str) -> list[PriceDataItem]:
    """
    Load one company's daily rows from CSV.

    Rows are skipped (with a warning) when Low is empty (no trade that day),
    when the date is malformed, or when any other field is missing or
    unparseable. Only rows dated within ``[start, end]`` are returned.

    Raises:
        FileNotFoundError: If the CSV file does not exist
    """
    if not path.exists():
        raise FileNotFoundError(f'Price data file not found: {path}')

    df = pd.read_csv(path, dtype=str, keep_default_na=False, on_bad_lines='skip')
    df = df.fillna('')
    missing = [col for col in _CSV_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f'Missing required columns {missing} in {path}')

    records: list[PriceDataItem] = []
    for num, row in enumerate(df[_CSV_COLUMNS].itertuples(index=False, name=None)):
        raw_date, low, open_, volume, high, close, adjusted = (str(value).strip() for value in row)

        if not low:
            continue

        if len(raw_date) != 10:
            logger.warning(f'SKIPPING RECORD, malformed date, SYMBOL: {symbol}', extra={'row': num})
            continue

        try:
            record = PriceDataItem(
                date=datetime.strptime(raw_date, CSV_DATE_FORMAT).date(),
                low=float(low),
                open=float(open_),
                volume=int(volume.split('.')[0]),
                high=float(high),
                close=float(close),
                adjusted_close=float(adjusted),
            )
        except ValueError as exc:
            logger.warning(f'SKIPPING RECORD, unparseable row {num}, SYMBOL: {symbol}: {exc}')
            continue

        if record.date < start or record.date > end:
            continue
        records.append(record)

    deduped: dict[date, PriceDataItem] = {}
    for record in records:
        deduped[record.date] = record
    return [deduped[d] for d in sorted(deduped)]


def gather_companies(symbols: list[str], exchange: str, data_root: str | Path) -> CompaniesPriceData:
    """
    Build a company list for one exchange.

    The symbol ``all`` expands to every CSV file under
    ``<data_root>/<exchange>/csv`` and ends processing of the list.
    """
    companies = CompaniesPriceData()
    for symbol in symbols:
        if symbol == 'all':
            companies.flush()
            csv_dir = Path(data_root) / exchange / 'csv'
            for path in sorted(csv_dir.glob('*.csv')):
                companies.push(CompanyPriceData(symbol=path.stem, exchange=exchange))
            break
        companies.push(CompanyPriceData(symbol=symbol, exchange=exchange))
    return companies
