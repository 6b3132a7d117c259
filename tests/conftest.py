"""Shared fixtures: synthetic weekday price histories."""

from datetime import date, timedelta

import pytest

from stockpredictor.data import CompaniesPriceData, CompanyPriceData, PriceDataItem


def _weekdays(start: date, count: int) -> list[date]:
    days = []
    current = start
    while len(days) < count:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days


def _company(symbol, closes, start=date(2024, 1, 1), exchange='nyse'):
    rows = [
        PriceDataItem(
            date=day,
            open=close,
            high=close,
            low=close,
            close=close,
            volume=1000,
            adjusted_close=close,
        )
        for day, close in zip(_weekdays(start, len(closes)), closes)
    ]
    return CompanyPriceData(symbol=symbol, exchange=exchange, price_data=rows)


@pytest.fixture
def weekdays():
    """Factory: the first ``count`` weekdays from ``start``."""
    return _weekdays


@pytest.fixture
def make_company():
    """Factory: a company whose rows fall on consecutive weekdays."""
    return _company


@pytest.fixture
def trending_universe():
    """Three rising companies with 40 weekday rows from Monday 2024-01-01."""
    return CompaniesPriceData([
        _company('AAA', [100.0 + i for i in range(40)]),
        _company('BBB', [50.0 + 2 * i for i in range(40)]),
        _company('CCC', [200.0 + 0.5 * i for i in range(40)]),
    ])
