"""
Configuration dataclasses for data loading and the backtest strategy.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from .data import CompaniesPriceData, gather_companies

logger = logging.getLogger(__name__)

EXCHANGES = ('forbes2000', 'nasdaq', 'nyse', 'sp500')


@dataclass
class StrategyConfig:
    """Backtest allocation settings."""

    hold_for: int = 1  # calendar days a position is kept
    start_balance: float = 10000.0
    purchase_threshold: float = 0.2  # buy only when normalized delta is below this
    max_workers: int = 1  # per-day window construction fan-out

    def validate(self) -> None:
        if self.hold_for < 0:
            raise ValueError(f'hold_for cannot be negative, got {self.hold_for}')
        if self.start_balance <= 0:
            raise ValueError(f'start_balance must be positive, got {self.start_balance}')
        if self.max_workers < 1:
            raise ValueError(f'max_workers must be at least 1, got {self.max_workers}')


@dataclass
class DataConfig:
    """Date ranges and company universe for training and validation."""

    train_start: date
    train_end: date
    validate_start: date
    validate_end: date
    symbols: dict[str, list[str]] = field(default_factory=dict)
    data_root: str = 'stock_market_data'

    def validate(self) -> None:
        if self.train_start >= self.train_end:
            raise ValueError('train_start must be before train_end')
        if self.validate_start >= self.validate_end:
            raise ValueError('valid_start must be before valid_end')
        unknown = set(self.symbols) - set(EXCHANGES)
        if unknown:
            raise ValueError(f'Unknown exchanges in config: {sorted(unknown)}')

    @classmethod
    def from_dict(cls, payload: dict, data_root: str = 'stock_market_data') -> DataConfig:
        try:
            dates = payload['dates']
            config = cls(
                train_start=date.fromisoformat(dates['train_start']),
                train_end=date.fromisoformat(dates['train_end']),
                validate_start=date.fromisoformat(dates['valid_start']),
                validate_end=date.fromisoformat(dates['valid_end']),
                symbols={exchange: list(payload.get(exchange, [])) for exchange in EXCHANGES},
                data_root=data_root,
            )
        except KeyError as exc:
            raise ValueError(f'Missing configuration key: {exc}') from exc
        config.validate()
        return config

    @classmethod
    def load(cls, path: str | Path = 'config.json', data_root: str = 'stock_market_data') -> DataConfig:
        with open(path, encoding='utf-8') as handle:
            payload = json.load(handle)
        return cls.from_dict(payload, data_root=data_root)

    def companies(self) -> CompaniesPriceData:
        """Company list across all configured exchanges, without price rows."""
        companies = CompaniesPriceData()
        for exchange in EXCHANGES:
            companies.extend(gather_companies(self.symbols.get(exchange, []), exchange, self.data_root))
        return companies

    def train_companies(self) -> CompaniesPriceData:
        logger.info('Fetching training price data...')
        companies = self.companies()
        companies.refresh_data(self.train_start, self.train_end, self.data_root)
        return companies

    def validate_companies(self) -> CompaniesPriceData:
        logger.info('Fetching validation price data...')
        companies = self.companies()
        companies.refresh_data(self.validate_start, self.validate_end, self.data_root)
        return companies
