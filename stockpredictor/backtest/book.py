"""
Portfolio ledger for the daily backtest.

Open holdings and the cash balance are the only mutable state; the
transaction history only grows. Purchases are clamped to what the balance
can afford, so the balance is never driven negative.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from itertools import count
from typing import Protocol

from ..data import Company, CompanyPriceData
from ..errors import InconsistentPriceHistory, InsufficientFunds

logger = logging.getLogger(__name__)


class PriceLookup(Protocol):
    def find(self, company: Company) -> CompanyPriceData | None: ...


@dataclass
class Holding:
    """A position of whole shares in one company."""

    id: int
    company: Company
    purchase_date: date
    purchase_price: float
    count: int
    sale_price: float | None = None

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f'Share count cannot be negative: {self.count}')

    def value(self, current_price: float) -> float:
        return self.count * current_price

    def purchase_value(self) -> float:
        return self.count * self.purchase_price


class Side(Enum):
    BUY = 'buy'
    SELL = 'sell'


@dataclass(frozen=True)
class Transaction:
    """Ledger entry holding a snapshot of the holding at the time of the action."""

    side: Side
    holding: Holding
    date: date


class HoldingIdGenerator:
    """Sequential holding identities, one generator per run."""

    def __init__(self, start: int = 0):
        self._counter = count(start)

    def next_id(self) -> int:
        return next(self._counter)


class PortfolioLedger:
    """Cash balance, open holdings keyed by id, and the transaction history."""

    def __init__(self, balance: float, id_generator: HoldingIdGenerator | None = None):
        if balance < 0:
            raise ValueError(f'Starting balance cannot be negative: {balance}')
        self.balance = float(balance)
        self.holdings: dict[int, Holding] = {}
        self.history: list[Transaction] = []
        self._ids = id_generator or HoldingIdGenerator()

    def open_holding(self, company: Company, purchase_date: date, purchase_price: float, count: int) -> Holding:
        """Create a holding with the next identity; it is not yet purchased."""
        return Holding(
            id=self._ids.next_id(),
            company=company,
            purchase_date=purchase_date,
            purchase_price=purchase_price,
            count=count,
        )

    def purchase(self, holding: Holding, current_price: float, on: date) -> None:
        """
        Buy a holding at ``current_price``.

        Zero-share holdings are ignored. When the balance cannot cover the
        holding, its count is reduced to the affordable quantity and the
        purchase is retried once.
        """
        if holding.count == 0:
            return

        try:
            self._debit(holding, current_price)
        except InsufficientFunds:
            affordable = math.floor(self.balance / current_price) if current_price > 0 else 0
            # float rounding can leave floor(b / p) * p a hair above b
            while affordable > 0 and affordable * current_price > self.balance:
                affordable -= 1
            logger.debug(
                f'Clamping {holding.company} purchase from {holding.count} to {affordable} shares',
                extra={'holding_id': holding.id, 'balance': self.balance},
            )
            holding.count = affordable
            if holding.count == 0:
                return
            self._debit(holding, current_price)

        self.holdings[holding.id] = holding
        self.history.append(Transaction(side=Side.BUY, holding=replace(holding), date=on))
        logger.debug(f'BUY {holding.count} {holding.company} @ {current_price:.4f} on {on}')

    def _debit(self, holding: Holding, current_price: float) -> None:
        cost = holding.value(current_price)
        if self.balance < cost:
            raise InsufficientFunds(f'Cost {cost:.2f} exceeds balance {self.balance:.2f}')
        self.balance -= cost

    def sell(self, holding: Holding, current_price: float, on: date) -> None:
        """Close a holding, crediting ``count * current_price``."""
        holding.sale_price = current_price
        self.balance += holding.value(current_price)
        self.holdings.pop(holding.id, None)
        self.history.append(Transaction(side=Side.SELL, holding=replace(holding), date=on))
        logger.debug(f'SELL {holding.count} {holding.company} @ {current_price:.4f} on {on}')

    def value(self, prices: PriceLookup, as_of: date) -> float:
        """
        Balance plus open holdings marked at the first close on or after ``as_of``.

        When the history ends before ``as_of`` the last close is used.

        Raises:
            InconsistentPriceHistory: If a holding's company is unknown or has
                no usable price for ``as_of``
        """
        total = self.balance
        for holding in self.holdings.values():
            history = prices.find(holding.company)
            if history is None:
                raise InconsistentPriceHistory('No price history for held company', holding.company, as_of)

            idx = history.first_index_on_or_after(as_of)
            if idx is not None:
                total += holding.value(history.price_data[idx].close)
            elif history.last_date is not None and as_of > history.last_date:
                total += holding.value(history.price_data[-1].close)
            else:
                raise InconsistentPriceHistory('No price row covers valuation date', holding.company, as_of)
        return total

    def open_holdings(self) -> list[Holding]:
        """Open holdings in purchase order."""
        return list(self.holdings.values())
