"""
Day-by-day backtest of a price predictor.

Each step builds inference windows for every company, asks the predictor for
the next normalized value, buys the most promising candidates, force-sells
holdings whose hold period has elapsed, records the portfolio value and
advances to the next weekday. Steps are strictly sequential; only window
construction within a day is fanned out.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from threading import Lock

from ..calendar import next_weekday
from ..data import CompaniesPriceData, CompanyPriceData
from ..errors import CalendarStall, InconsistentPriceHistory, MissingInferenceData
from ..ml.predictor import Predictor
from ..ml.window import WIDTH, NormalizedWindow, normalize, require_inference_window
from .allocation import AllocationPolicy, ScoredCompany
from .book import Holding, PortfolioLedger, Transaction

logger = logging.getLogger(__name__)


class EngineState(Enum):
    RUNNING = 'running'
    DONE = 'done'


@dataclass
class BacktestResult:
    """Outputs of a completed simulation."""

    start_date: date
    end_date: date
    start_balance: float
    balance_history: list[tuple[date, float]] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    open_holdings: list[Holding] = field(default_factory=list)

    @property
    def final_balance(self) -> float:
        return self.balance_history[-1][1] if self.balance_history else self.start_balance

    @property
    def simulated_days(self) -> int:
        return len(self.balance_history)


class SimulationEngine:
    """Owns the ledger and allocation policy for one backtest run."""

    def __init__(
        self,
        companies: CompaniesPriceData,
        predictor: Predictor,
        policy: AllocationPolicy,
        start_date: date,
        end_date: date,
        max_workers: int = 1,
    ):
        if max_workers < 1:
            raise ValueError(f'max_workers must be at least 1, got {max_workers}')
        self.companies = companies
        self.predictor = predictor
        self.policy = policy
        self.start_date = start_date
        self.end_date = end_date
        self.date = start_date
        self.max_workers = max_workers
        self.book = PortfolioLedger(policy.start_balance)
        self.balance_history: list[tuple[date, float]] = []
        self._step_lock = Lock()

    @property
    def state(self) -> EngineState:
        return EngineState.RUNNING if self.date < self.end_date else EngineState.DONE

    def run(self) -> BacktestResult:
        """
        Step until the end date (exclusive) and return the collected outputs.

        Raises:
            InconsistentPriceHistory: If a price row the simulation relies on is missing
            CalendarStall: If the date fails to advance
        """
        total_days = (self.end_date - self.start_date).days
        while self.state is EngineState.RUNNING:
            logger.info(f'Days validated: {(self.date - self.start_date).days}/{total_days}')
            self.step_day()

        return BacktestResult(
            start_date=self.start_date,
            end_date=self.end_date,
            start_balance=self.policy.start_balance,
            balance_history=list(self.balance_history),
            transactions=list(self.book.history),
            open_holdings=self.book.open_holdings(),
        )

    def step_day(self) -> None:
        """Advance the simulation by one trading day."""
        if not self._step_lock.acquire(blocking=False):
            raise RuntimeError('step_day is already running on this engine')
        try:
            try:
                self._step()
            except (InconsistentPriceHistory, CalendarStall) as exc:
                company = getattr(exc, 'company', None)
                logger.error(
                    f'Aborting backtest on {self.date}: {exc}',
                    extra={
                        'date': self.date.isoformat(),
                        'company': str(company) if company else None,
                    },
                )
                raise
        finally:
            self._step_lock.release()

    def _step(self) -> None:
        scored = self.score_companies(self.date)
        ranked = self.policy.rank(scored)
        selections = self.policy.select(ranked)

        for selection in selections:
            self._purchase(selection, len(selections))
        self._checked_sell()

        current_value = self.book.value(self.companies, self.date)
        self.balance_history.append((self.date, current_value))

        self.date = next_weekday(self.date)

    def score_companies(self, on: date) -> list[ScoredCompany]:
        """Predictions for every company with a valid window, in company order."""
        windows = self._build_windows(on)
        if not windows:
            return []

        predictions = self.predictor.predict_batch([window.values for _, window in windows])
        if len(predictions) != len(windows):
            raise RuntimeError(f'Predictor returned {len(predictions)} values for {len(windows)} windows')

        return [
            ScoredCompany(company=company, window=window, prediction=float(prediction))
            for (company, window), prediction in zip(windows, predictions)
        ]

    def _build_windows(self, on: date) -> list[tuple[CompanyPriceData, NormalizedWindow]]:
        def build(company: CompanyPriceData) -> NormalizedWindow | None:
            try:
                window = require_inference_window(company, on, WIDTH)
            except MissingInferenceData:
                return None
            return normalize(window)

        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(build, self.companies.companies))
        else:
            results = [build(company) for company in self.companies.companies]

        return [
            (company, window)
            for company, window in zip(self.companies.companies, results)
            if window is not None
        ]

    def _purchase(self, selection: ScoredCompany, candidate_count: int) -> None:
        company = selection.company
        current_price = company.close_on(self.date)
        if current_price is None:
            raise InconsistentPriceHistory('No close on the trading date', company.company(), self.date)

        if not self.policy.should_purchase(selection.score):
            return

        share_count = self.policy.share_count(current_price, candidate_count)
        holding = self.book.open_holding(company.company(), self.date, current_price, share_count)
        self.book.purchase(holding, current_price, self.date)

    def _checked_sell(self) -> None:
        for holding in self.book.open_holdings():
            if not self.policy.is_due(holding, self.date):
                continue

            history = self.companies.find(holding.company)
            if history is None:
                raise InconsistentPriceHistory('No price history for held company', holding.company, self.date)

            # Sell at the last close strictly before today.
            idx = history.first_index_on_or_after(self.date)
            prev_idx = (idx if idx is not None else len(history.price_data)) - 1
            if prev_idx < 0:
                raise InconsistentPriceHistory('No price row before sale date', holding.company, self.date)

            row = history.price_data[prev_idx]
            self.book.sell(holding, row.close, row.date)
