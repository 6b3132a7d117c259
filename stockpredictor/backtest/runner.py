"""
Validation run: load a trained predictor, backtest it and report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import pandas as pd
import torch

from ..config import StrategyConfig
from ..data import CompaniesPriceData
from ..ml.predictor import Predictor, TorchPredictor
from ..performance import PerformanceSummary, summarize
from .allocation import AllocationPolicy
from .engine import BacktestResult, SimulationEngine
from .metrics import (
    CompanyBias,
    bias_matrix,
    compute_company_bias,
    export_balance_history_csv,
    export_bias_csv,
    export_transactions_csv,
    holding_durations,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    result: BacktestResult
    company_bias: list[CompanyBias]
    bias: pd.DataFrame
    holding_durations: list[int]
    summary: PerformanceSummary


def run_backtest(
    predictor: Predictor,
    companies: CompaniesPriceData,
    start_date: date,
    end_date: date,
    strategy: StrategyConfig | None = None,
    output_dir: str | Path | None = None,
) -> ValidationReport:
    """Simulate ``predictor`` over ``[start_date, end_date)`` and build the report."""
    strategy = strategy or StrategyConfig()
    strategy.validate()
    logger.info(f'Validating model with {len(companies)} companies')

    policy = AllocationPolicy(
        start_balance=strategy.start_balance,
        hold_for=strategy.hold_for,
        purchase_threshold=strategy.purchase_threshold,
    )
    engine = SimulationEngine(companies, predictor, policy, start_date, end_date, max_workers=strategy.max_workers)
    result = engine.run()

    company_bias = compute_company_bias(
        [company.company() for company in companies], result.transactions, start_date, end_date
    )
    report = ValidationReport(
        result=result,
        company_bias=company_bias,
        bias=bias_matrix(company_bias, start_date, end_date),
        holding_durations=holding_durations(result.transactions),
        summary=summarize(result.balance_history, strategy.start_balance),
    )

    summary = report.summary
    logger.info(
        f'Backtest finished: days={summary.trading_days} transactions={len(result.transactions)} '
        f'final={summary.final_balance:.2f} return={summary.total_return:.4%} max_drawdown={summary.max_drawdown:.4%}'
    )

    if output_dir is not None:
        output_dir = Path(output_dir)
        export_balance_history_csv(result.balance_history, output_dir / 'balance_history.csv')
        export_bias_csv(report.bias, output_dir / 'company_bias.csv')
        export_transactions_csv(result.transactions, output_dir / 'transactions.csv')
        logger.info(f'Wrote backtest outputs to {output_dir}')

    return report


def validate_model(
    artifact_dir: str | Path,
    companies: CompaniesPriceData,
    start_date: date,
    end_date: date,
    strategy: StrategyConfig | None = None,
    device: torch.device | None = None,
    output_dir: str | Path | None = None,
) -> ValidationReport:
    predictor = TorchPredictor.from_artifacts(artifact_dir, device)
    return run_backtest(predictor, companies, start_date, end_date, strategy, output_dir)
