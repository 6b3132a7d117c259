"""
Backtesting of the price predictor.

This package provides:
- Portfolio ledger with clamp-to-affordable purchases
- Equal-weight allocation over ranked predictions
- Day-by-day simulation engine
- Company-by-month purchase attribution and CSV exports
"""

from .allocation import AllocationPolicy, ScoredCompany
from .book import Holding, HoldingIdGenerator, PortfolioLedger, Side, Transaction
from .engine import BacktestResult, EngineState, SimulationEngine
from .metrics import BiasWindow, CompanyBias, bias_matrix, compute_company_bias, holding_durations

__all__ = [
    # Ledger
    'Holding',
    'HoldingIdGenerator',
    'PortfolioLedger',
    'Side',
    'Transaction',
    # Allocation
    'AllocationPolicy',
    'ScoredCompany',
    # Engine
    'BacktestResult',
    'EngineState',
    'SimulationEngine',
    # Metrics
    'BiasWindow',
    'CompanyBias',
    'bias_matrix',
    'compute_company_bias',
    'holding_durations',
]
