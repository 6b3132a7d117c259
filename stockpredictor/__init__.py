"""
stockpredictor - backtesting a next-close price predictor.

This package provides:
- Leakage-aware 32-day price windows with min-max normalization
- LSTM predictor training on PyTorch
- Day-by-day simulation with equal-weight allocation and fixed hold periods
- Company-by-month purchase attribution
"""

from __future__ import annotations

import importlib
from types import ModuleType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from . import backtest as backtest
    from . import calendar as calendar
    from . import config as config
    from . import data as data
    from . import errors as errors
    from . import log_config as log_config
    from . import ml as ml
    from . import performance as performance

__version__ = '0.1.0'
__all__ = [
    'backtest',
    'calendar',
    'config',
    'data',
    'errors',
    'log_config',
    'ml',
    'performance',
]


def __getattr__(name: str) -> ModuleType:  # pragma: no cover
    """Lazy-load submodules so torch is only imported when needed."""
    if name in __all__:
        module = importlib.import_module(f'{__name__}.{name}')
        globals()[name] = module
        return module
    raise AttributeError(f'module {__name__!r} has no attribute {name!r}')


def __dir__() -> list[str]:  # pragma: no cover
    return sorted(set(list(globals()) + __all__))
