"""Neural network architectures for next-close prediction."""

from .base import BaseNetwork
from .lstm import LSTMPredictorNetwork

__all__ = [
    'BaseNetwork',
    'LSTMPredictorNetwork',
]
