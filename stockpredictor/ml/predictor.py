"""
Predictor contract used by the simulation engine.

A predictor maps a normalized window (32 values in [0, 1]) to a predicted
normalized next value. It must be deterministic for a fixed checkpoint and
device; the engine neither retries nor caches calls.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

import numpy as np
import torch

from .config import TrainingConfig
from .networks import BaseNetwork, LSTMPredictorNetwork

logger = logging.getLogger(__name__)

CONFIG_FILE = 'config.json'
MODEL_FILE = 'model.pt'


class Predictor(ABC):
    @abstractmethod
    def predict(self, values: np.ndarray) -> float:
        """Predicted normalized next value for one window."""

    def predict_batch(self, batch: Sequence[np.ndarray]) -> list[float]:
        """Predictions for several windows, in input order."""
        return [self.predict(values) for values in batch]


class TorchPredictor(Predictor):
    """Runs a trained network in eval mode without gradients."""

    def __init__(self, network: BaseNetwork, device: torch.device | None = None):
        self.device = device or torch.device('cpu')
        self.network = network.to(self.device)
        self.network.eval()

    def predict(self, values: np.ndarray) -> float:
        return self.predict_batch([values])[0]

    def predict_batch(self, batch: Sequence[np.ndarray]) -> list[float]:
        if not batch:
            return []
        stacked = np.stack([np.asarray(values, dtype=np.float32) for values in batch])
        with torch.no_grad():
            output = self.network(torch.from_numpy(stacked).to(self.device))
        return [float(value) for value in output.cpu().tolist()]

    @classmethod
    def from_artifacts(cls, artifact_dir: Path | str, device: torch.device | None = None) -> TorchPredictor:
        """Rebuild the network from ``config.json`` and load ``model.pt``."""
        artifact_dir = Path(artifact_dir)
        config = TrainingConfig.load(artifact_dir / CONFIG_FILE)
        network = build_network(config)
        network.load(artifact_dir / MODEL_FILE, map_location=device or 'cpu')
        logger.info(f'Loaded predictor from {artifact_dir}', extra={'network': network.get_config()})
        return cls(network, device)


def build_network(config: TrainingConfig) -> LSTMPredictorNetwork:
    model = config.model
    return LSTMPredictorNetwork(
        window_size=model.window_size,
        hidden_size=model.hidden_size,
        num_layers=model.num_layers,
        dropout=model.dropout,
    )
