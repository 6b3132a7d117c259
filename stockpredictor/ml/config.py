"""Model and training configuration dataclasses."""

import copy
import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import torch

from .window import WIDTH


@dataclass
class ModelConfig:
    """Shape of the LSTM price predictor."""

    window_size: int = WIDTH
    hidden_size: int = 64
    num_layers: int = 1
    dropout: float = 0.0

    def validate(self) -> None:
        if self.window_size != WIDTH:
            raise ValueError(f'window_size must be {WIDTH}, got {self.window_size}')
        if self.hidden_size <= 0:
            raise ValueError(f'hidden_size must be positive, got {self.hidden_size}')
        if self.num_layers <= 0:
            raise ValueError(f'num_layers must be positive, got {self.num_layers}')
        if not 0.0 <= self.dropout < 1.0:
            raise ValueError(f'dropout must be in [0, 1), got {self.dropout}')


@dataclass
class EarlyStoppingConfig:
    """Stop training once validation loss stops improving.

    Reference: Prechelt (1998) "Early Stopping - But When?"
    """

    enable: bool = False
    patience: int = 3  # Epochs without improvement before stopping
    min_delta: float = 1e-6  # Minimum improvement to count as progress
    restore_best: bool = True  # Restore best weights when stopping

    def validate(self) -> None:
        if self.patience <= 0:
            raise ValueError(f'patience must be positive, got {self.patience}')
        if self.min_delta < 0:
            raise ValueError(f'min_delta must be non-negative, got {self.min_delta}')


@dataclass
class TrainingConfig:
    """Training hyperparameters, persisted next to the checkpoint."""

    model: ModelConfig = field(default_factory=ModelConfig)
    learning_rate: float = 1e-4
    num_epochs: int = 10
    batch_size: int = 64
    num_workers: int = 0
    seed: int = 42
    split_val: float = 0.9
    prediction_interval: int = 1  # rows ahead of the window end to predict
    early_stopping: EarlyStoppingConfig = field(default_factory=EarlyStoppingConfig)

    def validate(self) -> None:
        self.model.validate()
        self.early_stopping.validate()
        if self.learning_rate <= 0:
            raise ValueError(f'learning_rate must be positive, got {self.learning_rate}')
        if self.num_epochs <= 0:
            raise ValueError(f'num_epochs must be positive, got {self.num_epochs}')
        if self.batch_size <= 0:
            raise ValueError(f'batch_size must be positive, got {self.batch_size}')
        if self.num_workers < 0:
            raise ValueError(f'num_workers cannot be negative, got {self.num_workers}')
        if not 0.0 < self.split_val <= 1.0:
            raise ValueError(f'split_val must be in (0, 1], got {self.split_val}')
        if self.prediction_interval < 0:
            raise ValueError(f'prediction_interval cannot be negative, got {self.prediction_interval}')

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> 'TrainingConfig':
        data = dict(payload)
        model = ModelConfig(**data.pop('model', {}))
        early_stopping = EarlyStoppingConfig(**data.pop('early_stopping', {}))
        return cls(model=model, early_stopping=early_stopping, **data)

    def save(self, path: Path | str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open('w', encoding='utf-8') as handle:
            json.dump(self.to_dict(), handle, indent=2)

    @classmethod
    def load(cls, path: Path | str) -> 'TrainingConfig':
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f'Training config not found: {path}')
        with path.open(encoding='utf-8') as handle:
            return cls.from_dict(json.load(handle))


class EarlyStopping:
    """Early stopping tracker over per-epoch validation loss.

    Usage:
        early_stopping = EarlyStopping(config)
        for epoch in range(num_epochs):
            valid_loss = run_epoch()
            if early_stopping.step(valid_loss, model.state_dict()):
                break
        if early_stopping.should_restore:
            model.load_state_dict(early_stopping.best_weights)
    """

    def __init__(self, config: EarlyStoppingConfig):
        self.config = config
        self.best_loss: float = float('inf')
        self.best_weights: dict[str, Any] | None = None
        self.counter: int = 0
        self.stopped: bool = False

    def step(self, loss: float, weights: dict | None = None) -> bool:
        """Record one validation loss; returns True when training should stop."""
        if not self.config.enable:
            return False

        if self.stopped:
            return True

        if loss < self.best_loss - self.config.min_delta:
            self.best_loss = loss
            self.counter = 0
            if weights is not None and self.config.restore_best:
                self.best_weights = {
                    k: v.detach().clone() if isinstance(v, torch.Tensor) else copy.deepcopy(v)
                    for k, v in weights.items()
                }
        else:
            self.counter += 1

        if self.counter >= self.config.patience:
            self.stopped = True

        return self.stopped

    @property
    def should_restore(self) -> bool:
        return self.stopped and self.config.restore_best and self.best_weights is not None
