"""Base class for price predictor networks."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import torch
import torch.nn as nn


class BaseNetwork(nn.Module, ABC):
    """Abstract base for networks mapping a normalized window to one value.

    Subclasses implement ``forward`` taking ``(batch, window_size)`` and
    returning ``(batch,)``.
    """

    def __init__(self, window_size: int):
        super().__init__()
        self.window_size = window_size

    @abstractmethod
    def forward(self, windows: torch.Tensor) -> torch.Tensor:
        """Predict the next normalized value for each window in the batch."""
        ...

    def save(self, path: Path | str) -> None:
        """Save weights plus the metadata needed to validate a later load."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        checkpoint = {
            'state_dict': self.state_dict(),
            'window_size': self.window_size,
            'class_name': self.__class__.__name__,
        }
        torch.save(checkpoint, path)

    def load(self, path: Path | str, map_location: torch.device | str | None = None, strict: bool = True) -> None:
        """Load weights from a checkpoint written by ``save``.

        Raises:
            FileNotFoundError: If the checkpoint does not exist
            ValueError: If the checkpoint was written for a different network
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f'Checkpoint not found: {path}')

        checkpoint = torch.load(path, map_location=map_location, weights_only=False)

        if checkpoint.get('class_name') != self.__class__.__name__:
            raise ValueError(
                f'Checkpoint is for {checkpoint.get("class_name")}, cannot load into {self.__class__.__name__}'
            )
        if checkpoint.get('window_size') != self.window_size:
            raise ValueError(
                f'Window size mismatch: checkpoint has {checkpoint.get("window_size")}, '
                f'model expects {self.window_size}'
            )

        self.load_state_dict(checkpoint['state_dict'], strict=strict)

    def count_parameters(self) -> int:
        return sum(p.numel() for p in self.parameters() if p.requires_grad)

    def get_config(self) -> dict[str, Any]:
        return {
            'class_name': self.__class__.__name__,
            'window_size': self.window_size,
            'trainable_parameters': self.count_parameters(),
        }
