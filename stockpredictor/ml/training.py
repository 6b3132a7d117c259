"""
Training loop for the LSTM price predictor.

Samples from all companies are concatenated in company order and split
positionally into training and validation subsets. Only the training loader
shuffles, so the split boundary is never crossed.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim
from torch.utils.data import DataLoader, Dataset

from ..data import CompanyPriceData
from .config import EarlyStopping, TrainingConfig
from .predictor import CONFIG_FILE, MODEL_FILE, build_network
from .window import NormalizedWindow, build_training_samples, train_validation_split

logger = logging.getLogger(__name__)


class PriceWindowDataset(Dataset):
    """In-memory dataset of ``(values, target)`` float32 tensors."""

    def __init__(self, samples: Sequence[NormalizedWindow]):
        if samples:
            self.data = torch.from_numpy(np.stack([s.values for s in samples]).astype(np.float32))
            self.targets = torch.tensor([s.target for s in samples], dtype=torch.float32)
        else:
            self.data = torch.empty((0, 0), dtype=torch.float32)
            self.targets = torch.empty((0,), dtype=torch.float32)

    def __len__(self) -> int:
        return len(self.targets)

    def __getitem__(self, idx: int) -> tuple[torch.Tensor, torch.Tensor]:
        return self.data[idx], self.targets[idx]


@dataclass
class TrainingResult:
    model_path: str
    train_samples: int
    valid_samples: int
    train_losses: list[float] = field(default_factory=list)
    valid_losses: list[float] = field(default_factory=list)
    stopped_early: bool = False


def create_artifact_dir(artifact_dir: Path) -> None:
    if artifact_dir.exists():
        shutil.rmtree(artifact_dir)
    artifact_dir.mkdir(parents=True, exist_ok=True)


def _run_epoch(
    network: nn.Module,
    loader: DataLoader,
    loss_fn: nn.Module,
    device: torch.device,
    optimizer: optim.Optimizer | None = None,
) -> float:
    training = optimizer is not None
    network.train(training)
    total = 0.0
    count = 0

    with torch.set_grad_enabled(training):
        for data, targets in loader:
            data = data.to(device)
            targets = targets.to(device)
            output = network(data)
            loss = loss_fn(output, targets)

            if optimizer is not None:
                optimizer.zero_grad()
                loss.backward()
                optimizer.step()

            total += float(loss.item()) * len(targets)
            count += len(targets)

    return total / count if count else float('nan')


def train(
    artifact_dir: str | Path,
    config: TrainingConfig,
    companies: Iterable[CompanyPriceData],
    device: torch.device | None = None,
) -> TrainingResult:
    """
    Train a predictor and write ``config.json`` and ``model.pt`` to ``artifact_dir``.

    Raises:
        ValueError: If the configuration is invalid or no training samples are produced
    """
    config.validate()
    device = device or torch.device('cpu')
    artifact_dir = Path(artifact_dir)
    create_artifact_dir(artifact_dir)
    config.save(artifact_dir / CONFIG_FILE)

    torch.manual_seed(config.seed)

    companies = list(companies)
    logger.info(f'Training model with {len(companies)} companies')

    samples = build_training_samples(companies, config.prediction_interval)
    if not samples:
        raise ValueError('No training samples produced. Increase the date range or company list.')

    train_samples, valid_samples = train_validation_split(samples, config.split_val)
    if not train_samples:
        raise ValueError(f'split_val={config.split_val} left no training samples out of {len(samples)}')
    logger.info(f'Built {len(samples)} samples: {len(train_samples)} train, {len(valid_samples)} validation')

    generator = torch.Generator().manual_seed(config.seed)
    train_loader = DataLoader(
        PriceWindowDataset(train_samples),
        batch_size=config.batch_size,
        shuffle=True,
        generator=generator,
        num_workers=config.num_workers,
    )
    valid_loader = DataLoader(
        PriceWindowDataset(valid_samples),
        batch_size=config.batch_size,
        shuffle=False,
        num_workers=config.num_workers,
    )

    network = build_network(config).to(device)
    optimizer = optim.Adam(network.parameters(), lr=config.learning_rate)
    loss_fn = nn.MSELoss(reduction='mean')
    early_stopping = EarlyStopping(config.early_stopping)

    result = TrainingResult(
        model_path=str(artifact_dir / MODEL_FILE),
        train_samples=len(train_samples),
        valid_samples=len(valid_samples),
    )

    for epoch in range(1, config.num_epochs + 1):
        train_loss = _run_epoch(network, train_loader, loss_fn, device, optimizer)
        valid_loss = _run_epoch(network, valid_loader, loss_fn, device) if valid_samples else float('nan')
        result.train_losses.append(train_loss)
        result.valid_losses.append(valid_loss)
        logger.info(
            f'Epoch {epoch}/{config.num_epochs}: train_loss={train_loss:.6f} valid_loss={valid_loss:.6f}',
            extra={'epoch': epoch, 'train_loss': train_loss, 'valid_loss': valid_loss},
        )

        if valid_samples and early_stopping.step(valid_loss, network.state_dict()):
            logger.info(f'Early stopping after epoch {epoch} (best valid_loss={early_stopping.best_loss:.6f})')
            result.stopped_early = True
            break

    if early_stopping.should_restore and early_stopping.best_weights is not None:
        network.load_state_dict(early_stopping.best_weights)

    network.save(result.model_path)
    logger.info(f'Saved trained model to {result.model_path}')
    return result
