"""
Fixed-width price windows and min-max normalization.

Training windows pair 32 consecutive closes with the close
``prediction_interval`` rows after the window's end. Inference windows end
strictly before the reference date and carry the window's own last close as
a placeholder target, so they normalize to the same shape as training
samples. The placeholder is never passed to the predictor.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

import numpy as np

from ..data import CompanyPriceData
from ..errors import MalformedWindow, MissingInferenceData

logger = logging.getLogger(__name__)

WIDTH = 32


@dataclass(frozen=True, eq=False)
class Window:
    values: np.ndarray
    target: float

    def __post_init__(self) -> None:
        values = np.array(self.values, dtype=np.float64)
        if values.shape != (WIDTH,):
            raise MalformedWindow(f'Expected data length {WIDTH}, instead found {values.size}')
        values.setflags(write=False)
        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'target', float(self.target))


@dataclass(frozen=True, eq=False)
class NormalizedWindow:
    """Window rescaled to [0, 1] by its own extrema, which are kept for inversion."""

    values: np.ndarray
    target: float
    min: float
    max: float

    def __post_init__(self) -> None:
        if not self.max > self.min:
            raise MalformedWindow(f'Normalized window requires max > min, got min={self.min} max={self.max}')

    def denormalize(self, value: float) -> float:
        return denormalize(value, self.min, self.max)


def normalize(window: Window) -> NormalizedWindow | None:
    """Rescale a window and its target; flat windows yield ``None``."""
    lo = float(window.values.min())
    hi = float(window.values.max())
    if hi - lo == 0.0:
        return None

    span = hi - lo
    values = (window.values - lo) / span
    values.setflags(write=False)
    return NormalizedWindow(values=values, target=(window.target - lo) / span, min=lo, max=hi)


def denormalize(value: float, lo: float, hi: float) -> float:
    return value * (hi - lo) + lo


def iter_company_windows(closes: Sequence[float], prediction_interval: int) -> Iterable[Window]:
    """Slide a stride-1 window over one company's closes."""
    min_len = WIDTH + prediction_interval + 1
    if len(closes) < min_len:
        return
    for i in range(len(closes) - WIDTH - prediction_interval):
        yield Window(values=np.asarray(closes[i : i + WIDTH]), target=closes[i + WIDTH + prediction_interval])


def build_training_windows(companies: Iterable[CompanyPriceData], prediction_interval: int) -> list[Window]:
    """
    Raw training windows for every company with enough history.

    Each company's windows stay in chronological order; companies are
    concatenated in input order.
    """
    if prediction_interval < 0:
        raise ValueError(f'prediction_interval cannot be negative, got {prediction_interval}')

    windows: list[Window] = []
    for company in companies:
        windows.extend(iter_company_windows(company.closes(), prediction_interval))
    return windows


def build_training_samples(
    companies: Iterable[CompanyPriceData], prediction_interval: int
) -> list[NormalizedWindow]:
    """Normalized training samples; flat windows are dropped."""
    samples: list[NormalizedWindow] = []
    dropped = 0
    for window in build_training_windows(companies, prediction_interval):
        sample = normalize(window)
        if sample is None:
            dropped += 1
            continue
        samples.append(sample)

    if dropped:
        logger.debug(f'Dropped {dropped} flat windows while building training samples')
    return samples


def build_inference_window(company: CompanyPriceData, reference_date: date, width: int = WIDTH) -> Window | None:
    """
    Window of the ``width`` closes strictly before ``reference_date``.

    Returns ``None`` when the company has no row on that date, too little
    history before it, or no row after it.
    """
    rows = company.last_n_days(reference_date, width)
    if rows is None:
        return None

    closes = [row.close for row in rows]
    # Placeholder target: keeps the normalized shape identical to training.
    return Window(values=np.asarray(closes), target=closes[-1])


def train_validation_split(
    samples: Sequence[NormalizedWindow], split_val: float = 0.9
) -> tuple[list[NormalizedWindow], list[NormalizedWindow]]:
    """Positional split: the first ``split_val`` fraction trains, the rest validates."""
    if not 0.0 <= split_val <= 1.0:
        raise ValueError(f'split_val must be in [0, 1], got {split_val}')
    split = int(len(samples) * split_val)
    return list(samples[:split]), list(samples[split:])


def require_inference_window(company: CompanyPriceData, reference_date: date, width: int = WIDTH) -> Window:
    """
    Like ``build_inference_window`` but raises when no window exists.

    Raises:
        MissingInferenceData: If the company cannot be scored on ``reference_date``
    """
    window = build_inference_window(company, reference_date, width)
    if window is None:
        raise MissingInferenceData(f'No inference window for {company.company()} on {reference_date.isoformat()}')
    return window
