"""Device selection for PyTorch training and inference."""

import logging
from typing import Literal

import torch

logger = logging.getLogger(__name__)

DeviceType = Literal['auto', 'cpu', 'cuda', 'mps']


def _mps_available() -> bool:
    backend = getattr(torch.backends, 'mps', None)
    return bool(backend is not None and backend.is_available())


def get_device(preference: DeviceType | str = 'auto') -> torch.device:
    """Resolve a device preference, falling back to CPU when it is unavailable.

    Raises:
        ValueError: If the preference is not one of auto, cpu, cuda, mps
    """
    preference = preference.lower()
    if preference not in ('auto', 'cpu', 'cuda', 'mps'):
        raise ValueError(f"device must be one of 'auto', 'cpu', 'cuda', 'mps', got {preference!r}")

    if preference == 'cpu':
        return torch.device('cpu')

    if preference in ('auto', 'cuda') and torch.cuda.is_available():
        logger.info(f'Using CUDA device: {torch.cuda.get_device_name(0)}')
        return torch.device('cuda')

    if preference in ('auto', 'mps') and _mps_available():
        logger.info('Using MPS device (Apple Silicon)')
        return torch.device('mps')

    if preference != 'auto':
        logger.warning(f'{preference.upper()} requested but not available, falling back to CPU')
    return torch.device('cpu')
