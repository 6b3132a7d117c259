"""
Windowing, training and inference for the next-close predictor.
"""

from .window import (  # noqa: F401
    WIDTH,
    NormalizedWindow,
    Window,
    build_inference_window,
    build_training_samples,
    build_training_windows,
    denormalize,
    normalize,
    require_inference_window,
    train_validation_split,
)
