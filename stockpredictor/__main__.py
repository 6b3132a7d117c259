"""
Command-line entry point.

Usage:
    python -m stockpredictor train --config config.json
    python -m stockpredictor validate --config config.json --output-dir results
    python -m stockpredictor run --config config.json   # train, then validate
"""

from __future__ import annotations

import argparse
import logging

from .config import DataConfig, StrategyConfig
from .errors import StockPredictorError
from .log_config import configure_logger

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Train and backtest the next-close price predictor.')
    parser.add_argument('command', choices=['train', 'validate', 'run'], help='What to do.')
    parser.add_argument('--config', default='config.json', help='Data configuration JSON (default: config.json).')
    parser.add_argument('--data-root', default='stock_market_data', help='Root of <exchange>/csv/<symbol>.csv files.')
    parser.add_argument('--artifact-dir', default='tmp/stock_predictor', help='Model checkpoint directory.')
    parser.add_argument('--device', default='auto', choices=['auto', 'cpu', 'cuda', 'mps'], help='Torch device.')
    parser.add_argument('--epochs', type=int, default=10, help='Training epochs (default: 10).')
    parser.add_argument('--hold-for', type=int, default=1, help='Days each purchase is held (default: 1).')
    parser.add_argument('--start-balance', type=float, default=10000.0, help='Starting capital (default: 10000).')
    parser.add_argument('--workers', type=int, default=1, help='Threads for per-day window construction.')
    parser.add_argument('--output-dir', default=None, help='Write balance history, bias and transactions CSVs here.')
    parser.add_argument('--log-level', default='INFO', help='Log level (default: INFO).')
    parser.add_argument('--log-file', default=None, help='Also write logs to this file.')
    parser.add_argument('--structured-logs', action='store_true', help='Emit JSON log lines.')
    return parser


class CLIArgs(argparse.Namespace):
    command: str
    config: str
    data_root: str
    artifact_dir: str
    device: str
    epochs: int
    hold_for: int
    start_balance: float
    workers: int
    output_dir: str | None
    log_level: str
    log_file: str | None
    structured_logs: bool


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv, namespace=CLIArgs())
    configure_logger('stockpredictor', args.log_level, structured=args.structured_logs, log_file=args.log_file)

    from .backtest.runner import validate_model
    from .ml.config import TrainingConfig
    from .ml.device import get_device
    from .ml.training import train

    try:
        data_config = DataConfig.load(args.config, data_root=args.data_root)
        device = get_device(args.device)

        if args.command in ('train', 'run'):
            training_config = TrainingConfig(num_epochs=args.epochs)
            train(args.artifact_dir, training_config, data_config.train_companies(), device)

        if args.command in ('validate', 'run'):
            strategy = StrategyConfig(
                hold_for=args.hold_for,
                start_balance=args.start_balance,
                max_workers=args.workers,
            )
            validate_model(
                args.artifact_dir,
                data_config.validate_companies(),
                data_config.validate_start,
                data_config.validate_end,
                strategy=strategy,
                device=device,
                output_dir=args.output_dir,
            )
    except (StockPredictorError, ValueError, FileNotFoundError) as exc:
        logger.error(f'{args.command} failed: {exc}', exc_info=True)
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
