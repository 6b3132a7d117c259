"""Tests for the command-line entry point and logging setup."""

import json
import logging
import math
from datetime import date

from stockpredictor.__main__ import main
from stockpredictor.log_config import StructuredFormatter, configure_logger


def _write_history(path, days):
    lines = ['Date,Low,Open,Volume,High,Close,Adjusted Close']
    for i, day in enumerate(days):
        close = 100.0 + 10.0 * math.sin(0.4 * i)
        lines.append(f'{day:%d-%m-%Y},{close},{close},1000,{close},{close},{close}')
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text('\n'.join(lines) + '\n')


def test_run_trains_and_validates(tmp_path, weekdays):
    data_root = tmp_path / 'data'
    _write_history(data_root / 'nyse' / 'csv' / 'ACME.csv', weekdays(date(2023, 1, 2), 80) + weekdays(date(2024, 1, 1), 60))
    config_path = tmp_path / 'config.json'
    config_path.write_text(json.dumps({
        'dates': {
            'train_start': '2023-01-01',
            'train_end': '2023-12-31',
            'valid_start': '2024-01-01',
            'valid_end': '2024-03-01',
        },
        'nyse': ['ACME'],
    }))

    exit_code = main([
        'run',
        '--config', str(config_path),
        '--data-root', str(data_root),
        '--artifact-dir', str(tmp_path / 'artifacts'),
        '--device', 'cpu',
        '--epochs', '1',
        '--output-dir', str(tmp_path / 'out'),
        '--log-level', 'WARNING',
    ])

    assert exit_code == 0
    assert (tmp_path / 'artifacts' / 'model.pt').exists()
    assert (tmp_path / 'out' / 'balance_history.csv').exists()


def test_missing_config_fails_cleanly(tmp_path):
    assert main(['validate', '--config', str(tmp_path / 'missing.json'), '--log-level', 'CRITICAL']) == 1


class TestLogging:
    def test_structured_formatter_includes_extra(self):
        record = logging.LogRecord('stockpredictor.test', logging.INFO, __file__, 1, 'day %s', ('2024-02-14',), None)
        record.company = 'nyse:ACME'

        payload = json.loads(StructuredFormatter().format(record))

        assert payload['message'] == 'day 2024-02-14'
        assert payload['level'] == 'INFO'
        assert payload['company'] == 'nyse:ACME'

    def test_configure_logger_with_file(self, tmp_path):
        log_file = tmp_path / 'logs' / 'run.log'
        logger = configure_logger('stockpredictor.test_cli', 'DEBUG', log_file=log_file)

        logger.debug('hello')
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert 'hello' in log_file.read_text()

        for handler in logger.handlers:
            handler.close()
