"""Tests for data and strategy configuration."""

import json
from datetime import date

import pytest

from stockpredictor.config import DataConfig, StrategyConfig

PAYLOAD = {
    'dates': {
        'train_start': '2020-01-01',
        'train_end': '2022-12-31',
        'valid_start': '2023-01-01',
        'valid_end': '2023-12-31',
    },
    'nasdaq': ['AAPL'],
    'nyse': ['IBM', 'KO'],
}


class TestStrategyConfig:
    def test_defaults(self):
        config = StrategyConfig()
        config.validate()
        assert (config.hold_for, config.start_balance, config.purchase_threshold) == (1, 10000.0, 0.2)

    @pytest.mark.parametrize('overrides', [{'hold_for': -1}, {'start_balance': 0.0}, {'max_workers': 0}])
    def test_invalid(self, overrides):
        with pytest.raises(ValueError):
            StrategyConfig(**overrides).validate()


class TestDataConfig:
    def test_from_dict(self):
        config = DataConfig.from_dict(PAYLOAD, data_root='market')

        assert config.train_start == date(2020, 1, 1)
        assert config.validate_end == date(2023, 12, 31)
        assert config.symbols['nyse'] == ['IBM', 'KO']
        assert config.symbols['sp500'] == []
        assert config.data_root == 'market'

    def test_missing_key(self):
        payload = {'dates': {'train_start': '2020-01-01'}}
        with pytest.raises(ValueError, match='Missing configuration key'):
            DataConfig.from_dict(payload)

    def test_inverted_range(self):
        payload = json.loads(json.dumps(PAYLOAD))
        payload['dates']['valid_end'] = '2022-06-01'
        with pytest.raises(ValueError):
            DataConfig.from_dict(payload)

    def test_companies_follow_exchange_order(self):
        config = DataConfig.from_dict(PAYLOAD)
        assert [str(c.company()) for c in config.companies()] == ['nasdaq:AAPL', 'nyse:IBM', 'nyse:KO']

    def test_load_and_fetch(self, tmp_path):
        config_path = tmp_path / 'config.json'
        config_path.write_text(json.dumps({
            'dates': PAYLOAD['dates'],
            'nyse': ['IBM'],
        }))
        csv_dir = tmp_path / 'data' / 'nyse' / 'csv'
        csv_dir.mkdir(parents=True)
        (csv_dir / 'IBM.csv').write_text(
            'Date,Low,Open,Volume,High,Close,Adjusted Close\n'
            '03-01-2022,1,1,1,1,1.5,1\n'
            '03-01-2023,1,1,1,1,2.5,1\n'
        )

        config = DataConfig.load(config_path, data_root=str(tmp_path / 'data'))

        train = config.train_companies()
        valid = config.validate_companies()
        assert train.companies[0].closes() == [1.5]
        assert valid.companies[0].closes() == [2.5]
