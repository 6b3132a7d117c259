"""Tests for ranking, selection and sizing."""

from datetime import date

import numpy as np
import pytest

from stockpredictor.backtest.allocation import AllocationPolicy, ScoredCompany
from stockpredictor.backtest.book import Holding
from stockpredictor.data import Company
from stockpredictor.ml.window import WIDTH, NormalizedWindow


def _scored(make_company, symbol, target, prediction):
    window = NormalizedWindow(values=np.linspace(0.0, 1.0, WIDTH), target=target, min=1.0, max=2.0)
    return ScoredCompany(company=make_company(symbol, []), window=window, prediction=prediction)


@pytest.fixture
def policy():
    return AllocationPolicy(start_balance=10000.0, hold_for=1)


class TestRanking:
    def test_score_is_prediction_minus_placeholder(self, make_company):
        assert _scored(make_company, 'A', 1.0, 0.9).score == pytest.approx(-0.1)

    def test_ascending_with_stable_ties(self, policy, make_company):
        items = [
            _scored(make_company, 'A', 1.0, 1.1),
            _scored(make_company, 'B', 1.0, 0.5),
            _scored(make_company, 'C', 1.0, 1.1),
            _scored(make_company, 'D', 1.0, 0.7),
        ]
        ranked = policy.rank(items)
        assert [item.company.symbol for item in ranked] == ['B', 'D', 'A', 'C']

    def test_non_finite_scores_dropped(self, policy, make_company):
        items = [_scored(make_company, 'A', 1.0, float('nan')), _scored(make_company, 'B', 1.0, 0.5)]
        assert [item.company.symbol for item in policy.rank(items)] == ['B']


class TestSelection:
    @pytest.mark.parametrize('ranked_count, expected', [(0, 0), (1, 1), (2, 1), (3, 1), (4, 2), (7, 3)])
    def test_top_half_at_least_one(self, policy, make_company, ranked_count, expected):
        ranked = [_scored(make_company, f'S{i}', 1.0, 0.5) for i in range(ranked_count)]
        assert len(policy.select(ranked)) == expected

    def test_keeps_rank_order(self, policy, make_company):
        ranked = [_scored(make_company, s, 1.0, 0.5) for s in 'ABCD']
        assert [item.company.symbol for item in policy.select(ranked)] == ['A', 'B']


class TestSizing:
    def test_equal_slice_of_start_balance(self, policy):
        assert policy.share_count(current_price=33.0, candidate_count=2) == 151

    def test_non_positive_price(self, policy):
        assert policy.share_count(current_price=0.0, candidate_count=2) == 0

    def test_threshold_is_strict(self, policy):
        assert policy.should_purchase(0.19)
        assert policy.should_purchase(-5.0)
        assert not policy.should_purchase(0.2)

    def test_due_after_calendar_days(self):
        policy = AllocationPolicy(start_balance=1.0, hold_for=3)
        holding = Holding(
            id=0, company=Company('A', 'nyse'), purchase_date=date(2024, 2, 16), purchase_price=1.0, count=1
        )

        assert not policy.is_due(holding, date(2024, 2, 18))
        assert policy.is_due(holding, date(2024, 2, 19))

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            AllocationPolicy(start_balance=0.0, hold_for=1)
        with pytest.raises(ValueError):
            AllocationPolicy(start_balance=1.0, hold_for=-1)
