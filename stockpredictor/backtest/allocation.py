"""
Equal-weight allocation over ranked predictions.

A lower score (predicted normalized value minus the window's last value) is
a better buy signal. The top half of the ranked companies become candidates,
and each candidate is bought only if its score is below the purchase
threshold.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from ..data import CompanyPriceData
from ..ml.window import NormalizedWindow
from .book import Holding

DEFAULT_PURCHASE_THRESHOLD = 0.2


@dataclass(frozen=True, eq=False)
class ScoredCompany:
    company: CompanyPriceData
    window: NormalizedWindow
    prediction: float

    @property
    def score(self) -> float:
        """Normalized delta against the inference placeholder."""
        return self.prediction - self.window.target


class AllocationPolicy:
    """Selection, sizing and exit rules for the daily loop."""

    def __init__(
        self,
        start_balance: float,
        hold_for: int,
        purchase_threshold: float = DEFAULT_PURCHASE_THRESHOLD,
    ):
        if start_balance <= 0:
            raise ValueError(f'start_balance must be positive, got {start_balance}')
        if hold_for < 0:
            raise ValueError(f'hold_for cannot be negative, got {hold_for}')
        self.start_balance = start_balance
        self.hold_for = hold_for
        self.purchase_threshold = purchase_threshold

    def rank(self, scored: Sequence[ScoredCompany]) -> list[ScoredCompany]:
        """Ascending by score; ties keep input order and non-finite scores are dropped."""
        scoreable = [item for item in scored if math.isfinite(item.score)]
        return sorted(scoreable, key=lambda item: item.score)

    def select(self, ranked: Sequence[ScoredCompany]) -> list[ScoredCompany]:
        if not ranked:
            return []
        return list(ranked[: max(1, len(ranked) // 2)])

    def share_count(self, current_price: float, candidate_count: int) -> int:
        """Whole shares worth an equal slice of the starting balance."""
        if current_price <= 0 or candidate_count <= 0:
            return 0
        weight = 1.0 / candidate_count
        return math.floor((self.start_balance * weight) / current_price)

    def should_purchase(self, score: float) -> bool:
        return score < self.purchase_threshold

    def is_due(self, holding: Holding, current_date: date) -> bool:
        return holding.purchase_date + timedelta(days=self.hold_for) <= current_date
