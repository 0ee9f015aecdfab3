"""Multiclass margin of one example against every known label."""
from __future__ import annotations

from typing import Hashable, List, NamedTuple, Optional

import numpy as np

from feature_value import FeatureValue
from weight_store import DEFAULT_WEIGHT, LabelRegistry, WeightStore


# read-only stand-in for a label that has no store yet
_DEFAULT_STORE = WeightStore(DEFAULT_WEIGHT)


class Margin(NamedTuple):
    value: float
    variance: float
    max_incorrect_label: Optional[Hashable]


class MarginEvaluator:
    """Scores the true label against the best-scoring other label.

    margin   = score(true) - score(best other)
    variance = sum_i x_i^2 * (cov(true, i) + cov(best other, i))

    With `use_covariance=False` the variance is left at 0 (plain linear
    models never read it). A true label without a store scores with the
    default weights. On an empty registry both the true label and its
    eventual competitor are unseen, so the variance is 2 * sum_i x_i^2.
    """

    def __init__(self, use_covariance: bool = True):
        self.use_covariance = use_covariance

    def _score(self, store: Optional[WeightStore], features: List[FeatureValue]):
        if store is None:
            store = _DEFAULT_STORE
        if self.use_covariance:
            return store.score_and_variance(features)
        return store.score(features), 0.0

    def evaluate(self, features: List[FeatureValue], actual_label: Hashable,
                 registry: LabelRegistry) -> Margin:
        correct_score, correct_var = self._score(registry.get(actual_label), features)
        if len(registry) == 0:
            return Margin(correct_score, float(np.float32(2.0) * np.float32(correct_var)), None)

        max_label = None
        max_score = 0.0
        max_var = 0.0
        for label, store in registry.items():
            if label == actual_label:
                continue
            score, var = self._score(store, features)
            if max_label is None or score > max_score:
                max_label, max_score, max_var = label, score, var

        value = np.float32(correct_score) - np.float32(max_score)
        variance = np.float32(correct_var) + np.float32(max_var)
        return Margin(float(value), float(variance), max_label)


def predict_label(features: List[FeatureValue], registry: LabelRegistry) -> Optional[Hashable]:
    """Highest-scoring known label; the first one seen wins ties."""
    best_label = None
    best_score = 0.0
    for label, store in registry.items():
        score = store.score(features)
        if best_label is None or score > best_score:
            best_label, best_score = label, score
    return best_label
