"""Online multiclass linear classifiers: perceptron (baseline) and CW (extended).
Both expose the same API:
    train_one(features, label) -> updated: bool
    predict(features) -> label or None
    get_weight(label, feature) -> WeightValue
    flush() -> [(label, feature, weight, covariance), ...]

Usage in driver:
    if args.algorithm == 'perceptron':
        clf = MulticlassPerceptron()
    elif args.algorithm == 'cw':
        clf = MulticlassConfidenceWeighted(phi=args.phi, eta=args.eta)
"""
from __future__ import annotations

import logging
from typing import Hashable, Iterable, List, Optional

import numpy as np

from confidence_weighted import resolve_phi, solve_gamma, update
from feature_value import InvalidArgumentError, parse_features
from margin import MarginEvaluator, predict_label
from weight_store import LabelRegistry, ModelRow, WeightValue

logger = logging.getLogger(__name__)


def _check_label(label) -> None:
    if label is None:
        raise InvalidArgumentError("label must not be None")


class MulticlassPerceptron:
    """Mistake-driven multiclass perceptron.
    On margin <= 0 the true label gains x and the runner-up loses x.
    Covariances are never read or written.
    """
    def __init__(self, registry: Optional[LabelRegistry] = None):
        self.registry = registry if registry is not None else LabelRegistry()
        self.evaluator = MarginEvaluator(use_covariance=False)

    def train_one(self, features: Iterable, label: Hashable) -> bool:
        _check_label(label)
        fvs = parse_features(features)
        margin = self.evaluator.evaluate(fvs, label, self.registry)
        if margin.value > 0.0:
            return False

        model2add = self.registry.get_or_create(label)
        model2sub = None
        if margin.max_incorrect_label is not None:
            model2sub = self.registry.get_or_create(margin.max_incorrect_label)
        for fv in fvs:
            x = np.float32(fv.value)
            old = model2add.get(fv.feature)
            model2add.set(fv.feature, WeightValue(float(np.float32(old.weight) + x), old.covariance))
            if model2sub is not None:
                old = model2sub.get(fv.feature)
                model2sub.set(fv.feature, WeightValue(float(np.float32(old.weight) - x), old.covariance))
        return True

    def predict(self, features: Iterable) -> Optional[Hashable]:
        return predict_label(parse_features(features), self.registry)

    def get_weight(self, label: Hashable, feature: Hashable) -> WeightValue:
        return self.registry.weight(label, feature)

    def flush(self) -> List[ModelRow]:
        return self.registry.flush()


class MulticlassConfidenceWeighted:
    """Multiclass confidence-weighted linear classifier.

    `phi` (or `eta`, mapped through the probit) is resolved once here and
    stays fixed for the lifetime of the classifier. Each example is parsed
    in full, then margin -> step size -> update; nothing is written when
    the step size is <= 0.
    """
    def __init__(
        self,
        *,
        phi: Optional[float] = None,
        eta: Optional[float] = None,
        registry: Optional[LabelRegistry] = None,
    ) -> None:
        self._phi = resolve_phi(phi, eta)
        self.registry = registry if registry is not None else LabelRegistry()
        self.evaluator = MarginEvaluator(use_covariance=True)

    @property
    def phi(self) -> float:
        return self._phi

    def train_one(self, features: Iterable, label: Hashable) -> bool:
        _check_label(label)
        fvs = parse_features(features)
        margin = self.evaluator.evaluate(fvs, label, self.registry)
        gamma = solve_gamma(margin.value, margin.variance, self._phi)

        if gamma > 0.0:  # alpha = max(0, gamma)
            update(fvs, gamma, label, margin.max_incorrect_label, self.registry, self._phi)
            return True
        logger.debug("no update for label %r (margin=%r, variance=%r)", label, margin.value, margin.variance)
        return False

    def predict(self, features: Iterable) -> Optional[Hashable]:
        return predict_label(parse_features(features), self.registry)

    def get_weight(self, label: Hashable, feature: Hashable) -> WeightValue:
        return self.registry.weight(label, feature)

    def flush(self) -> List[ModelRow]:
        return self.registry.flush()
