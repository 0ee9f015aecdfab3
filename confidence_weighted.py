"""Confidence-weighted (CW) step size and per-feature update.

Each weight carries a mean and a variance. Given the margin m of an
example and its variance v, the step size is

    b     = 1 + 2*phi*m
    gamma = (-b + sqrt(b^2 - 8*phi*(m - phi*v))) / (4*phi*v)

and the two labels involved move in opposite directions while both
covariances shrink. Arithmetic is single precision throughout.

    [1] Dredze, Crammer, Pereira. "Confidence-weighted linear classification", ICML 2008.
    [2] Crammer, Dredze, Kulesza. "Multi-class confidence weighted algorithms", EMNLP 2009.
"""
from __future__ import annotations

import logging
from typing import Hashable, Iterable, Optional

import numpy as np
from scipy.stats import norm

from feature_value import InvalidArgumentError, parse_features
from weight_store import DEFAULT_WEIGHT, LabelRegistry, WeightValue

logger = logging.getLogger(__name__)

DEFAULT_PHI = 1.0
PROBIT_RANGE = 5.0
_F = np.float32
_MIN_COVARIANCE = np.finfo(np.float32).tiny


def probit(p: float, range_: float = PROBIT_RANGE) -> float:
    """Inverse standard normal CDF clipped to [-range_, range_]."""
    if range_ <= 0:
        raise InvalidArgumentError(f"range must be positive: {range_}")
    if p == 0:
        return -range_
    if p == 1:
        return range_
    v = float(norm.ppf(p))
    return max(-range_, min(range_, v))


def resolve_phi(phi: Optional[float] = None, eta: Optional[float] = None) -> float:
    """An explicit phi wins; otherwise phi = probit(eta); otherwise 1.0."""
    if phi is not None:
        phi = float(phi)
        if not phi > 0:
            raise InvalidArgumentError(f"Confidence parameter phi must be positive: {phi}")
        return phi
    if eta is not None:
        eta = float(eta)
        if eta <= 0.5 or eta > 1:
            raise InvalidArgumentError(f"Confidence hyperparameter eta must be in range (0.5, 1]: {eta}")
        return float(_F(probit(eta, PROBIT_RANGE)))
    return DEFAULT_PHI


def solve_gamma(m: float, var: float, phi: float) -> float:
    """Closed-form step size; callers only update when the result is > 0.

    Returns 0.0 when 4*phi*var is zero. For var >= 0 the discriminant
    equals (1 - 2*phi*m)^2 + 8*phi^2*var and cannot go negative; a negative
    or NaN one means the variance was corrupted upstream, which is logged
    and also answered with 0.0.
    """
    m, var, phi = _F(m), _F(var), _F(phi)
    gamma_denom = _F(4.0) * phi * var
    if gamma_denom == 0:
        return 0.0

    b = _F(1.0) + _F(2.0) * phi * m
    discriminant = b * b - _F(8.0) * phi * (m - phi * var)
    if not discriminant >= 0:
        logger.warning(
            "degenerate CW step: discriminant=%r (margin=%r, variance=%r, phi=%r); skipping update",
            float(discriminant), float(m), float(var), float(phi),
        )
        return 0.0

    gamma_numer = -b + np.sqrt(discriminant)
    return float(gamma_numer / gamma_denom)


def new_weight(old: Optional[WeightValue], x: float, alpha: float, phi: float,
               positive: bool) -> WeightValue:
    if old is None:
        old = DEFAULT_WEIGHT
    old_w, old_cov = _F(old.weight), _F(old.covariance)
    x, alpha, phi = _F(x), _F(alpha), _F(phi)

    delta_w = alpha * old_cov * x
    new_w = old_w + delta_w if positive else old_w - delta_w
    new_cov = _F(1.0) / (_F(1.0) / old_cov + _F(2.0) * alpha * phi * x * x)
    if not new_cov > 0:
        logger.debug("covariance underflow (old=%r, x=%r, alpha=%r)", float(old_cov), float(x), float(alpha))
        new_cov = _F(_MIN_COVARIANCE)
    return WeightValue(float(new_w), float(new_cov))


def update(features: Iterable, alpha: float, actual_label: Hashable,
           missed_label: Optional[Hashable], registry: LabelRegistry, phi: float) -> None:
    """Move `actual_label` toward the example and `missed_label` away from it.

    Only the two named stores are touched. Labels and tokens are validated
    before anything is written.
    """
    if actual_label is None:
        raise InvalidArgumentError("Actual label must not be None")
    if actual_label == missed_label:
        raise InvalidArgumentError(f"Actual label equals to missed label: {actual_label}")
    features = parse_features(features)

    model2add = registry.get_or_create(actual_label)
    model2sub = registry.get_or_create(missed_label) if missed_label is not None else None

    for fv in features:
        k, v = fv.feature, fv.value
        model2add.set(k, new_weight(model2add.get(k), v, alpha, phi, True))
        if model2sub is not None:
            model2sub.set(k, new_weight(model2sub.get(k), v, alpha, phi, False))
