"""Per-label sparse weight stores.

Each known label owns a `WeightStore` mapping feature -> (weight, covariance).
Unseen features read as `DEFAULT_WEIGHT` (w=0, cov=1), so every caller
handles missing keys the same way. `LabelRegistry` owns the stores for one
training session and creates them lazily.
"""
from __future__ import annotations

from typing import Dict, Hashable, Iterable, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np

from feature_value import FeatureValue


class WeightValue(NamedTuple):
    weight: float
    covariance: float


DEFAULT_WEIGHT = WeightValue(0.0, 1.0)

# (label, feature, weight, covariance)
ModelRow = Tuple[Hashable, Hashable, float, float]


class WeightStore:
    """Sparse weights of one label. Keys are only ever added."""

    def __init__(self, default: WeightValue = DEFAULT_WEIGHT):
        self.default = default
        self._weights: Dict[Hashable, WeightValue] = {}

    def get(self, key: Hashable) -> WeightValue:
        return self._weights.get(key, self.default)

    def set(self, key: Hashable, value: WeightValue) -> None:
        self._weights[key] = value

    def __contains__(self, key: Hashable) -> bool:
        return key in self._weights

    def __len__(self) -> int:
        return len(self._weights)

    def items(self) -> Iterator[Tuple[Hashable, WeightValue]]:
        return iter(self._weights.items())

    def score(self, features: Iterable[FeatureValue]) -> float:
        s = np.float32(0.0)
        for fv in features:
            s += np.float32(self.get(fv.feature).weight) * np.float32(fv.value)
        return float(s)

    def score_and_variance(self, features: Iterable[FeatureValue]) -> Tuple[float, float]:
        """Dot product with the weights and x^T diag(cov) x in one pass."""
        s = np.float32(0.0)
        var = np.float32(0.0)
        for fv in features:
            w = self.get(fv.feature)
            x = np.float32(fv.value)
            s += np.float32(w.weight) * x
            var += np.float32(w.covariance) * x * x
        return float(s), float(var)


class LabelRegistry:
    """label -> WeightStore for a single-writer training session."""

    def __init__(self):
        self._stores: Dict[Hashable, WeightStore] = {}

    def get(self, label: Hashable) -> Optional[WeightStore]:
        return self._stores.get(label)

    def get_or_create(self, label: Hashable) -> WeightStore:
        store = self._stores.get(label)
        if store is None:
            store = WeightStore()
            self._stores[label] = store
        return store

    def weight(self, label: Hashable, key: Hashable) -> WeightValue:
        store = self._stores.get(label)
        if store is None:
            return DEFAULT_WEIGHT
        return store.get(key)

    def labels(self) -> List[Hashable]:
        return list(self._stores)

    def items(self) -> Iterator[Tuple[Hashable, WeightStore]]:
        return iter(self._stores.items())

    def __contains__(self, label: Hashable) -> bool:
        return label in self._stores

    def __len__(self) -> int:
        return len(self._stores)

    def num_features(self) -> int:
        return sum(len(s) for s in self._stores.values())

    def flush(self) -> List[ModelRow]:
        """Emit every stored weight and tear the session's models down."""
        rows: List[ModelRow] = []
        for label, store in self._stores.items():
            for key, wv in store.items():
                rows.append((label, key, wv.weight, wv.covariance))
        self._stores.clear()
        return rows
