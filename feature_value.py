"""Feature tokens for sparse examples.
A token is either "name" (value 1.0) or "name:value". Non-string
features (e.g. integer ids) are taken as-is with value 1.0; they must
be hashable."""
from __future__ import annotations

from typing import Hashable, Iterable, List, NamedTuple, Optional


class InvalidArgumentError(ValueError):
    """Raised on malformed input: bad tokens, labels or hyperparameters."""


class FeatureValue(NamedTuple):
    feature: Hashable
    value: float


def _invalid(token) -> InvalidArgumentError:
    return InvalidArgumentError(f"Invalid feature value representation: {token!r}")


def parse_feature(token) -> Optional[FeatureValue]:
    if token is None:
        return None
    if isinstance(token, tuple):
        if len(token) != 2 or not isinstance(token[0], Hashable):
            raise _invalid(token)
        try:
            value = float(token[1])
        except (TypeError, ValueError) as e:
            raise _invalid(token) from e
        return FeatureValue(token[0], value)
    if not isinstance(token, str):
        if not isinstance(token, Hashable):
            raise _invalid(token)
        return FeatureValue(token, 1.0)

    parts = token.split(":")
    if len(parts) not in (1, 2) or not parts[0]:
        raise _invalid(token)
    if len(parts) == 1:
        return FeatureValue(parts[0], 1.0)
    try:
        value = float(parts[1])
    except ValueError as e:
        raise _invalid(token) from e
    return FeatureValue(parts[0], value)


def parse_features(tokens: Iterable) -> List[FeatureValue]:
    """Parse a whole example up front; None tokens are dropped.

    Any malformed token fails the example before a caller touches its model.
    """
    parsed = []
    for t in tokens:
        fv = parse_feature(t)
        if fv is not None:
            parsed.append(fv)
    return parsed


def format_feature(fv: FeatureValue) -> str:
    """Token form of `fv`. Non-string features come back as strings
    when parsed again (42 -> "42"), so only string features round-trip."""
    if fv.value == 1.0:
        return str(fv.feature)
    return f"{fv.feature}:{fv.value!r}"
