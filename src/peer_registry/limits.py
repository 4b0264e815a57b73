"""
Numeric policy for metric values.

Two distinct operations:
- Validation is strict: validate_metric() rejects anything outside [0, 100]
  or with softLimit > hardLimit, looking at the raw unclamped fields.
- Normalization is lenient: normalize_metric() repairs the same problems by
  clamping and reordering, and never raises.

All functions are pure.
"""

import math

from .errors import InvalidMetricError, ValidationError
from .types import METRIC_KEY, Metric

METRIC_MIN = 0.0
METRIC_MAX = 100.0


def is_finite(value: float) -> bool:
    """Return True unless value is NaN or infinite."""
    return not (math.isnan(value) or math.isinf(value))


def clamp(value: float) -> float:
    """Map value to the nearest point in [METRIC_MIN, METRIC_MAX].

    Non-finite input maps to METRIC_MIN.
    """
    if not is_finite(value):
        return METRIC_MIN
    if value < METRIC_MIN:
        return METRIC_MIN
    if value > METRIC_MAX:
        return METRIC_MAX
    return value


def validate_metric(metric: Metric, name: str = METRIC_KEY) -> None:
    """
    Strictly validate a metric triple.

    Args:
        metric: Metric to check (not clamped first)
        name: Metric name, used in the error's field path

    Raises:
        InvalidMetricError: If any field is non-finite or outside
            [0, 100], or if softLimit exceeds hardLimit.
    """
    field = f"values.{name}"
    values = (metric.current, metric.soft_limit, metric.hard_limit)
    if not all(is_finite(v) for v in values):
        raise InvalidMetricError(field, f"{field} contains invalid numbers")

    for wire_name, value in (
        ("softLimit", metric.soft_limit),
        ("hardLimit", metric.hard_limit),
        ("current", metric.current),
    ):
        if value < METRIC_MIN or value > METRIC_MAX:
            raise InvalidMetricError(
                f"{field}.{wire_name}",
                f"{field}.{wire_name} must be between {METRIC_MIN:.0f} and {METRIC_MAX:.0f}",
            )

    if metric.soft_limit > metric.hard_limit:
        raise InvalidMetricError(f"{field}.softLimit", f"{field}.softLimit must be <= hardLimit")


def normalize_metric(metric: Metric) -> Metric:
    """Clamp each field, then repair ordering.

    softLimit is pulled down to hardLimit when inverted, and current is
    pulled into [0, hardLimit].
    """
    current = clamp(metric.current)
    soft_limit = clamp(metric.soft_limit)
    hard_limit = clamp(metric.hard_limit)

    if soft_limit > hard_limit:
        soft_limit = hard_limit
    if current > hard_limit:
        current = hard_limit
    if current < METRIC_MIN:
        current = METRIC_MIN

    return Metric(current=current, soft_limit=soft_limit, hard_limit=hard_limit)


def normalize_values(
    values: dict[str, Metric], metric_key: str = METRIC_KEY
) -> tuple[dict[str, Metric], bool]:
    """
    Normalize the recognized metric of a metrics map.

    Other metric names are passed through untouched.

    Returns:
        Tuple of (new metrics map, whether the recognized metric changed)

    Raises:
        ValidationError: If the recognized metric is absent.
    """
    field = f"values.{metric_key}"
    metric = values.get(metric_key) if values else None
    if metric is None:
        raise ValidationError(field, f"{field} is required")

    normalized = normalize_metric(metric)
    changed = (
        metric.current != normalized.current
        or metric.soft_limit != normalized.soft_limit
        or metric.hard_limit != normalized.hard_limit
    )
    if not changed:
        return values, False
    return {**values, metric_key: normalized}, True
