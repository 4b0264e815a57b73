"""
Legacy schema migration.

Records written before named metrics existed carry a single limits object:

    {"limits": {"soft": 40, "hard": 90}}

migrate_legacy() turns that into the current metrics map. The legacy schema
had no "current" value, so the soft limit doubles as the initial current.
Detection is per record, so there is no stored schema version or migration
cursor; a record is migrated lazily the first time it is read.
"""

from dataclasses import dataclass, field

import pydantic

from .limits import clamp
from .types import METRIC_KEY, LegacyRecord, Metric


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of a migration attempt.

    ok is False when there was nothing to migrate; that is not an error.
    """

    metrics: dict[str, Metric] = field(default_factory=dict)
    ok: bool = False


def migrate_legacy(data: bytes | str, metric_key: str = METRIC_KEY) -> MigrationResult:
    """
    Build a metrics map from a legacy limits object.

    Args:
        data: Raw stored (or submitted) bytes
        metric_key: Name of the metric slot to populate

    Returns:
        MigrationResult with ok=True and a single-entry metrics map, or
        ok=False if the bytes do not decode or carry no limits object.
    """
    try:
        legacy = LegacyRecord.model_validate_json(data)
    except pydantic.ValidationError:
        return MigrationResult()
    if legacy.limits is None:
        return MigrationResult()

    soft = clamp(legacy.limits.soft)
    hard = clamp(legacy.limits.hard)
    if soft > hard:
        soft = hard

    return MigrationResult(
        metrics={metric_key: Metric(current=soft, soft_limit=soft, hard_limit=hard)},
        ok=True,
    )
