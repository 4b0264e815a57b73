"""Prometheus metrics for the peer registry."""

from prometheus_client import Counter

OPERATIONS = Counter(
    "peer_registry_operations_total",
    "Registry operations performed",
    ["operation", "result"],  # operation: list/register/get/delete
)

RECORDS_REPAIRED = Counter(
    "peer_registry_records_repaired_total",
    "Stored records rewritten after migration or clamping on read",
)

LEGACY_SCANS = Counter(
    "peer_registry_legacy_scans_total",
    "Full-scan lookups after a canonical key miss",
    ["result"],  # "hit" or "miss"
)

LEGACY_RECORDS_REMOVED = Counter(
    "peer_registry_legacy_records_removed_total",
    "Records removed because they duplicated a newly registered peer",
)


def record_operation(operation: str, result: str) -> None:
    """Record the outcome of a registry operation."""
    OPERATIONS.labels(operation=operation, result=result).inc()


def record_repair() -> None:
    """Record a lazy rewrite of a stored record."""
    RECORDS_REPAIRED.inc()


def record_legacy_scan(hit: bool) -> None:
    """Record a full-scan lookup."""
    LEGACY_SCANS.labels(result="hit" if hit else "miss").inc()


def record_legacy_removed(count: int) -> None:
    """Record records removed by legacy cleanup."""
    if count:
        LEGACY_RECORDS_REMOVED.inc(count)
