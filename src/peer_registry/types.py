"""
Pydantic models for peer descriptors.

Wire shape of a stored descriptor:

    {
        "peerId": "p1",
        "address": {"ip": "10.0.0.5", "port": "4001", "protocol": "tcp"},
        "values": {"metric": {"current": 40, "softLimit": 60, "hardLimit": 90}},
        "raw": "..."
    }

Every field is optional when decoding so that partially written or legacy
records still parse; required-ness is enforced by strict validation in
peer_registry.descriptor, not by the models.

Records written by the previous schema carry a bare limits object instead of
the metrics map:

    {"limits": {"soft": 40, "hard": 90}}
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Metric name recognized by the current schema
METRIC_KEY = "metric"


class Address(BaseModel):
    """Network address a peer can be reached at."""

    ip: str = ""
    port: str | None = None
    protocol: str | None = None


class Metric(BaseModel):
    """
    A resource metric with its limits.

    All three values live in [0, 100] with soft_limit <= hard_limit and
    current <= hard_limit once normalized.
    """

    # NaN and Infinity tokens are rejected when decoding, as standard JSON does
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    current: float = 0.0
    soft_limit: float = Field(default=0.0, alias="softLimit")
    hard_limit: float = Field(default=0.0, alias="hardLimit")


class Descriptor(BaseModel):
    """Registered peer/server descriptor. One per peer, keyed by peer_id."""

    model_config = ConfigDict(populate_by_name=True)

    peer_id: str = Field(default="", alias="peerId")
    address: Address = Field(default_factory=Address)
    metrics: dict[str, Metric] = Field(default_factory=dict, alias="values")
    raw: str = ""

    @field_validator("peer_id", "raw", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("address", mode="before")
    @classmethod
    def _null_address(cls, value: Any) -> Any:
        return Address() if value is None else value

    @field_validator("metrics", mode="before")
    @classmethod
    def _null_metrics(cls, value: Any) -> Any:
        return {} if value is None else value


class LegacyLimits(BaseModel):
    """Single soft/hard limit pair used before named metrics existed."""

    model_config = ConfigDict(allow_inf_nan=False)

    soft: float = 0.0
    hard: float = 0.0


class LegacyRecord(BaseModel):
    """Only the part of a stored record the migrator looks at."""

    limits: LegacyLimits | None = None


class PeerIdProbe(BaseModel):
    """
    Only the peerId field of a stored record.

    Used by full-scan lookups and legacy cleanup so that records with an
    unrelated or broken shape elsewhere still match on their identifier.
    """

    model_config = ConfigDict(populate_by_name=True)

    peer_id: str = Field(default="", alias="peerId")

    @field_validator("peer_id", mode="before")
    @classmethod
    def _null_peer_id(cls, value: Any) -> Any:
        return "" if value is None else value


class IdentifierBody(BaseModel):
    """Request body fields that may carry the target peer identifier."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    peer_id: str = Field(default="", alias="peerId")

    @field_validator("id", "peer_id", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value
