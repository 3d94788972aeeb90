"""Pydantic models for the privacy-preserving metric ledger.

Three groups:
- Submission inputs: Proof, DataSource, MetricSubmission
- Stored state: MetricRecord (latest per category), ContributorInfo
- Derived views: NetworkHealthScore
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


U128_MAX = 2**128 - 1
U32_MAX = 2**32 - 1

# Zero identifier shown in place of the reporter when a projection anonymizes it
ANONYMOUS_REPORTER = "0x" + "00" * 32

U128 = Annotated[int, Field(ge=0, le=U128_MAX)]


# ---------------------------------------------------------------------------
# Closed enumerations
# ---------------------------------------------------------------------------


class MetricCategory(str, Enum):
    """Metric store key. One latest record per category."""

    AVERAGE_BLOCK_TIME = "average_block_time"
    TRANSACTION_VOLUME = "transaction_volume"
    VALIDATOR_UPTIME = "validator_uptime"
    NETWORK_CONGESTION = "network_congestion"
    CHAIN_ACTIVITY = "chain_activity"
    GAS_USAGE = "gas_usage"
    NETWORK_LATENCY = "network_latency"


class PrivacyLevel(str, Enum):
    """Disclosure granularity, from coarsest (MAXIMUM) to exact (MINIMAL)."""

    MAXIMUM = "maximum"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"


class SourceType(str, Enum):
    """Kind of node a measurement was collected from."""

    VALIDATOR_NODE = "validator_node"
    FULL_NODE = "full_node"
    LIGHT_NODE = "light_node"
    PARACHAIN = "parachain"
    RELAY_CHAIN = "relay_chain"
    EXTERNAL_ORACLE = "external_oracle"


class HealthStatus(str, Enum):
    """Band of the overall health score."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Submission inputs
# ---------------------------------------------------------------------------


class Proof(BaseModel):
    """Opaque proof-of-computation. Immutable once stored."""

    model_config = ConfigDict(frozen=True)

    proof_bytes: bytes = b""
    public_inputs: tuple[U128, ...] = Field(
        default=(),
        description="Public inputs; the first element is the claimed metric value",
    )
    verification_key_bytes: bytes = b""
    circuit_id: int = Field(default=0, ge=0, le=U32_MAX)

    @property
    def claimed_value(self) -> int | None:
        return self.public_inputs[0] if self.public_inputs else None


class DataSource(BaseModel):
    """One node that contributed to a measurement."""

    model_config = ConfigDict(frozen=True)

    source_type: SourceType
    source_id: bytes = b""
    timestamp: int = Field(default=0, ge=0)
    reliability_score: int = Field(default=100, ge=0, le=100)


class MetricSubmission(BaseModel):
    """A single item of a batch submission."""

    category: MetricCategory
    value: U128
    proof: Proof
    data_sources: list[DataSource] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Stored state
# ---------------------------------------------------------------------------


class MetricRecord(BaseModel):
    """Latest admitted value for a category.

    privacy_level is the submitting reporter's default at admission time
    and never changes afterwards.
    """

    model_config = ConfigDict(frozen=True)

    value: U128
    timestamp: int = Field(ge=0)
    proof_ref: int = Field(ge=0)
    privacy_level: PrivacyLevel
    data_quality_score: int = Field(ge=0, le=100)
    source_reporter: str


class ContributorInfo(BaseModel):
    """Per-reporter contribution counters."""

    total_contributions: int = 0
    data_quality_average: int = 0
    last_contribution: int = 0
    reputation_score: int = 0
    verification_count: int = 0


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


class NetworkHealthScore(BaseModel):
    """Composite health over the four scored categories.

    Sub-scores are None when their category has no record; absent
    categories are excluded from both means.
    """

    overall_score: int = 0
    block_time_score: int | None = None
    transaction_score: int | None = None
    validator_score: int | None = None
    congestion_score: int | None = None
    data_freshness: int = 0
    last_updated: int = 0
    categories_present: list[MetricCategory] = Field(default_factory=list)
    status: HealthStatus = HealthStatus.UNKNOWN
    warnings: list[str] = Field(default_factory=list)


__all__ = [
    "ANONYMOUS_REPORTER",
    "U128",
    "U128_MAX",
    "U32_MAX",
    "ContributorInfo",
    "DataSource",
    "HealthStatus",
    "MetricCategory",
    "MetricRecord",
    "MetricSubmission",
    "NetworkHealthScore",
    "PrivacyLevel",
    "Proof",
    "SourceType",
]
