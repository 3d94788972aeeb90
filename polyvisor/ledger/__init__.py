"""Privacy-preserving metric ledger.

Trusted reporters submit network-quality metrics together with a proof;
admitted metrics are stored with a privacy classification and served to
readers as privacy-level projections. The ledger also keeps reporter
reputation and a composite network health score.
"""

from .errors import (
    InsufficientPermission,
    InvalidReporterId,
    LedgerError,
    ProofRefCollision,
    SubmissionError,
    SubmissionResult,
    UnknownCategory,
)
from .ledger import MetricLedger
from .models import (
    ContributorInfo,
    DataSource,
    HealthStatus,
    MetricCategory,
    MetricRecord,
    MetricSubmission,
    NetworkHealthScore,
    PrivacyLevel,
    Proof,
    SourceType,
)
from .privacy import project
from .verifier import HotkeyAttestationEngine, ProofEngine, StructuralEngine

__all__ = [
    "ContributorInfo",
    "DataSource",
    "HealthStatus",
    "HotkeyAttestationEngine",
    "InsufficientPermission",
    "InvalidReporterId",
    "LedgerError",
    "MetricCategory",
    "MetricLedger",
    "MetricRecord",
    "MetricSubmission",
    "NetworkHealthScore",
    "PrivacyLevel",
    "Proof",
    "ProofEngine",
    "ProofRefCollision",
    "SourceType",
    "StructuralEngine",
    "SubmissionError",
    "SubmissionResult",
    "UnknownCategory",
    "project",
]
