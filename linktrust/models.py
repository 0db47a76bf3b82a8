from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TrustLevel = Literal["VERY_HIGH", "HIGH", "MEDIUM", "LOW", "DANGEROUS"]
ProbeStatus = Literal["ok", "unknown", "failed"]

# Check names, shared by the prober, the score engine and the API.
CHECK_HTTPS = "https"
CHECK_VALID_TLS = "valid_tls"
CHECK_VALID_DOMAIN = "valid_domain"
CHECK_HAS_CONTACT = "has_contact"
CHECK_HAS_PRIVACY_POLICY = "has_privacy_policy"
CHECK_SAFE_BROWSING = "safe_browsing"
CHECK_AGE_MONTHS = "age_months"

ALL_CHECKS = (
    CHECK_HTTPS,
    CHECK_VALID_TLS,
    CHECK_VALID_DOMAIN,
    CHECK_HAS_CONTACT,
    CHECK_HAS_PRIVACY_POLICY,
    CHECK_SAFE_BROWSING,
    CHECK_AGE_MONTHS,
)

UNKNOWN_AGE_MONTHS = -1


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of a single probe.

    `value` is always usable for scoring: for `unknown` and `failed` outcomes
    it carries the documented default for that check.
    """

    status: ProbeStatus
    value: bool | int
    reason: str | None = None

    @classmethod
    def ok(cls, value: bool | int) -> ProbeOutcome:
        return cls(status="ok", value=value)

    @classmethod
    def unknown(cls, default: bool | int, reason: str) -> ProbeOutcome:
        return cls(status="unknown", value=default, reason=reason)

    @classmethod
    def failed(cls, default: bool | int, reason: str) -> ProbeOutcome:
        return cls(status="failed", value=default, reason=reason)


class EvaluationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    checks: dict[str, bool | int]
    score: float = Field(..., ge=0, le=100)
    level: TrustLevel
    timestamp: datetime

    # probe name -> reason, for every probe that did not complete normally
    failures: dict[str, str] = Field(default_factory=dict)
    timings_ms: dict[str, int] = Field(default_factory=dict)


class TextEvaluation(BaseModel):
    extracted_count: int
    evaluated_count: int
    results: list[EvaluationResult]


class CacheStats(BaseModel):
    total_cached: int
    average_score: float


class CheckTextRequest(BaseModel):
    text: str = ""
