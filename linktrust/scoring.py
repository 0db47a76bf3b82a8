"""
Trust score aggregation.

A fixed weighted-additive model over the probe results, plus the mapping
from score to trust level.
"""
from __future__ import annotations

from typing import Mapping

from .models import (
    CHECK_AGE_MONTHS,
    CHECK_HAS_CONTACT,
    CHECK_HAS_PRIVACY_POLICY,
    CHECK_HTTPS,
    CHECK_SAFE_BROWSING,
    CHECK_VALID_DOMAIN,
    CHECK_VALID_TLS,
    UNKNOWN_AGE_MONTHS,
    TrustLevel,
)

# (check, weight, value assumed when the check is missing)
BOOLEAN_WEIGHTS: tuple[tuple[str, int, bool], ...] = (
    (CHECK_HTTPS, 20, False),
    (CHECK_VALID_TLS, 20, False),
    # Missing classifier data counts as safe, same as the prober.
    (CHECK_SAFE_BROWSING, 25, True),
    (CHECK_VALID_DOMAIN, 10, False),
    (CHECK_HAS_CONTACT, 10, False),
    (CHECK_HAS_PRIVACY_POLICY, 10, False),
)

# (minimum age in months, bonus), highest first
AGE_BONUSES: tuple[tuple[int, int], ...] = (
    (60, 10),
    (24, 8),
    (12, 5),
)

# (lower bound inclusive, level), highest first
LEVEL_BANDS: tuple[tuple[float, TrustLevel], ...] = (
    (85, "VERY_HIGH"),
    (70, "HIGH"),
    (50, "MEDIUM"),
    (30, "LOW"),
)


def _clamp_score(score: float) -> float:
    return max(0.0, min(100.0, float(score)))


def age_bonus(age_months: int) -> int:
    for minimum, bonus in AGE_BONUSES:
        if age_months >= minimum:
            return bonus
    return 0


def compute_score(checks: Mapping[str, bool | int]) -> float:
    score = 0.0
    for name, weight, default in BOOLEAN_WEIGHTS:
        if bool(checks.get(name, default)):
            score += weight

    age = checks.get(CHECK_AGE_MONTHS, UNKNOWN_AGE_MONTHS)
    try:
        score += age_bonus(int(age))
    except (TypeError, ValueError):
        pass

    return _clamp_score(score)


def classify_level(score: float) -> TrustLevel:
    for lower, level in LEVEL_BANDS:
        if score >= lower:
            return level
    return "DANGEROUS"
