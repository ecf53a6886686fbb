"""
Shared scoring vocabulary.

Every analyzer scores on a 0-100 scale by starting at 100 and subtracting
fixed penalties. Status buckets come from one of two threshold scales:

  FOUR_TIER:  >=90 excellent, >=70 good, >=50 needs-improvement, else poor
  THREE_TIER: >=80 good, >=50 warning, else error
"""

from __future__ import annotations

import math
from enum import Enum


# ─────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────

class Severity(str, Enum):
    CRITICAL = "critical"   # Blocking issue - fix immediately
    HIGH = "high"           # Significant impact - fix soon
    MEDIUM = "medium"       # Moderate impact - fix this sprint
    LOW = "low"             # Minor - fix when convenient


class IssueKind(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Status(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    POOR = "poor"
    WARNING = "warning"
    ERROR = "error"


class ScoreScale(str, Enum):
    FOUR_TIER = "four_tier"
    THREE_TIER = "three_tier"


class Confidence(str, Enum):
    MEASURED = "measured"     # Derived from the fetched document
    HEURISTIC = "heuristic"   # Static approximation, not a measurement
    SIMULATED = "simulated"   # Placeholder market data
    EXTERNAL = "external"     # Real third-party market data
    NONE = "none"             # Analyzer failed


SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}

FOUR_TIER_THRESHOLDS = ((90, Status.EXCELLENT), (70, Status.GOOD), (50, Status.NEEDS_IMPROVEMENT))
THREE_TIER_THRESHOLDS = ((80, Status.GOOD), (50, Status.WARNING))


# ─────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────

def round_score(value: float) -> int:
    """Round half up, so 12.5 -> 13 rather than banker's rounding."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float, low: float = 0, high: float = 100) -> int:
    return round_score(max(low, min(high, value)))


def derive_status(score: float, scale: ScoreScale = ScoreScale.FOUR_TIER) -> Status:
    """Map a 0-100 score onto the status bucket of the given scale."""
    if scale == ScoreScale.THREE_TIER:
        for threshold, status in THREE_TIER_THRESHOLDS:
            if score >= threshold:
                return status
        return Status.ERROR

    for threshold, status in FOUR_TIER_THRESHOLDS:
        if score >= threshold:
            return status
    return Status.POOR


def lowest_status(scale: ScoreScale) -> Status:
    return Status.ERROR if scale == ScoreScale.THREE_TIER else Status.POOR


def percentage(part: int, total: int) -> int:
    """Whole-number percentage of part in total; 100 when there is nothing to count."""
    if total <= 0:
        return 100
    return round_score(part / total * 100)
