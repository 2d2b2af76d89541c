"""
Health Score

Shared 0-100 arithmetic for the fleet classifier and the root cause analyzer:

    100
    - 40 per CRITICAL issue, 20 per WARNING, 5 per INFO (no dedup)
    - offline penalty when not communicating for more than the sleep window:
      min(20, round_half_up((hours - 24) / 24) * 5)
    clamped to [0, 100]
"""

import math
from typing import Iterable, Optional

from device_health.constants import (
    OFFLINE_PENALTY_CAP,
    OFFLINE_PENALTY_PER_DAY,
    SCORE_DEDUCTIONS,
)
from device_health.models.diagnostic_models import Issue
from device_health.services.signal_helpers import round_half_up
from device_health.settings import DiagnosticThresholds, get_thresholds

HOURS_PER_DAY = 24.0


def offline_penalty(
    hours_offline: float,
    is_communicating: bool,
    thresholds: Optional[DiagnosticThresholds] = None,
) -> int:
    """Extra deduction for long silences, 5 points per extra day, capped at 20"""
    thresholds = thresholds or get_thresholds()
    sleep = thresholds.offline_sleep_hours

    if is_communicating or not hours_offline > sleep:
        return 0
    if math.isinf(hours_offline):
        return OFFLINE_PENALTY_CAP

    extra_days = round_half_up((hours_offline - sleep) / HOURS_PER_DAY)
    return min(OFFLINE_PENALTY_CAP, extra_days * OFFLINE_PENALTY_PER_DAY)


def compute_health_score(
    issues: Iterable[Issue],
    hours_offline: float,
    is_communicating: bool,
    thresholds: Optional[DiagnosticThresholds] = None,
) -> int:
    """
    Compute the device health score.

    Args:
        issues: Detected issues (every one deducts by severity)
        hours_offline: Hours since last contact (inf if unknown)
        is_communicating: Current communication state
        thresholds: Optional thresholds (process-wide by default)

    Returns:
        Integer score in [0, 100]

    Examples:
        >>> compute_health_score([], 0.0, True)
        100
    """
    score = 100
    for issue in issues:
        score -= SCORE_DEDUCTIONS.get(issue.severity, 0)

    score -= offline_penalty(hours_offline, is_communicating, thresholds)

    return max(0, min(100, score))
