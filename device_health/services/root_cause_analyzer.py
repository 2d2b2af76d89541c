"""
Root Cause Analyzer Service

Full drill-down analysis for a single selected device. Walks the ordered rule
table (see root_cause_rules) over per-diagnostic StatusData series, the fault
window and recent LogRecord history, and produces:

- Ranked, explained, actionable root causes (rank = rule order among fired rules)
- One issue per fired rule, same category and severity
- The shared 0-100 health score

Missing series, faults or position reports are treated as "no evidence";
analyze() never raises on partial data.

Author: Device Health Team
Created: 2026-03-02
"""

from datetime import datetime
from typing import List, Optional, Sequence

import structlog

from device_health.models.diagnostic_models import (
    Analysis,
    Device,
    DrillDownData,
    Issue,
    RootCause,
    StatusSnapshot,
)
from device_health.services.health_score import compute_health_score
from device_health.services.root_cause_rules import (
    DEFAULT_RULES,
    RootCauseRule,
    RuleContext,
)
from device_health.services.signal_helpers import ensure_utc, hours_since, utc_now
from device_health.settings import DiagnosticThresholds, get_thresholds

logger = structlog.get_logger(__name__)


class RootCauseAnalyzer:
    """
    Runs the drill-down decision table for one device.

    Example Usage:
        analyzer = RootCauseAnalyzer()
        analysis = analyzer.analyze(device, snapshot, drill_data)
        for rc in analysis.root_causes:
            print(rc.rank, rc.category, rc.confidence)
    """

    def __init__(
        self,
        thresholds: Optional[DiagnosticThresholds] = None,
        rules: Sequence[RootCauseRule] = DEFAULT_RULES,
    ):
        self.thresholds = thresholds or get_thresholds()
        self.rules = tuple(rules)

    def analyze(
        self,
        device: Optional[Device],
        snapshot: Optional[StatusSnapshot],
        drill_data: Optional[DrillDownData] = None,
        now: Optional[datetime] = None,
    ) -> Analysis:
        """
        Analyze one device.

        Args:
            device: Device record (config mismatch check needs it)
            snapshot: Latest status; None means not communicating, never seen
            drill_data: Series, position reports and faults for the device
            now: Evaluation time (defaults to current UTC time)

        Returns:
            Analysis with ranked root causes, issues and health score
        """
        drill_data = drill_data or DrillDownData()
        now = ensure_utc(now) if now else utc_now()

        is_communicating = snapshot.is_communicating if snapshot else False
        hours_offline = hours_since(snapshot.timestamp if snapshot else None, now)

        ctx = RuleContext.build(
            device=device,
            drill_data=drill_data,
            is_communicating=is_communicating,
            hours_offline=hours_offline,
            now=now,
            thresholds=self.thresholds,
        )

        root_causes: List[RootCause] = []
        issues: List[Issue] = []
        rank = 0

        for rule in self.rules:
            finding = rule.evaluate(ctx)
            if finding is None:
                continue

            rank += 1
            root_causes.append(
                RootCause(
                    rank=rank,
                    category=finding.category,
                    confidence=finding.confidence,
                    severity=finding.severity,
                    explanation=finding.explanation,
                    actions=rule.actions,
                )
            )
            issues.append(Issue(finding.category, finding.severity, finding.label))

        score = compute_health_score(
            issues, hours_offline, is_communicating, self.thresholds
        )

        logger.info(
            "device_analyzed",
            device_id=device.id if device else None,
            root_causes=[rc.category.value for rc in root_causes],
            health_score=score,
        )

        return Analysis(
            root_causes=tuple(root_causes),
            health_score=score,
            issues=tuple(issues),
        )
