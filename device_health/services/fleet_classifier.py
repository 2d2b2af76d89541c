"""
Fleet Classifier Service

Lightweight, single-pass classification of one device from its latest status
snapshot and its recent fault list. Runs once per device across the whole
fleet, so it only looks at cheap signals:

- Offline duration (not communicating for > 24h / > 72h)
- Fault codes: hardware, low power, bad install, OEM
- Pending configuration (expected vs on-device parameter version)
- GPS stuck at 0,0 while communicating

All checks are independent; any subset may fire. The primary issue is the first
issue of the highest severity tier present.

Author: Device Health Team
Created: 2026-03-02
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import structlog

from device_health.constants import Category, SEVERITY_ORDER, Severity
from device_health.models.diagnostic_models import (
    Classification,
    Device,
    Fault,
    Issue,
    StatusSnapshot,
)
from device_health.services.health_score import compute_health_score
from device_health.services.signal_helpers import fault_codes, hours_since
from device_health.settings import DiagnosticThresholds, get_thresholds

logger = structlog.get_logger(__name__)


def select_primary(issues: Sequence[Issue]) -> Tuple[Category, Severity]:
    """
    Pick the primary issue: scan tiers CRITICAL → WARNING → INFO and return the
    first issue (in detection order) of the first tier that has one.

    Examples:
        >>> select_primary([])
        (<Category.HEALTHY: 'healthy'>, <Severity.HEALTHY: 'healthy'>)
    """
    for tier in SEVERITY_ORDER:
        for issue in issues:
            if issue.severity == tier:
                return issue.category, issue.severity
    return Category.HEALTHY, Severity.HEALTHY


class FleetClassifier:
    """
    Classifies every device in the fleet view.

    Example Usage:
        classifier = FleetClassifier()
        result = classifier.classify(snapshot, faults, device)
        result.severity, result.health_score
    """

    def __init__(self, thresholds: Optional[DiagnosticThresholds] = None):
        self.thresholds = thresholds or get_thresholds()

    def classify(
        self,
        snapshot: StatusSnapshot,
        faults: Optional[Sequence[Fault]] = None,
        device: Optional[Device] = None,
        now: Optional[datetime] = None,
    ) -> Classification:
        """
        Classify one device.

        Args:
            snapshot: Latest status of the device
            faults: Recent faults for the device (may be empty)
            device: Device record; firmware check is skipped when None
            now: Evaluation time (defaults to current UTC time)

        Returns:
            Classification with issues, primary issue, severity and health score
        """
        faults = faults or ()
        hours_offline = hours_since(snapshot.timestamp, now)

        issues = self.detect_issues(snapshot, faults, device, hours_offline)
        primary, severity = select_primary(issues)
        score = compute_health_score(
            issues, hours_offline, snapshot.is_communicating, self.thresholds
        )

        logger.debug(
            "device_classified",
            device_id=snapshot.device_id,
            primary_issue=primary.value,
            severity=severity.value,
            health_score=score,
        )

        return Classification(
            issues=tuple(issues),
            primary_issue=primary,
            severity=severity,
            health_score=score,
        )

    def detect_issues(
        self,
        snapshot: StatusSnapshot,
        faults: Sequence[Fault],
        device: Optional[Device],
        hours_offline: float,
    ) -> List[Issue]:
        t = self.thresholds
        issues: List[Issue] = []

        # 1. Offline
        if not snapshot.is_communicating:
            if hours_offline > t.offline_extended_hours:
                issues.append(
                    Issue(
                        Category.OFFLINE,
                        Severity.CRITICAL,
                        f"Offline > {t.offline_extended_hours:g}h",
                    )
                )
            elif hours_offline > t.offline_sleep_hours:
                issues.append(
                    Issue(
                        Category.OFFLINE,
                        Severity.WARNING,
                        f"Offline > {t.offline_sleep_hours:g}h",
                    )
                )

        # 2. Fault codes (diagnostic and failure mode)
        codes = set(fault_codes(faults))
        if codes & t.hardware_fault_codes:
            issues.append(Issue(Category.HARDWARE, Severity.CRITICAL, "Hardware Failure"))
        if t.power_fault_code in codes:
            issues.append(Issue(Category.POWER, Severity.WARNING, "Low Battery"))
        if t.installation_fault_code in codes:
            issues.append(Issue(Category.INSTALLATION, Severity.WARNING, "Loose Install"))
        if codes & t.oem_fault_codes:
            issues.append(Issue(Category.OEM, Severity.INFO, "OEM Issue"))

        # 3. Config pending
        if device is not None and device.has_pending_config:
            issues.append(Issue(Category.FIRMWARE, Severity.INFO, "Firmware Pending"))

        # 4. GPS stuck at 0,0
        if (
            snapshot.is_communicating
            and snapshot.latitude == 0
            and snapshot.longitude == 0
        ):
            issues.append(Issue(Category.GPS, Severity.WARNING, "GPS Issue"))

        return issues
