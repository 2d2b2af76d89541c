"""
Device Health Data Models
=========================

Immutable dataclasses consumed and produced by the diagnostics engine.
Inputs (Device, StatusSnapshot, Fault, SignalPoint, PositionReport,
DrillDownData) mirror the data-access layer output; results (Issue, RootCause,
Classification, Analysis) are built fresh on every call.

Author: Device Health Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from device_health.constants import Category, DiagnosticId, Severity


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════════════════════


class FaultState(str, Enum):
    """Failure mode state of a fault record"""
    ACTIVE = "Active"
    INACTIVE = "Inactive"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ══════════════════════════════════════════════════════════════════════════════
# INPUTS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Device:
    """Tracked hardware device (read-only, from the device cache)"""
    id: str
    name: Optional[str] = None
    serial_number: Optional[str] = None
    product_id: Optional[int] = None
    major_version: Optional[int] = None
    minor_version: Optional[int] = None
    parameter_version: Optional[int] = None  # expected config version
    parameter_version_on_device: Optional[int] = None  # applied on hardware
    group_ids: Tuple[str, ...] = ()

    @property
    def has_pending_config(self) -> bool:
        """Expected and applied config versions both known and different"""
        return (
            self.parameter_version is not None
            and self.parameter_version_on_device is not None
            and self.parameter_version != self.parameter_version_on_device
        )


@dataclass(frozen=True)
class StatusSnapshot:
    """Latest known communication state of one device"""
    device_id: str
    is_communicating: bool
    timestamp: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class Fault:
    """
    A reported failure event.

    Codes are kept as the raw ids from the platform; numeric parsing happens in
    the signal helpers so that malformed ids are simply ignored.
    """
    timestamp: Optional[datetime] = None
    diagnostic_code: Optional[str] = None
    failure_mode_code: Optional[str] = None
    failure_mode_state: FaultState = FaultState.INACTIVE
    device_id: Optional[str] = None
    diagnostic_name: Optional[str] = None


@dataclass(frozen=True)
class SignalPoint:
    """One StatusData reading"""
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class PositionReport:
    """LogRecord event; only its time matters for GPS staleness"""
    timestamp: datetime


SignalSeries = Tuple[SignalPoint, ...]


@dataclass(frozen=True)
class DrillDownData:
    """
    Everything fetched for a single-device drill-down.

    `series` is keyed by the closed DiagnosticId enum. Missing ids behave as
    empty series.
    """
    series: Mapping[DiagnosticId, SignalSeries] = field(default_factory=dict)
    positions: Tuple[PositionReport, ...] = ()
    faults: Tuple[Fault, ...] = ()

    def series_for(self, diagnostic_id: DiagnosticId) -> SignalSeries:
        return tuple(self.series.get(diagnostic_id) or ())


# ══════════════════════════════════════════════════════════════════════════════
# RESULTS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Issue:
    """An atomic detected problem"""
    category: Category
    severity: Severity
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "label": self.label,
        }


@dataclass(frozen=True)
class RootCause:
    """
    One ranked, explained, actionable hypothesis.

    rank follows rule evaluation order, not confidence.
    """
    rank: int
    category: Category
    confidence: int  # 0-100
    severity: Severity
    explanation: str
    actions: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "category": self.category.value,
            "confidence": self.confidence,
            "severity": self.severity.value,
            "explanation": self.explanation,
            "actions": list(self.actions),
        }


@dataclass(frozen=True)
class Classification:
    """Fleet-level result for one device"""
    issues: Tuple[Issue, ...]
    primary_issue: Category
    severity: Severity
    health_score: int  # 0-100

    @property
    def issue_label(self) -> str:
        """Label of the first detected issue, as shown in the fleet table"""
        return self.issues[0].label if self.issues else "Healthy"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issues": [issue.to_dict() for issue in self.issues],
            "primary_issue": self.primary_issue.value,
            "issue_label": self.issue_label,
            "severity": self.severity.value,
            "health_score": self.health_score,
        }


@dataclass(frozen=True)
class Analysis:
    """Drill-down result for one device"""
    root_causes: Tuple[RootCause, ...]
    health_score: int  # 0-100
    issues: Tuple[Issue, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root_causes": [rc.to_dict() for rc in self.root_causes],
            "health_score": self.health_score,
            "issues": [issue.to_dict() for issue in self.issues],
        }


# ══════════════════════════════════════════════════════════════════════════════
# ORCHESTRATION
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FleetSnapshot:
    """Status and faults for the whole fleet, indexed by device id"""
    statuses: Mapping[str, StatusSnapshot] = field(default_factory=dict)
    faults_by_device: Mapping[str, Tuple[Fault, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class DeviceHealth:
    """One row of the fleet view"""
    device: Device
    status: StatusSnapshot
    classification: Classification

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device.id,
            "name": self.device.name,
            "serial_number": self.device.serial_number,
            "is_communicating": self.status.is_communicating,
            "last_communication": _iso(self.status.timestamp),
            **self.classification.to_dict(),
        }


@dataclass(frozen=True)
class DeviceDiagnosis:
    """Drill-down result together with the inputs shown next to it"""
    device: Device
    status: StatusSnapshot
    analysis: Analysis
    drill_data: DrillDownData

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device.id,
            "name": self.device.name,
            "serial_number": self.device.serial_number,
            **self.analysis.to_dict(),
        }
