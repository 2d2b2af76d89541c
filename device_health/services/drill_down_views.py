"""
Drill-down Views

Data for the single-device panel: fault history table, voltage / RSSI chart
series with their threshold lines, and the device info block.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from device_health.constants import Severity
from device_health.models.diagnostic_models import (
    Device,
    Fault,
    FaultState,
    SignalPoint,
    StatusSnapshot,
)
from device_health.services.signal_helpers import ensure_utc, parse_code
from device_health.settings import DiagnosticThresholds, get_thresholds

FAULT_HISTORY_LIMIT = 50

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════════
# FAULT HISTORY
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FaultRow:
    timestamp: Optional[datetime]
    code: str
    description: str
    severity: Severity
    state: FaultState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "code": self.code,
            "description": self.description,
            "severity": self.severity.value,
            "state": self.state.value,
        }


def fault_severity(
    fault: Fault, thresholds: Optional[DiagnosticThresholds] = None
) -> Severity:
    """Severity of a fault row, judged by its diagnostic code only"""
    t = thresholds or get_thresholds()
    code = parse_code(fault.diagnostic_code)
    if code is None:
        return Severity.INFO
    if code in t.hardware_fault_codes:
        return Severity.CRITICAL
    if code in (t.power_fault_code, t.installation_fault_code):
        return Severity.WARNING
    return Severity.INFO


def fault_history(
    faults: Sequence[Fault],
    limit: int = FAULT_HISTORY_LIMIT,
    thresholds: Optional[DiagnosticThresholds] = None,
) -> List[FaultRow]:
    """
    Newest-first fault rows, at most `limit` of them.

    Faults without a timestamp sort last.
    """
    ordered = sorted(
        faults,
        key=lambda f: ensure_utc(f.timestamp) if f.timestamp else _EPOCH,
        reverse=True,
    )
    rows = []
    for fault in ordered[:limit]:
        code = fault.diagnostic_code or "-"
        rows.append(
            FaultRow(
                timestamp=fault.timestamp,
                code=code,
                description=fault.diagnostic_name or code,
                severity=fault_severity(fault, thresholds),
                state=fault.failure_mode_state,
            )
        )
    return rows


# ═══════════════════════════════════════════════════════════════════════════════
# CHARTS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ThresholdLine:
    value: float
    label: str
    severity: Severity


@dataclass(frozen=True)
class ChartSeries:
    title: str
    points: Tuple[SignalPoint, ...]
    thresholds: Tuple[ThresholdLine, ...]
    y_min: float
    y_max: float

    @property
    def is_empty(self) -> bool:
        return not self.points

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "points": [
                {"timestamp": p.timestamp.isoformat(), "value": p.value}
                for p in self.points
            ],
            "thresholds": [
                {"value": t.value, "label": t.label, "severity": t.severity.value}
                for t in self.thresholds
            ],
            "y_min": self.y_min,
            "y_max": self.y_max,
        }


CHART_KINDS = ("voltage", "rssi")


def _chart_layout(kind: str, t: DiagnosticThresholds):
    if kind == "voltage":
        lines = (
            ThresholdLine(t.voltage_dead, f"Dead ({t.voltage_dead:g}V)", Severity.CRITICAL),
            ThresholdLine(t.voltage_low, f"Low ({t.voltage_low:g}V)", Severity.WARNING),
            ThresholdLine(
                t.voltage_warning, f"Warning ({t.voltage_warning:g}V)", Severity.WARNING
            ),
        )
        return "Voltage (V)", lines, 0.0, 16.0
    if kind == "rssi":
        lines = (
            ThresholdLine(t.rssi_poor, f"Poor ({t.rssi_poor:g})", Severity.WARNING),
            ThresholdLine(t.rssi_fair, f"Fair ({t.rssi_fair:g})", Severity.HEALTHY),
        )
        return "RSSI (dBm)", lines, -120.0, -50.0
    raise ValueError(f"Unknown chart kind {kind!r}, expected one of {CHART_KINDS}")


def chart_series(
    series: Optional[Sequence[SignalPoint]],
    kind: str,
    thresholds: Optional[DiagnosticThresholds] = None,
) -> ChartSeries:
    """
    Chart data for a voltage or RSSI series.

    Points are sorted oldest first. Threshold lines outside the axis range
    are left out.

    Raises:
        ValueError: kind is not "voltage" or "rssi"
    """
    title, lines, y_min, y_max = _chart_layout(kind, thresholds or get_thresholds())
    points = tuple(sorted(series or (), key=lambda p: ensure_utc(p.timestamp)))
    return ChartSeries(
        title=title,
        points=points,
        thresholds=tuple(line for line in lines if y_min <= line.value <= y_max),
        y_min=y_min,
        y_max=y_max,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# DEVICE INFO
# ═══════════════════════════════════════════════════════════════════════════════


def format_firmware(device: Device) -> str:
    """
    >>> format_firmware(Device(id="b1", major_version=32))
    '32.0'
    """
    if device.major_version is None:
        return "N/A"
    return f"{device.major_version}.{device.minor_version or 0}"


def device_info(device: Device, status: Optional[StatusSnapshot]) -> Dict[str, Any]:
    """Label → display value pairs for the device info block"""
    position = "N/A"
    if status is not None and status.latitude is not None and status.longitude is not None:
        position = f"{status.latitude:.4f}, {status.longitude:.4f}"
    last_comm = status.timestamp.isoformat() if status and status.timestamp else "N/A"

    return {
        "Serial Number": device.serial_number or "N/A",
        "Product": f"GO{device.product_id}" if device.product_id else "N/A",
        "Firmware": format_firmware(device),
        "Config Version": device.parameter_version if device.parameter_version is not None else "N/A",
        "On-Device Config": (
            device.parameter_version_on_device
            if device.parameter_version_on_device is not None
            else "N/A"
        ),
        "Update Pending": device.has_pending_config,
        "Communicating": "Yes" if status and status.is_communicating else "No",
        "Last Communication": last_comm,
        "Position": position,
    }
