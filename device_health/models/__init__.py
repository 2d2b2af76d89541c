"""Engine dataclasses and pydantic models for raw platform records."""

from .diagnostic_models import (
    Analysis,
    Classification,
    Device,
    DeviceDiagnosis,
    DeviceHealth,
    DrillDownData,
    Fault,
    FaultState,
    FleetSnapshot,
    Issue,
    PositionReport,
    RootCause,
    SignalPoint,
    StatusSnapshot,
)

__all__ = [
    "Analysis",
    "Classification",
    "Device",
    "DeviceDiagnosis",
    "DeviceHealth",
    "DrillDownData",
    "Fault",
    "FaultState",
    "FleetSnapshot",
    "Issue",
    "PositionReport",
    "RootCause",
    "SignalPoint",
    "StatusSnapshot",
]
