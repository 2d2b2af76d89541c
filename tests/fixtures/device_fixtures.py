"""
Device, status, fault and drill-down fixtures

Factories take keyword overrides so each test states only what it cares about.
All timestamps are relative to NOW, which every test passes explicitly.
"""

from datetime import datetime, timedelta, timezone

import pytest

from device_health.constants import DiagnosticId
from device_health.models.diagnostic_models import (
    Device,
    DrillDownData,
    Fault,
    FaultState,
    PositionReport,
    SignalPoint,
    StatusSnapshot,
)

NOW = datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)


def hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


def make_device(device_id="b1", **overrides) -> Device:
    values = dict(
        id=device_id,
        name=f"Truck {device_id}",
        serial_number=f"G9{device_id.upper()}0001",
        product_id=120,
        major_version=32,
        minor_version=1,
        parameter_version=5,
        parameter_version_on_device=5,
    )
    values.update(overrides)
    return Device(**values)


def make_status(device_id="b1", communicating=True, hours=0.5, **overrides) -> StatusSnapshot:
    values = dict(
        device_id=device_id,
        is_communicating=communicating,
        timestamp=hours_ago(hours) if hours is not None else None,
        latitude=43.65,
        longitude=-79.38,
    )
    values.update(overrides)
    return StatusSnapshot(**values)


def make_fault(diagnostic=None, failure_mode=None, hours=1.0, device_id="b1", **overrides) -> Fault:
    values = dict(
        timestamp=hours_ago(hours),
        diagnostic_code=None if diagnostic is None else str(diagnostic),
        failure_mode_code=None if failure_mode is None else str(failure_mode),
        failure_mode_state=FaultState.ACTIVE,
        device_id=device_id,
    )
    values.update(overrides)
    return Fault(**values)


def series(*values, spacing_hours=1.0):
    """Points oldest → newest; the last value is the latest reading"""
    count = len(values)
    return tuple(
        SignalPoint(timestamp=hours_ago((count - i) * spacing_hours), value=v)
        for i, v in enumerate(values)
    )


def make_drill(series_by_id=None, positions=(), faults=()) -> DrillDownData:
    return DrillDownData(
        series=dict(series_by_id or {}),
        positions=tuple(PositionReport(timestamp=hours_ago(h)) for h in positions),
        faults=tuple(faults),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def healthy_device():
    return make_device("b1")


@pytest.fixture
def healthy_status():
    return make_status("b1")


@pytest.fixture
def healthy_drill():
    """Communicating device with nominal readings everywhere"""
    return make_drill(
        {
            DiagnosticId.VOLTAGE: series(12.4, 12.6, 12.5),
            DiagnosticId.CELLULAR_RSSI: series(-70, -72),
            DiagnosticId.UNPLUGGED: series(0),
            DiagnosticId.FLASH_ERROR: series(0),
        },
        positions=(0.5, 1.0),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# RAW PLATFORM RECORDS
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def raw_devices():
    return [
        {
            "id": "b1",
            "name": "Truck 101",
            "serialNumber": "G9B10001",
            "productId": 120,
            "majorVersion": 32,
            "minorVersion": 4,
            "parameterVersion": 7,
            "parameterVersionOnDevice": 7,
            "groups": [{"id": "GroupCompanyId"}],
            "vehicleIdentificationNumber": "1FTFW1E50JFA00000",
        },
        {
            "id": "b2",
            "name": "Van 202",
            "serialNumber": "G9B20002",
            "parameterVersion": 8,
            "parameterVersionOnDevice": 6,
        },
        {"id": "b3", "name": "Spare unit", "serialNumber": "G9B30003"},
    ]


@pytest.fixture
def raw_statuses():
    return [
        {
            "device": {"id": "b1"},
            "isDeviceCommunicating": True,
            "dateTime": "2026-03-02T11:30:00Z",
            "latitude": 43.65,
            "longitude": -79.38,
        },
        {
            "device": {"id": "b2"},
            "isDeviceCommunicating": False,
            "dateTime": "2026-02-25T12:00:00Z",
            "latitude": 43.7,
            "longitude": -79.4,
        },
    ]


@pytest.fixture
def raw_faults():
    return [
        {
            "device": {"id": "b1"},
            "diagnostic": {"id": "135", "name": "Low voltage"},
            "failureMode": {"id": "135"},
            "failureModeState": 1,
            "dateTime": "2026-03-01T08:00:00Z",
        },
        {
            "device": {"id": "b2"},
            "diagnostic": {"id": "DiagnosticAccidentLevelAccelerationEventId"},
            "failureModeState": "Inactive",
            "dateTime": "2026-02-28T08:00:00Z",
        },
    ]


@pytest.fixture
def raw_drill():
    return {
        "statusData": {
            "DiagnosticGoDeviceVoltageId": [
                {"dateTime": "2026-03-02T09:00:00Z", "data": 12.1},
                {"dateTime": "2026-03-02T11:00:00Z", "data": 10.2},
            ],
            "DiagnosticCellularRssiId": [
                {"dateTime": "2026-03-02T11:00:00Z", "data": -80},
            ],
            "DiagnosticDeviceHasBeenUnpluggedId": [
                {"dateTime": "2026-03-02T10:00:00Z", "data": False},
            ],
            "DiagnosticSomethingNewId": [
                {"dateTime": "2026-03-02T10:00:00Z", "data": 1},
            ],
        },
        "logRecords": [
            {"dateTime": "2026-03-02T11:45:00Z", "latitude": 43.65, "longitude": -79.38},
        ],
        "faults": [
            {
                "diagnostic": {"id": "135", "name": "Low voltage"},
                "failureMode": {"id": "135"},
                "failureModeState": 1,
                "dateTime": "2026-03-01T08:00:00Z",
            },
        ],
    }
