"""
Pydantic models for raw data-platform records

Mirror the JSON shapes returned by the data-access layer (Device, Group,
DeviceStatusInfo, FaultData, StatusData, LogRecord) and convert them into the
engine's immutable dataclasses. Unknown fields are ignored; references such as
`device`, `diagnostic` and `failureMode` are `{"id": ...}` objects.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from device_health.constants import DiagnosticId
from device_health.exceptions import RecordParseError
from device_health.models.diagnostic_models import (
    Device,
    DrillDownData,
    Fault,
    FaultState,
    PositionReport,
    SignalPoint,
    StatusSnapshot,
)

logger = structlog.get_logger(__name__)


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EntityRef(_Record):
    """`{"id": ...}` reference to another entity"""

    id: Optional[Union[str, int]] = None
    name: Optional[str] = None

    @property
    def key(self) -> Optional[str]:
        return None if self.id is None else str(self.id)


class GroupRecord(_Record):
    id: str
    name: Optional[str] = None


class DeviceRecord(_Record):
    id: str
    name: Optional[str] = None
    serial_number: Optional[str] = Field(None, alias="serialNumber")
    product_id: Optional[int] = Field(None, alias="productId")
    major_version: Optional[int] = Field(None, alias="majorVersion")
    minor_version: Optional[int] = Field(None, alias="minorVersion")
    parameter_version: Optional[int] = Field(None, alias="parameterVersion")
    parameter_version_on_device: Optional[int] = Field(
        None, alias="parameterVersionOnDevice"
    )
    groups: List[EntityRef] = Field(default_factory=list)

    def to_domain(self) -> Device:
        return Device(
            id=self.id,
            name=self.name,
            serial_number=self.serial_number,
            product_id=self.product_id,
            major_version=self.major_version,
            minor_version=self.minor_version,
            parameter_version=self.parameter_version,
            parameter_version_on_device=self.parameter_version_on_device,
            group_ids=tuple(g.key for g in self.groups if g.key),
        )


class StatusInfoRecord(_Record):
    """DeviceStatusInfo"""

    device: Optional[EntityRef] = None
    is_device_communicating: bool = Field(False, alias="isDeviceCommunicating")
    date_time: Optional[datetime] = Field(None, alias="dateTime")
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def device_id(self) -> Optional[str]:
        return self.device.key if self.device else None

    def to_domain(self) -> StatusSnapshot:
        return StatusSnapshot(
            device_id=self.device_id or "",
            is_communicating=self.is_device_communicating,
            timestamp=self.date_time,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class FaultRecord(_Record):
    """FaultData"""

    device: Optional[EntityRef] = None
    diagnostic: Optional[EntityRef] = None
    failure_mode: Optional[EntityRef] = Field(None, alias="failureMode")
    failure_mode_state: Optional[Union[str, int]] = Field(None, alias="failureModeState")
    date_time: Optional[datetime] = Field(None, alias="dateTime")

    @property
    def device_id(self) -> Optional[str]:
        return self.device.key if self.device else None

    def to_domain(self) -> Fault:
        return Fault(
            timestamp=self.date_time,
            diagnostic_code=self.diagnostic.key if self.diagnostic else None,
            failure_mode_code=self.failure_mode.key if self.failure_mode else None,
            failure_mode_state=_fault_state(self.failure_mode_state),
            device_id=self.device_id,
            diagnostic_name=self.diagnostic.name if self.diagnostic else None,
        )


class StatusDataRecord(_Record):
    """StatusData reading for one diagnostic"""

    date_time: datetime = Field(alias="dateTime")
    data: float

    @field_validator("data", mode="before")
    @classmethod
    def _bool_as_number(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return 1.0 if value else 0.0
        return value

    def to_domain(self) -> SignalPoint:
        return SignalPoint(timestamp=self.date_time, value=self.data)


class LogRecordRecord(_Record):
    """LogRecord (GPS position report)"""

    date_time: datetime = Field(alias="dateTime")
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_domain(self) -> PositionReport:
        return PositionReport(timestamp=self.date_time)


def _fault_state(raw: Optional[Union[str, int]]) -> FaultState:
    # The platform reports either 1/0 or "Active"/"Inactive"
    if raw == 1 or (isinstance(raw, str) and raw.strip().lower() in ("active", "1")):
        return FaultState.ACTIVE
    return FaultState.INACTIVE


# ═══════════════════════════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════════════════════════

R = TypeVar("R", bound=_Record)


def parse_records(model: Type[R], rows: Optional[Iterable[Mapping[str, Any]]]) -> List[R]:
    """
    Validate a list of raw records.

    Raises:
        RecordParseError: first invalid record, with its index
    """
    parsed = []
    for index, row in enumerate(rows or ()):
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            raise RecordParseError(model.__name__, str(e), index) from e
    return parsed


def parse_devices(rows) -> List[Device]:
    return [r.to_domain() for r in parse_records(DeviceRecord, rows)]


def parse_groups(rows) -> List[GroupRecord]:
    return parse_records(GroupRecord, rows)


def parse_statuses(rows) -> List[StatusSnapshot]:
    """Status infos without a device reference are dropped"""
    return [r.to_domain() for r in parse_records(StatusInfoRecord, rows) if r.device_id]


def parse_faults(rows) -> List[Fault]:
    return [r.to_domain() for r in parse_records(FaultRecord, rows)]


def parse_drill_down(payload: Mapping[str, Any]) -> DrillDownData:
    """
    Build DrillDownData from a drill-down payload:

        {"statusData": {"<knownId>": [...]}, "logRecords": [...], "faults": [...]}

    Unknown known-ids are skipped; absent ids stay absent (= empty series).
    """
    series: Dict[DiagnosticId, tuple] = {}
    for known_id, rows in (payload.get("statusData") or {}).items():
        try:
            diagnostic_id = DiagnosticId(known_id)
        except ValueError:
            logger.warning("unknown_diagnostic_id", known_id=known_id)
            continue
        series[diagnostic_id] = tuple(
            r.to_domain() for r in parse_records(StatusDataRecord, rows)
        )

    positions = tuple(
        r.to_domain() for r in parse_records(LogRecordRecord, payload.get("logRecords"))
    )
    faults = tuple(parse_faults(payload.get("faults")))

    return DrillDownData(series=series, positions=positions, faults=faults)
