"""Exceptions raised around the diagnostics engine (never by the engine itself)."""

from typing import Optional


class DeviceHealthError(Exception):
    """Base class for all device health errors"""


class ConfigurationError(DeviceHealthError):
    """Invalid threshold settings (env var, .env or YAML file)"""

    def __init__(self, key: str, value: object, reason: str = "invalid value"):
        self.key = key
        self.value = value
        super().__init__(f"{key}={value!r}: {reason}")


class RecordParseError(DeviceHealthError):
    """A raw platform record failed validation"""

    def __init__(self, type_name: str, detail: str, index: Optional[int] = None):
        self.type_name = type_name
        self.index = index
        where = f" #{index}" if index is not None else ""
        super().__init__(f"Invalid {type_name} record{where}: {detail}")


class DeviceNotFoundError(DeviceHealthError):
    """Drill-down requested for a device with no cached record or status"""

    def __init__(self, device_id: str):
        self.device_id = device_id
        super().__init__(f"Device {device_id} not found in the current fleet snapshot")


class InputFileError(DeviceHealthError):
    """CLI input file missing or not valid JSON"""
