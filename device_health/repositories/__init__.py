"""Repository layer for cached device data."""

from .device_repository import DeviceRepository

__all__ = [
    "DeviceRepository",
]
