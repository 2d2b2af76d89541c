"""
Device Repository - cached Device / Group data and per-device indexes

Holds the device and group lists fetched once at startup and offers O(1)
lookups by id. Fault and status lists from a fleet fetch are indexed by device
id here as well, so the classifier never scans the whole fleet's records.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from device_health.models.diagnostic_models import Device, Fault, StatusSnapshot
from device_health.models.records import GroupRecord

logger = structlog.get_logger(__name__)


class DeviceRepository:
    """In-memory device and group cache."""

    def __init__(self):
        self._devices: Dict[str, Device] = {}
        self._groups: Dict[str, GroupRecord] = {}
        self._loaded = False

    def load(
        self,
        devices: Iterable[Device],
        groups: Optional[Iterable[GroupRecord]] = None,
    ) -> None:
        """Replace the cache contents."""
        self._devices = {d.id: d for d in devices}
        self._groups = {g.id: g for g in groups or ()}
        self._loaded = True
        logger.info(
            "device_cache_loaded",
            devices=len(self._devices),
            groups=len(self._groups),
        )

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def get_device(self, device_id: str) -> Optional[Device]:
        return self._devices.get(device_id)

    def get_all_devices(self) -> List[Device]:
        return list(self._devices.values())

    def get_group_name(self, group_id: str) -> str:
        """Group name, or the id itself when unknown or unnamed."""
        group = self._groups.get(group_id)
        return (group.name or group_id) if group else group_id


def index_faults_by_device(faults: Iterable[Fault]) -> Dict[str, Tuple[Fault, ...]]:
    """Group faults by device id; faults without a device are dropped."""
    grouped: Dict[str, List[Fault]] = defaultdict(list)
    dropped = 0
    for fault in faults:
        if fault.device_id:
            grouped[fault.device_id].append(fault)
        else:
            dropped += 1
    if dropped:
        logger.debug("faults_without_device", count=dropped)
    return {device_id: tuple(items) for device_id, items in grouped.items()}


def index_status_by_device(
    statuses: Iterable[StatusSnapshot],
) -> Dict[str, StatusSnapshot]:
    """Latest status per device id (later records win)."""
    return {s.device_id: s for s in statuses if s.device_id}
