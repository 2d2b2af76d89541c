"""
Fleet Summary

Data behind the fleet dashboard: tile counts and tile filters, free-text
search and column sorting over classified rows. No rendering happens here.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from device_health.constants import Category, SEVERITY_RANK, Severity
from device_health.models.diagnostic_models import Classification, DeviceHealth
from device_health.services.signal_helpers import ensure_utc

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Tile:
    key: str
    label: str
    matches: Callable[[Classification], bool]


def _primary_is(category: Category) -> Callable[[Classification], bool]:
    return lambda c: c.primary_issue == category


TILES = (
    Tile("total", "Total", lambda c: True),
    Tile("healthy", "Healthy", lambda c: c.severity == Severity.HEALTHY),
    Tile(
        "offline",
        "Offline",
        lambda c: any(i.category == Category.OFFLINE for i in c.issues),
    ),
    Tile("battery", "Low Battery", _primary_is(Category.POWER)),
    Tile("install", "Loose Install", _primary_is(Category.INSTALLATION)),
    Tile("gps", "GPS Issues", _primary_is(Category.GPS)),
    Tile("hardware", "Hardware Failure", _primary_is(Category.HARDWARE)),
    Tile("unplugged", "Unplugged", _primary_is(Category.UNPLUGGED)),
)

TILES_BY_KEY = {tile.key: tile for tile in TILES}


def tile_counts(rows: Sequence[DeviceHealth]) -> Dict[str, int]:
    """Number of rows matching each tile, in tile order"""
    return {
        tile.key: sum(1 for row in rows if tile.matches(row.classification))
        for tile in TILES
    }


def filter_by_tile(rows: Sequence[DeviceHealth], key: Optional[str]) -> List[DeviceHealth]:
    tile = TILES_BY_KEY.get(key) if key else None
    if tile is None:
        return list(rows)
    return [row for row in rows if tile.matches(row.classification)]


def search(rows: Sequence[DeviceHealth], text: Optional[str]) -> List[DeviceHealth]:
    """Case-insensitive substring match on device name or serial number"""
    if not text:
        return list(rows)
    query = text.lower()
    return [
        row
        for row in rows
        if query in (row.device.name or "").lower()
        or query in (row.device.serial_number or "").lower()
    ]


def severity_rank(severity: Severity) -> int:
    return SEVERITY_RANK.get(severity, len(SEVERITY_RANK))


_SORT_KEYS: Dict[str, Callable[[DeviceHealth], Any]] = {
    "name": lambda r: (r.device.name or "").lower(),
    "serial": lambda r: (r.device.serial_number or "").lower(),
    "severity": lambda r: severity_rank(r.classification.severity),
    "category": lambda r: r.classification.primary_issue.value,
    "health": lambda r: r.classification.health_score,
    "last_comm": lambda r: ensure_utc(r.status.timestamp) if r.status.timestamp else _EPOCH,
}

SORT_COLUMNS = tuple(_SORT_KEYS)


def sort_rows(
    rows: Sequence[DeviceHealth], column: str = "severity", ascending: bool = True
) -> List[DeviceHealth]:
    """Stable sort by a table column; unknown columns keep input order"""
    key = _SORT_KEYS.get(column)
    if key is None:
        return list(rows)
    return sorted(rows, key=key, reverse=not ascending)


def health_band(score: int) -> str:
    """Colour band of a health score.

    >>> health_band(39), health_band(40), health_band(70)
    ('critical', 'warning', 'healthy')
    """
    if score < 40:
        return "critical"
    if score < 70:
        return "warning"
    return "healthy"
