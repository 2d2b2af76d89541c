"""
Signal extraction helpers.

Pure functions over a telemetry snapshot: latest value of a series, hours since
a timestamp, fault code extraction and matching. None of them raise on missing
or malformed data; absence is reported as None / inf / False.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from device_health.models.diagnostic_models import Fault, PositionReport, SignalPoint


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Naive timestamps are read as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hours_since(timestamp: Optional[datetime], now: Optional[datetime] = None) -> float:
    """
    Hours elapsed between `timestamp` and `now`.

    A missing timestamp is infinitely old.
    """
    if timestamp is None:
        return math.inf
    now = ensure_utc(now) if now else utc_now()
    return (now - ensure_utc(timestamp)).total_seconds() / 3600.0


def latest_point(series: Optional[Sequence[SignalPoint]]) -> Optional[SignalPoint]:
    if not series:
        return None
    return max(series, key=lambda p: ensure_utc(p.timestamp))


def latest_value(series: Optional[Sequence[SignalPoint]]) -> Optional[float]:
    """Value of the point with the maximum timestamp, or None if empty"""
    point = latest_point(series)
    return point.value if point else None


def latest_is_positive(series: Optional[Sequence[SignalPoint]]) -> bool:
    """Counter / flag series: newest reading above zero"""
    value = latest_value(series)
    return value is not None and value > 0


def newest_position(positions: Sequence[PositionReport]) -> Optional[datetime]:
    if not positions:
        return None
    return max(ensure_utc(p.timestamp) for p in positions)


def parse_code(raw: object) -> Optional[int]:
    """Numeric fault code, or None for absent / unparseable ids"""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def failure_mode_codes(faults: Iterable[Fault]) -> List[int]:
    codes = []
    for fault in faults:
        code = parse_code(fault.failure_mode_code)
        if code is not None:
            codes.append(code)
    return codes


def fault_codes(faults: Iterable[Fault]) -> List[int]:
    """Numeric diagnostic and failure-mode codes, in fault order"""
    codes = []
    for fault in faults:
        for raw in (fault.diagnostic_code, fault.failure_mode_code):
            code = parse_code(raw)
            if code is not None:
                codes.append(code)
    return codes


def round_half_up(value: float) -> int:
    """0.5 rounds up (Python's round() would go to even)"""
    return int(math.floor(value + 0.5))
