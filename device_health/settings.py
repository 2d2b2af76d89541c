"""
Device Health Settings
Threshold configuration from environment variables and an optional YAML file

Precedence (lowest → highest):
    1. Defaults from device_health.constants
    2. YAML file (DHD_THRESHOLDS_FILE or explicit path), keys = field names
    3. Environment variables (DHD_*), after .env is loaded

The resulting DiagnosticThresholds is frozen. It is built once per process by
get_thresholds() and injected into the classifier and analyzer.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Union

import structlog
import yaml
from dotenv import load_dotenv

from device_health import constants
from device_health.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)


def _get_env(key: str, default: str = "") -> str:
    """Get environment variable."""
    return os.getenv(key, default)


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(key, raw, "expected a number") from None


def _get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(key, raw, "expected an integer") from None


# =============================================================================
# THRESHOLDS
# =============================================================================
@dataclass(frozen=True)
class DiagnosticThresholds:
    """All numeric thresholds and fault-code sets used by both engines."""

    # Voltage (V)
    voltage_dead: float = constants.VOLTAGE_DEAD
    voltage_low: float = constants.VOLTAGE_LOW
    voltage_warning: float = constants.VOLTAGE_WARNING

    # Cellular RSSI (dBm)
    rssi_no_signal: float = constants.RSSI_NO_SIGNAL
    rssi_poor: float = constants.RSSI_POOR
    rssi_fair: float = constants.RSSI_FAIR

    # Offline (hours)
    offline_sleep_hours: float = constants.OFFLINE_NORMAL_SLEEP_HOURS
    offline_extended_hours: float = constants.OFFLINE_EXTENDED_HOURS

    gps_stale_hours: float = constants.GPS_STALE_HOURS
    lookback_days: int = constants.LOOKBACK_DAYS

    # Fault codes
    hardware_fault_codes: FrozenSet[int] = constants.HARDWARE_FAULT_CODES
    power_fault_code: int = constants.POWER_FAULT_CODE
    installation_fault_code: int = constants.INSTALLATION_FAULT_CODE
    oem_fault_codes: FrozenSet[int] = constants.OEM_FAULT_CODES

    def __post_init__(self):
        if not self.voltage_dead < self.voltage_low < self.voltage_warning:
            raise ConfigurationError(
                "voltage",
                (self.voltage_dead, self.voltage_low, self.voltage_warning),
                "expected dead < low < warning",
            )
        if not self.rssi_no_signal < self.rssi_poor < self.rssi_fair:
            raise ConfigurationError(
                "rssi",
                (self.rssi_no_signal, self.rssi_poor, self.rssi_fair),
                "expected no_signal < poor < fair",
            )
        if not 0 < self.offline_sleep_hours < self.offline_extended_hours:
            raise ConfigurationError(
                "offline_hours",
                (self.offline_sleep_hours, self.offline_extended_hours),
                "expected 0 < sleep < extended",
            )
        if self.gps_stale_hours <= 0:
            raise ConfigurationError("gps_stale_hours", self.gps_stale_hours, "must be > 0")
        if self.lookback_days <= 0:
            raise ConfigurationError("lookback_days", self.lookback_days, "must be > 0")

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = sorted(value) if isinstance(value, frozenset) else value
        return result


DEFAULT_THRESHOLDS = DiagnosticThresholds()

# env var → field (numeric thresholds only; code sets come from YAML)
ENV_OVERRIDES = {
    "DHD_VOLTAGE_DEAD": "voltage_dead",
    "DHD_VOLTAGE_LOW": "voltage_low",
    "DHD_VOLTAGE_WARNING": "voltage_warning",
    "DHD_RSSI_NO_SIGNAL": "rssi_no_signal",
    "DHD_RSSI_POOR": "rssi_poor",
    "DHD_RSSI_FAIR": "rssi_fair",
    "DHD_OFFLINE_SLEEP_HOURS": "offline_sleep_hours",
    "DHD_OFFLINE_EXTENDED_HOURS": "offline_extended_hours",
    "DHD_GPS_STALE_HOURS": "gps_stale_hours",
    "DHD_LOOKBACK_DAYS": "lookback_days",
}

_CODE_SET_FIELDS = {"hardware_fault_codes", "oem_fault_codes"}
_INT_FIELDS = {"lookback_days", "power_fault_code", "installation_fault_code"}


def _coerce(key: str, value: Any) -> Any:
    try:
        if key in _CODE_SET_FIELDS:
            if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
                raise TypeError("expected a list of codes")
            return frozenset(int(code) for code in value)
        if key in _INT_FIELDS:
            return int(value)
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(key, value, str(e)) from None


def _load_yaml_overrides(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError("DHD_THRESHOLDS_FILE", str(path), "file not found")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError("DHD_THRESHOLDS_FILE", str(path), str(e)) from None

    if not isinstance(data, dict):
        raise ConfigurationError("DHD_THRESHOLDS_FILE", str(path), "expected a mapping")

    known = {f.name for f in fields(DiagnosticThresholds)}
    overrides = {}
    for key, value in data.items():
        if key not in known:
            raise ConfigurationError(key, value, "unknown threshold")
        overrides[key] = _coerce(key, value)
    return overrides


def load_thresholds(
    yaml_path: Optional[Union[str, Path]] = None,
    load_env_file: bool = True,
) -> DiagnosticThresholds:
    """
    Build thresholds from defaults, YAML file and environment.

    Args:
        yaml_path: Optional YAML file; falls back to DHD_THRESHOLDS_FILE
        load_env_file: Load a .env file into the environment first

    Returns:
        Frozen DiagnosticThresholds

    Raises:
        ConfigurationError: on unparseable or inconsistent values
    """
    if load_env_file:
        load_dotenv()

    overrides: Dict[str, Any] = {}

    path = yaml_path or _get_env("DHD_THRESHOLDS_FILE")
    if path:
        overrides.update(_load_yaml_overrides(Path(path)))

    for env_key, field_name in ENV_OVERRIDES.items():
        if not _get_env(env_key).strip():
            continue
        if field_name in _INT_FIELDS:
            overrides[field_name] = _get_env_int(env_key, 0)
        else:
            overrides[field_name] = _get_env_float(env_key, 0.0)

    thresholds = replace(DEFAULT_THRESHOLDS, **overrides)
    if overrides:
        logger.info("thresholds_overridden", fields=sorted(overrides))
    return thresholds


_cached_thresholds: Optional[DiagnosticThresholds] = None


def get_thresholds() -> DiagnosticThresholds:
    """Process-wide thresholds, loaded on first use."""
    global _cached_thresholds

    if _cached_thresholds is None:
        _cached_thresholds = load_thresholds()
    return _cached_thresholds


def reset_thresholds_cache() -> None:
    """Forget the cached thresholds (tests, config reload)."""
    global _cached_thresholds
    _cached_thresholds = None
