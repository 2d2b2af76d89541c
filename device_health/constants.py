"""
═══════════════════════════════════════════════════════════════════════════════
DEVICE HEALTH CONSTANTS - Diagnostic ids, fault codes and thresholds
═══════════════════════════════════════════════════════════════════════════════

Single source of truth for:
- The 16 StatusData diagnostic known-ids tracked per device
- Fault codes per issue category
- Voltage / RSSI / offline thresholds (defaults)
- Severity tiers, issue categories and health score deductions

Everything here is static. Runtime overrides of the numeric thresholds live in
`device_health.settings.DiagnosticThresholds`, which defaults to these values.

Author: Device Health Team
Version: 1.0.0
═══════════════════════════════════════════════════════════════════════════════
"""

from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple


# ═══════════════════════════════════════════════════════════════════════════════
# DIAGNOSTIC IDENTIFIERS
# ═══════════════════════════════════════════════════════════════════════════════


class DiagnosticId(str, Enum):
    """StatusData diagnostic known-ids (16 total)"""

    # Power
    VOLTAGE = "DiagnosticGoDeviceVoltageId"
    CRANKING_VOLTAGE = "DiagnosticCrankingVoltageId"

    # GPS
    GPS_NOT_RESPONDING = "DiagnosticGpsNotRespondingId"
    GPS_ANTENNA_UNPLUGGED = "DiagnosticGpsAntennaUnpluggedId"
    GPS_ANTENNA_SHORT = "DiagnosticGpsAntennaShortCircuitId"

    # Cellular
    CELLULAR_RSSI = "DiagnosticCellularRssiId"
    INTERMITTENT_CONNECTION = "DiagnosticIntermittentConnectionCommunicationsId"

    # Harness
    HARNESS_STANDARD = "DiagnosticStandardHarnessDetectedId"
    HARNESS_6PIN = "DiagnosticHarnessDetected6PinId"
    HARNESS_9PIN = "DiagnosticHarnessDetected9PinId"

    # CAN bus
    CAN_INIT_FAIL = "DiagnosticCanBusFailedToInitializeId"
    CAN_SHORT = "DiagnosticCanBusShortId"
    CAN_DISABLED = "DiagnosticCanBusDisabledId"

    # Device
    UNPLUGGED = "DiagnosticDeviceHasBeenUnpluggedId"
    FLASH_ERROR = "DiagnosticFlashErrorCountId"
    BOOTLOADER_FAIL = "DiagnosticBootloaderUpdateHasFailedId"


# ═══════════════════════════════════════════════════════════════════════════════
# SEVERITY & CATEGORIES
# ═══════════════════════════════════════════════════════════════════════════════


class Severity(str, Enum):
    """Severity tiers, per issue and as overall device status"""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    HEALTHY = "healthy"


class Category(str, Enum):
    """Issue categories"""

    UNPLUGGED = "unplugged"
    HARDWARE = "hardware"
    POWER = "power"
    INSTALLATION = "installation"
    GPS = "gps"
    CELLULAR = "cellular"
    FIRMWARE = "firmware"
    OEM = "oem"
    OFFLINE = "offline"
    HEALTHY = "healthy"


# Primary issue selection scans tiers in this order
SEVERITY_ORDER: Tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.WARNING,
    Severity.INFO,
)

# Sort rank used by the fleet table (lower = worse)
SEVERITY_RANK: Mapping[Severity, int] = MappingProxyType(
    {
        Severity.CRITICAL: 0,
        Severity.WARNING: 1,
        Severity.INFO: 2,
        Severity.HEALTHY: 3,
    }
)

SCORE_DEDUCTIONS: Mapping[Severity, int] = MappingProxyType(
    {
        Severity.CRITICAL: 40,
        Severity.WARNING: 20,
        Severity.INFO: 5,
    }
)


# ═══════════════════════════════════════════════════════════════════════════════
# FAULT CODES
# ═══════════════════════════════════════════════════════════════════════════════

# Flash fail, RAM failure, RMA required, water damage (x2)
HARDWARE_FAULT_CODES: FrozenSet[int] = frozenset({128, 297, 450, 467, 468})
POWER_FAULT_CODE = 135  # Low voltage
INSTALLATION_FAULT_CODE = 287  # Bad install
OEM_FAULT_CODES: FrozenSet[int] = frozenset({488, 491})  # SWC issues


# ═══════════════════════════════════════════════════════════════════════════════
# DEFAULT THRESHOLDS
# ═══════════════════════════════════════════════════════════════════════════════

# Vehicle battery voltage (V)
VOLTAGE_DEAD = 7.0
VOLTAGE_LOW = 9.0
VOLTAGE_WARNING = 11.0

# Cellular signal strength (dBm)
RSSI_NO_SIGNAL = -113.0
RSSI_POOR = -95.0
RSSI_FAIR = -85.0

# Hours without contact
OFFLINE_NORMAL_SLEEP_HOURS = 24.0
OFFLINE_EXTENDED_HOURS = 72.0

# Newest position report older than this while communicating = stale GPS
GPS_STALE_HOURS = 4.0

# Fault / StatusData window fetched by the data-access layer
LOOKBACK_DAYS = 30

# Offline penalty: 5 points per extra day, capped
OFFLINE_PENALTY_PER_DAY = 5
OFFLINE_PENALTY_CAP = 20
