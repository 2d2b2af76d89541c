"""
Root Cause Rules

The drill-down decision tree, expressed as an ordered table of independent
rules. Each rule looks at the shared RuleContext and either returns a Finding
or None. The analyzer walks DEFAULT_RULES in order and assigns ranks only to
rules that fire, so rank reflects check priority, not strength of evidence.

    #  Category       Confidence  Severity
    1  UNPLUGGED      95          CRITICAL
    2  HARDWARE       90          CRITICAL
    3  POWER          75-90       WARNING / CRITICAL
    4  INSTALLATION   75          WARNING
    5  GPS            60-90       WARNING / CRITICAL
    6  CELLULAR       55-85       WARNING / CRITICAL
    7  FIRMWARE       95          WARNING (bootloader) / INFO (pending config)
    8  OEM            85          INFO
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from device_health.constants import Category, DiagnosticId, Severity
from device_health.models.diagnostic_models import Device, DrillDownData
from device_health.services.signal_helpers import (
    fault_codes,
    failure_mode_codes,
    hours_since,
    latest_is_positive,
    latest_value,
    newest_position,
    round_half_up,
)
from device_health.settings import DiagnosticThresholds


# ═══════════════════════════════════════════════════════════════════════════════
# REMEDIATION ACTIONS
# ═══════════════════════════════════════════════════════════════════════════════

CATEGORY_ACTIONS: Mapping[Category, Tuple[str, ...]] = MappingProxyType({
    Category.UNPLUGGED: (
        "Verify the GO device is firmly seated in the OBD-II port.",
        "Check for physical damage to the connector or port.",
        "Inspect the wiring harness if a T-harness is used.",
        "If recently serviced, confirm the device was reconnected.",
    ),
    Category.HARDWARE: (
        "Contact Geotab support to initiate an RMA (Return Merchandise Authorization).",
        "Check for water damage or physical tampering on the device.",
        "Document the fault codes for the support case.",
        "Prepare a replacement device for swap.",
    ),
    Category.POWER: (
        "Test the vehicle battery with a multimeter or battery tester.",
        "Check for parasitic drains (aftermarket accessories left on).",
        "Verify the alternator is charging properly.",
        "If the vehicle is stored long-term, consider a battery maintainer.",
    ),
    Category.INSTALLATION: (
        "Re-seat the GO device in the OBD-II port.",
        "Inspect the T-harness connections for corrosion or loose pins.",
        "Verify the correct harness type is used for this vehicle.",
        "Check that CAN bus wiring is not pinched or damaged.",
    ),
    Category.GPS: (
        "Verify the GPS antenna connection on the device.",
        "Move the vehicle to an open-sky area and check for GPS lock.",
        "Check if a metallic windshield tint is blocking GPS signals.",
        "If using an external antenna, inspect the cable and mount.",
    ),
    Category.CELLULAR: (
        "Check the vehicle's typical operating area for cellular coverage.",
        "Verify the device's SIM card is properly seated.",
        "Try a power cycle by disconnecting and reconnecting the device.",
        "If in a known dead zone, wait for the vehicle to move to coverage.",
    ),
    Category.FIRMWARE: (
        "If bootloader failed, contact Geotab support for a manual firmware push.",
        "Ensure the device has stable power and connectivity for firmware updates.",
        "For pending config, the device will auto-update on next check-in.",
        "Avoid making additional config changes until the current update completes.",
    ),
    Category.OEM: (
        "Check if aftermarket steering wheel controls are installed.",
        "Verify the T-harness is compatible with this vehicle make/model.",
        "Consult the Geotab vehicle compatibility list for known issues.",
        "These faults generally do not affect core tracking functionality.",
    ),
})


# ═══════════════════════════════════════════════════════════════════════════════
# CONTEXT & FINDINGS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RuleContext:
    """Input bundle shared by every rule of one analysis"""

    device: Optional[Device]
    drill_data: DrillDownData
    is_communicating: bool
    hours_offline: float
    now: datetime
    thresholds: DiagnosticThresholds
    codes: FrozenSet[int] = field(default_factory=frozenset)
    failure_modes: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        device: Optional[Device],
        drill_data: DrillDownData,
        is_communicating: bool,
        hours_offline: float,
        now: datetime,
        thresholds: DiagnosticThresholds,
    ) -> "RuleContext":
        return cls(
            device=device,
            drill_data=drill_data,
            is_communicating=is_communicating,
            hours_offline=hours_offline,
            now=now,
            thresholds=thresholds,
            codes=frozenset(fault_codes(drill_data.faults)),
            failure_modes=frozenset(failure_mode_codes(drill_data.faults)),
        )

    def latest(self, diagnostic_id: DiagnosticId) -> Optional[float]:
        return latest_value(self.drill_data.series_for(diagnostic_id))

    def flagged(self, diagnostic_id: DiagnosticId) -> bool:
        return latest_is_positive(self.drill_data.series_for(diagnostic_id))


@dataclass(frozen=True)
class Finding:
    """What a fired rule contributes; the analyzer adds rank and actions"""

    category: Category
    confidence: int
    severity: Severity
    explanation: str
    label: str


class RootCauseRule(ABC):
    """Base class: one ordered check of the decision table"""

    category: Category = Category.HEALTHY
    label: str = ""

    @property
    def actions(self) -> Tuple[str, ...]:
        return CATEGORY_ACTIONS.get(self.category, ())

    @abstractmethod
    def evaluate(self, ctx: RuleContext) -> Optional[Finding]:
        """Return a Finding when the rule fires, else None"""

    def _finding(
        self, confidence: int, severity: Severity, explanation: str, label: str = ""
    ) -> Finding:
        return Finding(
            category=self.category,
            confidence=confidence,
            severity=severity,
            explanation=explanation,
            label=label or self.label,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.category.value}>"


# ═══════════════════════════════════════════════════════════════════════════════
# RULES (evaluation order = DEFAULT_RULES order)
# ═══════════════════════════════════════════════════════════════════════════════


class UnpluggedRule(RootCauseRule):
    category = Category.UNPLUGGED
    label = "Unplugged"

    def evaluate(self, ctx: RuleContext) -> Optional[Finding]:
        if not ctx.flagged(DiagnosticId.UNPLUGGED):
            return None
        return self._finding(
            95,
            Severity.CRITICAL,
            "The device has reported an unplugged event. The GO device connector "
            "may have been removed from the vehicle's OBD-II port or power source.",
        )


class HardwareRule(RootCauseRule):
    category = Category.HARDWARE
    label = "Hardware Failure"

    def evaluate(self, ctx: RuleContext) -> Optional[Finding]:
        has_fault = bool(ctx.codes & ctx.thresholds.hardware_fault_codes)
        has_flash_errors = ctx.flagged(DiagnosticId.FLASH_ERROR)
        if not (has_fault or has_flash_errors):
            return None

        explanation = "Hardware-level faults detected."
        if has_flash_errors:
            explanation += (
                " Flash memory errors indicate possible internal component failure."
            )
        if has_fault:
            explanation += (
                " Fault codes suggest the device may require replacement (RMA)."
            )
        return self._finding(90, Severity.CRITICAL, explanation)


class PowerRule(RootCauseRule):
    category = Category.POWER
    label = "Low Battery"

    def evaluate(self, ctx: RuleContext) -> Optional[Finding]:
        t = ctx.thresholds
        has_fault = t.power_fault_code in ctx.failure_modes
        voltage = ctx.latest(DiagnosticId.VOLTAGE)
        low_reading = voltage is not None and voltage < t.voltage_warning
        if not (has_fault or low_reading):
            return None

        confidence, severity = 75, Severity.WARNING
        if voltage is not None and voltage < t.voltage_dead:
            confidence, severity = 90, Severity.CRITICAL
            explanation = (
                f"Vehicle battery voltage is critically low ({voltage:.1f}V). "
                "The battery may be dead or disconnected."
            )
        elif voltage is not None and voltage < t.voltage_low:
            confidence, severity = 85, Severity.CRITICAL
            explanation = (
                f"Vehicle battery voltage is very low ({voltage:.1f}V). "
                "The battery is likely failing or being drained."
            )
        elif low_reading:
            explanation = (
                f"Vehicle battery voltage is below normal ({voltage:.1f}V). "
                "This may indicate a weak battery or parasitic drain."
            )
        elif voltage is not None:
            explanation = (
                f"Low voltage fault code detected. The latest voltage reading "
                f"({voltage:.1f}V) is within range, so the drop may be intermittent."
            )
        else:
            explanation = (
                "Low voltage fault code detected, but no recent voltage readings "
                "are available."
            )

        cranking = ctx.latest(DiagnosticId.CRANKING_VOLTAGE)
        if cranking is not None and cranking < t.voltage_low:
            explanation += (
                f" Cranking voltage was also low ({cranking:.1f}V), suggesting "
                "battery or starter issues."
            )

        return self._finding(confidence, severity, explanation)


class InstallationRule(RootCauseRule):
    category = Category.INSTALLATION
    label = "Loose Install"

    def evaluate(self, ctx: RuleContext) -> Optional[Finding]:
        has_fault = ctx.thresholds.installation_fault_code in ctx.failure_modes
        has_can_issue = ctx.flagged(DiagnosticId.CAN_INIT_FAIL) or ctx.flagged(
            DiagnosticId.CAN_SHORT
        )
        if not (has_fault or has_can_issue):
            return None

        explanation = "Installation issues detected."
        if has_fault:
            explanation += (
                " The device reported a bad-install fault, suggesting it is not "
                "properly connected to the vehicle."
            )
        if has_can_issue:
            explanation += (
                " CAN bus communication problems indicate a wiring or connector issue."
            )
        return self._finding(75, Severity.WARNING, explanation)


class GpsRule(RootCauseRule):
    category = Category.GPS
    label = "GPS Issue"

    def evaluate(self, ctx: RuleContext) -> Optional[Finding]:
        if ctx.flagged(DiagnosticId.GPS_ANTENNA_UNPLUGGED) or ctx.flagged(
            DiagnosticId.GPS_ANTENNA_SHORT
        ):
            return self._finding(
                90,
                Severity.CRITICAL,
                "GPS antenna fault detected (unplugged or short circuit). "
                "The device cannot acquire satellite position.",
            )
        if ctx.flagged(DiagnosticId.GPS_NOT_RESPONDING):
            return self._finding(
                80,
                Severity.WARNING,
                "The GPS module is not responding. This may be a hardware issue "
                "or severe signal blockage.",
            )
        if self._is_stale(ctx):
            return self._finding(
                60,
                Severity.WARNING,
                "The device is communicating but GPS data is stale. The device may "
                "be in a location with poor sky visibility (underground parking, "
                "dense urban canyon).",
            )
        return None

    @staticmethod
    def _is_stale(ctx: RuleContext) -> bool:
        if not ctx.is_communicating:
            return False
        newest = newest_position(ctx.drill_data.positions)
        if newest is None:
            return False
        return hours_since(newest, ctx.now) > ctx.thresholds.gps_stale_hours


class CellularRule(RootCauseRule):
    """First matching condition wins; later ones are not checked."""

    category = Category.CELLULAR
    label = "Connectivity Issue"

    def evaluate(self, ctx: RuleContext) -> Optional[Finding]:
        t = ctx.thresholds
        rssi = ctx.latest(DiagnosticId.CELLULAR_RSSI)

        if rssi is not None and rssi < t.rssi_no_signal:
            return self._finding(
                85,
                Severity.CRITICAL,
                f"Cellular signal is at no-signal level ({rssi:g} dBm). "
                "The device cannot communicate with the server.",
            )
        if rssi is not None and rssi < t.rssi_poor:
            return self._finding(
                70,
                Severity.WARNING,
                f"Cellular signal is poor ({rssi:g} dBm). "
                "Data uploads may be delayed or incomplete.",
            )
        if ctx.flagged(DiagnosticId.INTERMITTENT_CONNECTION):
            return self._finding(
                65,
                Severity.WARNING,
                "Intermittent connectivity detected. The device is cycling between "
                "connected and disconnected states.",
            )
        if not ctx.is_communicating and ctx.hours_offline > t.offline_sleep_hours:
            extended = ctx.hours_offline > t.offline_extended_hours
            if math.isinf(ctx.hours_offline):
                explanation = "The device has no recorded last communication time."
            else:
                explanation = (
                    f"The device has been offline for "
                    f"{round_half_up(ctx.hours_offline)} hours."
                )
            if extended:
                explanation += (
                    " Extended offline periods may indicate the vehicle is in a "
                    "no-coverage area, the device has lost power, or there is a "
                    "cellular modem issue."
                )
            return self._finding(
                60, Severity.CRITICAL if extended else Severity.WARNING, explanation
            )
        return None


class FirmwareRule(RootCauseRule):
    category = Category.FIRMWARE

    def evaluate(self, ctx: RuleContext) -> Optional[Finding]:
        if ctx.flagged(DiagnosticId.BOOTLOADER_FAIL):
            return self._finding(
                95,
                Severity.WARNING,
                "A bootloader update has failed on this device. The device may not "
                "be running the expected firmware version.",
                label="Firmware Failure",
            )
        device = ctx.device
        if device is not None and device.has_pending_config:
            return self._finding(
                95,
                Severity.INFO,
                f"The device has a pending configuration update (parameter version "
                f"{device.parameter_version} vs on-device "
                f"{device.parameter_version_on_device}). It will apply on next "
                "communication.",
                label="Firmware Pending",
            )
        return None


class OemRule(RootCauseRule):
    category = Category.OEM
    label = "OEM Issue"

    def evaluate(self, ctx: RuleContext) -> Optional[Finding]:
        if not ctx.failure_modes & ctx.thresholds.oem_fault_codes:
            return None
        return self._finding(
            85,
            Severity.INFO,
            "OEM-related fault codes (SWC) detected. These typically relate to "
            "vehicle-specific steering-wheel-control or aftermarket integration "
            "issues.",
        )


DEFAULT_RULES: Tuple[RootCauseRule, ...] = (
    UnpluggedRule(),
    HardwareRule(),
    PowerRule(),
    InstallationRule(),
    GpsRule(),
    CellularRule(),
    FirmwareRule(),
    OemRule(),
)
