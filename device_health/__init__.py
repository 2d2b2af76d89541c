"""
Device health diagnostics for telematics fleets.

Classifies every device of a fleet into a severity, primary issue and 0-100
health score, and explains the ranked root causes of a single device from its
drill-down telemetry.
"""

__version__ = "1.0.0"

from device_health.services.fleet_classifier import FleetClassifier
from device_health.services.root_cause_analyzer import RootCauseAnalyzer
from device_health.settings import DiagnosticThresholds, get_thresholds

__all__ = [
    "DiagnosticThresholds",
    "FleetClassifier",
    "RootCauseAnalyzer",
    "get_thresholds",
    "__version__",
]
