"""Service layer: classification, root cause analysis and view data."""

from .fleet_classifier import FleetClassifier
from .health_score import compute_health_score
from .root_cause_analyzer import RootCauseAnalyzer

__all__ = [
    "FleetClassifier",
    "RootCauseAnalyzer",
    "compute_health_score",
]
