"""Orchestrator layer for coordinating services and repositories."""

from .fleet_orchestrator import FleetOrchestrator, OrchestratorConfig

__all__ = [
    "FleetOrchestrator",
    "OrchestratorConfig",
]
