"""
Fleet Orchestrator

Thin coordination layer between the device repository and the two engines:

- classify_fleet(): one FleetClassifier pass per cached device that has a
  status snapshot (devices without one are skipped)
- diagnose(): RootCauseAnalyzer run for one selected device, using the status
  captured during the last fleet classification

Fetching the snapshot and drill-down data is the caller's job; everything here
works on data already in memory.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import structlog

from device_health.exceptions import DeviceNotFoundError
from device_health.models.diagnostic_models import (
    DeviceDiagnosis,
    DeviceHealth,
    DrillDownData,
    Fault,
    FleetSnapshot,
    StatusSnapshot,
)
from device_health.repositories.device_repository import (
    DeviceRepository,
    index_faults_by_device,
    index_status_by_device,
)
from device_health.services.fleet_classifier import FleetClassifier
from device_health.services.root_cause_analyzer import RootCauseAnalyzer
from device_health.services.signal_helpers import ensure_utc, utc_now
from device_health.settings import DiagnosticThresholds, get_thresholds

logger = structlog.get_logger(__name__)


@dataclass
class OrchestratorConfig:
    """Configuration for FleetOrchestrator."""

    thresholds: Optional[DiagnosticThresholds] = None


def build_fleet_snapshot(
    statuses: Iterable[StatusSnapshot], faults: Iterable[Fault]
) -> FleetSnapshot:
    """Index a fleet fetch (status infos + faults) by device id."""
    return FleetSnapshot(
        statuses=index_status_by_device(statuses),
        faults_by_device=index_faults_by_device(faults),
    )


class FleetOrchestrator:
    """
    Combines the device cache with the fleet classifier and root cause analyzer.

    Example Usage:
        orchestrator = FleetOrchestrator(repository)
        rows = orchestrator.classify_fleet(snapshot)
        diagnosis = orchestrator.diagnose(rows[0].device.id, drill_data)
    """

    def __init__(
        self,
        repository: DeviceRepository,
        classifier: Optional[FleetClassifier] = None,
        analyzer: Optional[RootCauseAnalyzer] = None,
        config: Optional[OrchestratorConfig] = None,
    ):
        self.repository = repository
        self.config = config or OrchestratorConfig()
        thresholds = self.config.thresholds or get_thresholds()

        self.classifier = classifier or FleetClassifier(thresholds)
        self.analyzer = analyzer or RootCauseAnalyzer(thresholds)

        self._statuses: Dict[str, StatusSnapshot] = {}

    def classify_fleet(
        self, snapshot: FleetSnapshot, now: Optional[datetime] = None
    ) -> List[DeviceHealth]:
        """
        Classify every cached device that has a status snapshot.

        Args:
            snapshot: Indexed fleet fetch
            now: Evaluation time shared by every device

        Returns:
            One DeviceHealth per classified device, in cache order
        """
        now = ensure_utc(now) if now else utc_now()
        rows: List[DeviceHealth] = []
        self._statuses = {}
        skipped = 0

        for device in self.repository.get_all_devices():
            status = snapshot.statuses.get(device.id)
            if status is None:
                skipped += 1
                continue

            self._statuses[device.id] = status
            faults = snapshot.faults_by_device.get(device.id, ())
            classification = self.classifier.classify(status, faults, device, now)
            rows.append(DeviceHealth(device, status, classification))

        logger.info("fleet_classified", devices=len(rows), skipped=skipped)
        return rows

    def diagnose(
        self,
        device_id: str,
        drill_data: Optional[DrillDownData] = None,
        now: Optional[datetime] = None,
    ) -> DeviceDiagnosis:
        """
        Run the root cause analysis for one device of the last fleet pass.

        Raises:
            DeviceNotFoundError: device not cached or not classified
        """
        device = self.repository.get_device(device_id)
        status = self._statuses.get(device_id)
        if device is None or status is None:
            logger.warning("diagnose_unknown_device", device_id=device_id)
            raise DeviceNotFoundError(device_id)

        drill_data = drill_data or DrillDownData()
        analysis = self.analyzer.analyze(device, status, drill_data, now)
        return DeviceDiagnosis(device, status, analysis, drill_data)
