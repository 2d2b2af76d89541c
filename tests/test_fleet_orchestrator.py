"""
Unit Tests for the Fleet Orchestrator

Tests validate:
- Devices without a status snapshot are skipped
- Faults are routed to their device
- Drill-down diagnosis for classified devices only
"""

import pytest

from device_health.constants import Category, DiagnosticId, Severity
from device_health.exceptions import DeviceNotFoundError
from device_health.orchestrators.fleet_orchestrator import (
    FleetOrchestrator,
    OrchestratorConfig,
    build_fleet_snapshot,
)
from device_health.repositories.device_repository import DeviceRepository
from device_health.settings import DiagnosticThresholds
from tests.fixtures.device_fixtures import (
    NOW,
    make_device,
    make_drill,
    make_fault,
    make_status,
    series,
)


@pytest.fixture
def orchestrator():
    repo = DeviceRepository()
    repo.load(
        [
            make_device("b1"),
            make_device("b2", parameter_version=8, parameter_version_on_device=6),
            make_device("b3"),
        ]
    )
    return FleetOrchestrator(repo, config=OrchestratorConfig(thresholds=DiagnosticThresholds()))


@pytest.fixture
def snapshot():
    return build_fleet_snapshot(
        [
            make_status("b1"),
            make_status("b2", communicating=False, hours=100),
            make_status("b404"),
        ],
        [make_fault(diagnostic=450, device_id="b1")],
    )


class TestClassifyFleet:
    def test_skips_devices_without_status(self, orchestrator, snapshot):
        rows = orchestrator.classify_fleet(snapshot, NOW)
        assert [row.device.id for row in rows] == ["b1", "b2"]

    def test_faults_routed_to_device(self, orchestrator, snapshot):
        rows = {row.device.id: row for row in orchestrator.classify_fleet(snapshot, NOW)}

        assert rows["b1"].classification.primary_issue == Category.HARDWARE
        assert [i.category for i in rows["b2"].classification.issues] == [
            Category.OFFLINE,
            Category.FIRMWARE,
        ]
        assert rows["b2"].classification.severity == Severity.CRITICAL

    def test_row_to_dict(self, orchestrator, snapshot):
        row = orchestrator.classify_fleet(snapshot, NOW)[0]
        data = row.to_dict()

        assert data["device_id"] == "b1"
        assert data["primary_issue"] == "hardware"
        assert data["issue_label"] == "Hardware Failure"
        assert data["health_score"] == 60
        assert data["issues"][0]["label"] == "Hardware Failure"


class TestDiagnose:
    def test_diagnose_classified_device(self, orchestrator, snapshot):
        orchestrator.classify_fleet(snapshot, NOW)
        drill = make_drill({DiagnosticId.VOLTAGE: series(6.2)})

        diagnosis = orchestrator.diagnose("b1", drill, NOW)

        assert diagnosis.device.id == "b1"
        assert diagnosis.analysis.root_causes[0].category == Category.POWER
        assert diagnosis.to_dict()["root_causes"][0]["confidence"] == 90

    def test_diagnose_without_drill_data(self, orchestrator, snapshot):
        orchestrator.classify_fleet(snapshot, NOW)
        diagnosis = orchestrator.diagnose("b2", now=NOW)

        assert [rc.category for rc in diagnosis.analysis.root_causes] == [
            Category.CELLULAR,
            Category.FIRMWARE,
        ]

    def test_unclassified_device(self, orchestrator, snapshot):
        orchestrator.classify_fleet(snapshot, NOW)
        with pytest.raises(DeviceNotFoundError):
            orchestrator.diagnose("b3", make_drill(), NOW)

    def test_unknown_device(self, orchestrator):
        with pytest.raises(DeviceNotFoundError) as exc_info:
            orchestrator.diagnose("nope", make_drill(), NOW)
        assert exc_info.value.device_id == "nope"
