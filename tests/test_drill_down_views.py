"""
Unit Tests for drill-down view data

Tests validate:
- Fault history ordering, limit, severity and state
- Chart series ordering and threshold lines
- Firmware and device info formatting
"""

import pytest

from device_health.constants import Severity
from device_health.models.diagnostic_models import FaultState
from device_health.services.drill_down_views import (
    chart_series,
    device_info,
    fault_history,
    fault_severity,
    format_firmware,
)
from device_health.settings import DiagnosticThresholds
from tests.fixtures.device_fixtures import make_device, make_fault, make_status, series


class TestFaultHistory:
    def test_newest_first(self):
        faults = [
            make_fault(diagnostic=135, hours=10),
            make_fault(diagnostic=450, hours=1),
            make_fault(diagnostic=287, hours=5),
        ]
        rows = fault_history(faults)
        assert [r.code for r in rows] == ["450", "287", "135"]

    def test_limit(self):
        faults = [make_fault(diagnostic=100 + i, hours=i + 1) for i in range(60)]
        rows = fault_history(faults)

        assert len(rows) == 50
        assert rows[0].code == "100"
        assert len(fault_history(faults, limit=5)) == 5

    def test_missing_timestamp_last(self):
        faults = [make_fault(diagnostic=1, timestamp=None), make_fault(diagnostic=2, hours=3)]
        assert [r.code for r in fault_history(faults)] == ["2", "1"]

    def test_row_fields(self):
        fault = make_fault(
            diagnostic=128,
            diagnostic_name="Flash memory failure",
            failure_mode_state=FaultState.INACTIVE,
        )
        row = fault_history([fault])[0]

        assert row.description == "Flash memory failure"
        assert row.severity == Severity.CRITICAL
        assert row.state == FaultState.INACTIVE
        assert row.to_dict()["state"] == "Inactive"

    def test_description_falls_back_to_code(self):
        row = fault_history([make_fault(diagnostic="DiagnosticEngineLightId")])[0]
        assert row.description == "DiagnosticEngineLightId"
        assert row.severity == Severity.INFO

    @pytest.mark.parametrize(
        "diagnostic,failure_mode,expected",
        [
            (467, None, Severity.CRITICAL),
            (135, None, Severity.WARNING),
            (287, None, Severity.WARNING),
            (488, None, Severity.INFO),
            (None, 450, Severity.INFO),
        ],
    )
    def test_severity_by_diagnostic_code(self, diagnostic, failure_mode, expected):
        fault = make_fault(diagnostic=diagnostic, failure_mode=failure_mode)
        assert fault_severity(fault, DiagnosticThresholds()) == expected


class TestCharts:
    def test_voltage_chart(self):
        points = tuple(reversed(series(12.1, 11.8, 12.6)))
        chart = chart_series(points, "voltage")

        assert [p.value for p in chart.points] == [12.1, 11.8, 12.6]
        assert [t.value for t in chart.thresholds] == [7.0, 9.0, 11.0]
        assert [t.label for t in chart.thresholds] == ["Dead (7V)", "Low (9V)", "Warning (11V)"]
        assert (chart.y_min, chart.y_max) == (0.0, 16.0)

    def test_rssi_chart(self):
        chart = chart_series(series(-80), "rssi")

        assert [t.label for t in chart.thresholds] == ["Poor (-95)", "Fair (-85)"]
        assert (chart.y_min, chart.y_max) == (-120.0, -50.0)

    def test_threshold_outside_axis_dropped(self):
        thresholds = DiagnosticThresholds(
            voltage_dead=7.0, voltage_low=9.0, voltage_warning=17.0
        )
        chart = chart_series(series(12.0), "voltage", thresholds)
        assert [t.value for t in chart.thresholds] == [7.0, 9.0]

    def test_empty_series(self):
        chart = chart_series(None, "voltage")
        assert chart.is_empty
        assert chart.to_dict()["points"] == []

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            chart_series(series(1.0), "temperature")


class TestDeviceInfo:
    @pytest.mark.parametrize(
        "major,minor,expected",
        [(32, 4, "32.4"), (32, None, "32.0"), (None, 4, "N/A")],
    )
    def test_format_firmware(self, major, minor, expected):
        device = make_device(major_version=major, minor_version=minor)
        assert format_firmware(device) == expected

    def test_device_info(self):
        device = make_device(product_id=120, parameter_version=9, parameter_version_on_device=7)
        info = device_info(device, make_status(latitude=43.123456, longitude=-79.5))

        assert info["Product"] == "GO120"
        assert info["Firmware"] == "32.1"
        assert info["Update Pending"] is True
        assert info["Communicating"] == "Yes"
        assert info["Position"] == "43.1235, -79.5000"

    def test_device_info_without_status(self):
        info = device_info(make_device(product_id=None), None)

        assert info["Product"] == "N/A"
        assert info["Communicating"] == "No"
        assert info["Last Communication"] == "N/A"
        assert info["Position"] == "N/A"
