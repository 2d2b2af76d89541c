"""
Integration Tests for the device-health CLI

Runs main() over JSON exports written to tmp_path and checks the exit code
and printed output.
"""

import json
import logging

import pytest
import structlog

from device_health.cli import main


@pytest.fixture(autouse=True)
def restore_logging():
    """configure_logging() replaces root handlers; put pytest's back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def export_files(tmp_path, raw_devices, raw_statuses, raw_faults, raw_drill):
    paths = {}
    for name, data in [
        ("devices", raw_devices),
        ("status", raw_statuses),
        ("faults", raw_faults),
        ("drill", raw_drill),
    ]:
        path = tmp_path / f"{name}.json"
        path.write_text(json.dumps(data))
        paths[name] = str(path)
    return paths


def fleet_args(paths, *extra):
    return [
        "fleet",
        "--devices", paths["devices"],
        "--status", paths["status"],
        "--faults", paths["faults"],
        *extra,
    ]


def diagnose_args(paths, device_id, *extra):
    return [
        "diagnose",
        "--devices", paths["devices"],
        "--status", paths["status"],
        "--faults", paths["faults"],
        "--drill", paths["drill"],
        "--device-id", device_id,
        *extra,
    ]


class TestFleetCommand:
    def test_json_output(self, export_files, capsys):
        assert main(fleet_args(export_files, "--json")) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["tiles"]["total"] == 2
        assert payload["tiles"]["battery"] == 1
        assert payload["tiles"]["offline"] == 1

        devices = {d["device_id"]: d for d in payload["devices"]}
        assert set(devices) == {"b1", "b2"}
        assert devices["b1"]["primary_issue"] == "power"
        assert devices["b2"]["severity"] == "critical"
        assert devices["b2"]["issue_label"].startswith("Offline >")
        assert [i["category"] for i in devices["b2"]["issues"]] == ["offline", "firmware"]

    def test_sorted_by_severity(self, export_files, capsys):
        main(fleet_args(export_files, "--json"))
        payload = json.loads(capsys.readouterr().out)
        assert [d["device_id"] for d in payload["devices"]] == ["b2", "b1"]

    def test_tile_filter(self, export_files, capsys):
        assert main(fleet_args(export_files, "--tile", "offline", "--json")) == 0
        payload = json.loads(capsys.readouterr().out)
        assert [d["device_id"] for d in payload["devices"]] == ["b2"]

    def test_text_output(self, export_files, capsys):
        assert main(fleet_args(export_files, "--search", "truck")) == 0

        out = capsys.readouterr().out
        assert "Total: 2" in out
        assert "Truck 101" in out
        assert "Van 202" not in out


class TestDiagnoseCommand:
    def test_json_output(self, export_files, capsys):
        assert main(diagnose_args(export_files, "b1", "--json")) == 0

        payload = json.loads(capsys.readouterr().out)
        first = payload["root_causes"][0]
        assert (first["rank"], first["category"], first["confidence"]) == (1, "power", 75)
        assert "below normal (10.2V)" in first["explanation"]
        assert payload["fault_history"][0]["severity"] == "warning"
        assert payload["charts"][0]["title"] == "Voltage (V)"
        assert len(payload["charts"][0]["points"]) == 2

    def test_text_output(self, export_files, capsys):
        assert main(diagnose_args(export_files, "b1")) == 0

        out = capsys.readouterr().out
        assert "Root causes" in out
        assert "#1 power [warning] 75%" in out
        assert "Firmware" in out

    def test_unknown_device(self, export_files, capsys):
        assert main(diagnose_args(export_files, "b3")) == 1
        assert "b3" in capsys.readouterr().err


class TestErrors:
    def test_missing_file(self, export_files, capsys):
        export_files["status"] = "/nonexistent/status.json"
        assert main(fleet_args(export_files)) == 1
        assert "Input file not found" in capsys.readouterr().err

    def test_invalid_json(self, export_files, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        export_files["faults"] = str(bad)

        assert main(fleet_args(export_files)) == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_not_an_array(self, export_files, tmp_path):
        obj = tmp_path / "obj.json"
        obj.write_text(json.dumps({"id": "b1"}))
        export_files["devices"] = str(obj)
        assert main(fleet_args(export_files)) == 1

    def test_invalid_record(self, export_files, tmp_path, capsys):
        bad = tmp_path / "devices.json"
        bad.write_text(json.dumps([{"name": "missing id"}]))
        export_files["devices"] = str(bad)

        assert main(fleet_args(export_files)) == 1
        assert "DeviceRecord" in capsys.readouterr().err

    def test_bad_thresholds_file(self, export_files, tmp_path):
        thresholds = tmp_path / "thresholds.yaml"
        thresholds.write_text("voltage_low: 20\n")
        assert main(fleet_args(export_files, "--thresholds", str(thresholds))) == 1
