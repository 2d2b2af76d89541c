"""
Device Health CLI

Runs the diagnostics engines over JSON exports of platform records.

    device-health fleet --devices devices.json --status status.json \\
        --faults faults.json [--tile offline] [--search truck] [--sort health]

    device-health diagnose --devices devices.json --status status.json \\
        --faults faults.json --drill drill.json --device-id b1A

Input files hold JSON arrays of raw records (Device, DeviceStatusInfo,
FaultData); the drill-down file is a `{"statusData", "logRecords", "faults"}`
object. Pass --json for machine-readable output.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import structlog

from device_health import __version__
from device_health.constants import DiagnosticId
from device_health.exceptions import DeviceHealthError, InputFileError
from device_health.logging_config import configure_logging
from device_health.models.diagnostic_models import DeviceDiagnosis, DeviceHealth
from device_health.models.records import (
    parse_devices,
    parse_drill_down,
    parse_faults,
    parse_groups,
    parse_statuses,
)
from device_health.orchestrators.fleet_orchestrator import (
    FleetOrchestrator,
    OrchestratorConfig,
    build_fleet_snapshot,
)
from device_health.repositories.device_repository import DeviceRepository
from device_health.services.drill_down_views import (
    chart_series,
    device_info,
    fault_history,
)
from device_health.services.fleet_summary import (
    SORT_COLUMNS,
    TILES,
    TILES_BY_KEY,
    filter_by_tile,
    health_band,
    search,
    sort_rows,
    tile_counts,
)
from device_health.settings import get_thresholds, load_thresholds

logger = structlog.get_logger(__name__)


def _load_json(path: str) -> Any:
    file_path = Path(path)
    if not file_path.is_file():
        raise InputFileError(f"Input file not found: {path}")
    try:
        with open(file_path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise InputFileError(f"Invalid JSON in {path}: {e}") from e


def _load_rows(path: str) -> List[Any]:
    data = _load_json(path)
    if not isinstance(data, list):
        raise InputFileError(f"Expected a JSON array of records in {path}")
    return data


def _build_orchestrator(args: argparse.Namespace) -> FleetOrchestrator:
    thresholds = load_thresholds(args.thresholds) if args.thresholds else get_thresholds()

    repository = DeviceRepository()
    groups = parse_groups(_load_rows(args.groups)) if args.groups else None
    repository.load(parse_devices(_load_rows(args.devices)), groups)

    return FleetOrchestrator(repository, config=OrchestratorConfig(thresholds=thresholds))


def _classify(args: argparse.Namespace):
    orchestrator = _build_orchestrator(args)
    snapshot = build_fleet_snapshot(
        parse_statuses(_load_rows(args.status)),
        parse_faults(_load_rows(args.faults)),
    )
    return orchestrator, orchestrator.classify_fleet(snapshot)


# ═══════════════════════════════════════════════════════════════════════════════
# OUTPUT
# ═══════════════════════════════════════════════════════════════════════════════


def _print_fleet(rows: List[DeviceHealth], counts: dict) -> None:
    print("  ".join(f"{tile.label}: {counts[tile.key]}" for tile in TILES))
    print("=" * 100)
    print(f"{'Name':<24}{'Serial':<16}{'Severity':<10}{'Issue':<18}{'Health':>7}  Last communication")
    print("-" * 100)
    for row in rows:
        c = row.classification
        last = row.status.timestamp.isoformat() if row.status.timestamp else "N/A"
        print(
            f"{(row.device.name or row.device.id)[:23]:<24}"
            f"{(row.device.serial_number or '-')[:15]:<16}"
            f"{c.severity.value.capitalize():<10}"
            f"{c.issue_label[:17]:<18}"
            f"{c.health_score:>7}  {last}"
        )


def _print_diagnosis(diagnosis: DeviceDiagnosis, faults: list, charts: list) -> None:
    analysis = diagnosis.analysis
    device = diagnosis.device
    print(f"{device.name or device.id}  health {analysis.health_score} ({health_band(analysis.health_score)})")
    print("=" * 80)
    for label, value in device_info(device, diagnosis.status).items():
        print(f"  {label:<20}{value}")

    print("\nRoot causes")
    print("-" * 80)
    if not analysis.root_causes:
        print("  No issues detected.")
    for rc in analysis.root_causes:
        print(f"  #{rc.rank} {rc.category.value} [{rc.severity.value}] {rc.confidence}%")
        print(f"     {rc.explanation}")
        for action in rc.actions:
            print(f"     - {action}")

    print("\nFault history")
    print("-" * 80)
    if not faults:
        print("  No faults recorded.")
    for row in faults:
        when = row.timestamp.isoformat() if row.timestamp else "N/A"
        print(f"  {when:<27}{row.code:<10}{row.severity.value:<10}{row.state.value:<10}{row.description}")

    for chart in charts:
        if chart.is_empty:
            print(f"\n{chart.title}: no data available")
        else:
            values = [p.value for p in chart.points]
            print(
                f"\n{chart.title}: {len(values)} points, "
                f"min {min(values):g}, max {max(values):g}, latest {values[-1]:g}"
            )


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════


def run_fleet(args: argparse.Namespace) -> int:
    _, rows = _classify(args)
    counts = tile_counts(rows)
    rows = search(filter_by_tile(rows, args.tile), args.search)
    rows = sort_rows(rows, args.sort, ascending=not args.desc)

    if args.json:
        print(json.dumps({"tiles": counts, "devices": [r.to_dict() for r in rows]}, indent=2))
    else:
        _print_fleet(rows, counts)
    return 0


def run_diagnose(args: argparse.Namespace) -> int:
    orchestrator, _ = _classify(args)
    drill_payload = _load_json(args.drill)
    if not isinstance(drill_payload, dict):
        raise InputFileError(f"Expected a JSON object in {args.drill}")

    diagnosis = orchestrator.diagnose(args.device_id, parse_drill_down(drill_payload))
    thresholds = orchestrator.analyzer.thresholds
    faults = fault_history(diagnosis.drill_data.faults, thresholds=thresholds)
    charts = [
        chart_series(diagnosis.drill_data.series_for(DiagnosticId.VOLTAGE), "voltage", thresholds),
        chart_series(diagnosis.drill_data.series_for(DiagnosticId.CELLULAR_RSSI), "rssi", thresholds),
    ]

    if args.json:
        payload = diagnosis.to_dict()
        payload["fault_history"] = [row.to_dict() for row in faults]
        payload["charts"] = [chart.to_dict() for chart in charts]
        print(json.dumps(payload, indent=2))
    else:
        _print_diagnosis(diagnosis, faults, charts)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="device-health",
        description="Classify telematics device health and explain root causes",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--devices", required=True, help="JSON array of Device records")
    common.add_argument("--status", required=True, help="JSON array of DeviceStatusInfo records")
    common.add_argument("--faults", required=True, help="JSON array of FaultData records")
    common.add_argument("--groups", default=None, help="JSON array of Group records")
    common.add_argument("--thresholds", default=None, help="YAML file with threshold overrides")
    common.add_argument("--json", action="store_true", help="Print JSON instead of text")

    subparsers = parser.add_subparsers(dest="command", required=True)

    fleet = subparsers.add_parser("fleet", parents=[common], help="Classify the whole fleet")
    fleet.add_argument("--tile", choices=sorted(TILES_BY_KEY), default=None, help="Only rows of this tile")
    fleet.add_argument("--search", default=None, help="Filter by name or serial number")
    fleet.add_argument("--sort", choices=SORT_COLUMNS, default="severity", help="Sort column (default: severity)")
    fleet.add_argument("--desc", action="store_true", help="Sort descending")
    fleet.set_defaults(handler=run_fleet)

    diagnose = subparsers.add_parser("diagnose", parents=[common], help="Root cause analysis for one device")
    diagnose.add_argument("--drill", required=True, help="JSON drill-down payload for the device")
    diagnose.add_argument("--device-id", required=True, help="Device id to analyze")
    diagnose.set_defaults(handler=run_diagnose)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, json_output=True if args.log_json else None)

    try:
        return args.handler(args)
    except InputFileError as e:
        print(str(e), file=sys.stderr)
        return 1
    except DeviceHealthError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
