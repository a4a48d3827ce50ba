#!/usr/bin/env python3
"""
Unified CLI for fleet compliance tracking.

Commands:
  compliance   - Show expired, due soon and valid vehicle documents
  licenses     - Show driver licence issues and the compliance summary
  orv          - List off-road declarations
  vehicles     - List vehicles
  fuel         - Fuel spend summary
  rail         - Rail replacement services and commitment summary
  tacho-stats  - Tachograph storage usage
  tacho-upload - Upload analog tachograph chart scans
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from models import BlobStore, FleetError, FleetStore, Session, Status
from models.calculations import as_date
from models.compliance import DocumentExpiry, ComplianceIssue, build_report
from models.fuel import fuel_summary
from models.rail import list_services, rail_summary
from models.tachograph import ChartFile, format_file_size, storage_stats, upload_charts
from utils.config import settings
from utils.logging_utils import setup_logging

# =============================================================================
# Formatting helpers
# =============================================================================


def format_cost(cost: Optional[float]) -> str:
    """Format cost for display."""
    return f"£{cost:,.2f}" if cost is not None else "-"


def format_days(days: Optional[int]) -> str:
    """Format days until expiry (e.g., '26d' or '-45d')."""
    if days is None:
        return "-"
    return f"{days}d"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def open_store(data_file: Path):
    """Store and session for an organization data file (org id = file stem)."""
    session = Session(user_id="cli", organization_id=data_file.stem, role="admin")
    return FleetStore(data_file.parent), session


# =============================================================================
# Compliance command
# =============================================================================


def make_document_table(documents: List[DocumentExpiry]) -> List[List[str]]:
    """Convert document expiries to table rows."""
    return [
        [
            doc.vehicle_number,
            doc.document_type,
            truncate(doc.document_name),
            doc.expiry_date,
            format_days(doc.days),
        ]
        for doc in documents
    ]


def cmd_compliance(args):
    """Show expired, due soon and valid vehicle documents."""
    store, session = open_store(args.data_file)
    today = as_date(args.date) if args.date else date.today()
    report = build_report(store, session, today, args.warning_days)

    print(f"Organization: {store.organization_name(session)}")
    print(f"As of: {report.as_of} (warning window {args.warning_days} days)")
    print(f"Documents: {len(report.documents)}")
    print()

    headers = ["Vehicle", "Type", "Document", "Expiry", "Days"]
    sections = [
        (Status.EXPIRED, "EXPIRED:"),
        (Status.DUE_SOON, "DUE SOON:"),
        (Status.VALID, "VALID:"),
    ]
    for status, title in sections:
        docs = [d for d in report.documents if d.status == status]
        if not docs or (status == Status.VALID and not args.all):
            continue
        print(title)
        print(tabulate(make_document_table(docs), headers=headers, tablefmt="simple"))
        print()

    if not args.all and report.document_counts.get("valid"):
        print(f"VALID: {report.document_counts['valid']} documents (use --all to list)")

    return 1 if report.document_counts.get("expired") and args.strict else 0


# =============================================================================
# Licenses command
# =============================================================================


def make_issue_table(issues: List[ComplianceIssue]) -> List[List[str]]:
    """Convert licence issues to table rows."""
    return [
        [issue.driver_name or issue.driver_id, issue.severity.label.upper(), issue.message]
        for issue in issues
    ]


def cmd_licenses(args):
    """Show driver licence issues and the compliance summary."""
    store, session = open_store(args.data_file)
    today = as_date(args.date) if args.date else date.today()
    report = build_report(store, session, today, args.warning_days)
    summary = report.license_summary

    print(f"Licences: {summary.total}")
    print(f"Compliant: {summary.compliant} ({summary.compliance_rate}%)")
    print(f"Non-compliant: {summary.non_compliant}")
    print(f"Critical issues: {summary.critical}  Warnings: {summary.warnings}")
    print()

    if not report.license_issues:
        print("No licence issues found.")
        return 0

    print(tabulate(
        make_issue_table(report.license_issues),
        headers=["Driver", "Severity", "Issue"],
        tablefmt="simple",
    ))
    return 0


# =============================================================================
# ORV / vehicles commands
# =============================================================================


def cmd_orv(args):
    """List off-road declarations."""
    store, session = open_store(args.data_file)
    today = as_date(args.date) if args.date else date.today()
    report = build_report(store, session, today)

    if not report.orv:
        print("No off-road declarations.")
        return 0

    rows = [
        [
            row["vehicle_number"],
            row["declaration"].declaration_type,
            truncate(row["declaration"].reason),
            row["declaration"].start_date,
            row["declaration"].expected_return_date,
            row["status"].upper(),
        ]
        for row in report.orv
    ]
    headers = ["Vehicle", "Type", "Reason", "Start", "Expected Return", "Status"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_vehicles(args):
    """List vehicles."""
    store, session = open_store(args.data_file)
    filters = {"status": args.status} if args.status else None
    vehicles = store.select(session, "vehicles", filters=filters, order_by="vehicle_number")

    rows = [
        [
            v.vehicle_number,
            v.registration,
            f"{v.make} {v.model}",
            v.year or "-",
            v.status,
            v.mot_expiry or "-",
            f"{v.current_mileage:,.0f}" if v.current_mileage is not None else "-",
        ]
        for v in vehicles
    ]
    print(f"Vehicles: {len(vehicles)}")
    print()
    headers = ["Number", "Registration", "Make / Model", "Year", "Status", "MOT", "Mileage"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Fuel / rail commands
# =============================================================================


def cmd_fuel(args):
    """Fuel spend summary."""
    store, session = open_store(args.data_file)
    filters = {"vehicle_id": args.vehicle} if args.vehicle else None
    purchases = store.select(session, "fuel_purchases", filters=filters)
    summary = fuel_summary(purchases)

    print(f"Purchases: {summary.purchases}")
    print(f"Total quantity: {summary.total_quantity:,.2f}")
    print(f"Total spend: {format_cost(summary.total_spend)}")
    print(f"Average unit price: {format_cost(summary.average_unit_price)}")
    print()

    if summary.by_fuel_type:
        rows = [
            [fuel_type, f"{v['quantity']:,.2f}", format_cost(v["spend"])]
            for fuel_type, v in sorted(summary.by_fuel_type.items())
        ]
        print(tabulate(rows, headers=["Fuel", "Quantity", "Spend"], tablefmt="simple"))
    return 0


def cmd_rail(args):
    """Rail replacement services and commitment summary."""
    store, session = open_store(args.data_file)
    services = list_services(store, session, status=args.status, priority=args.priority)
    summary = rail_summary(services)

    print(f"Services: {summary.total} (active {summary.active}, completed {summary.completed})")
    print(
        f"Vehicles: {summary.vehicles_assigned}/{summary.vehicles_required} assigned, "
        f"shortfall {summary.vehicle_shortfall}"
    )
    print(f"Estimated cost: {format_cost(summary.estimated_cost)}  Revenue: {format_cost(summary.revenue)}")
    print()

    rows = [
        [
            s.service_code or "-",
            truncate(s.service_name),
            s.affected_line,
            s.priority,
            s.status,
            f"{s.start_date} - {s.end_date}",
            f"{s.vehicles_assigned}/{s.vehicles_required}",
        ]
        for s in services
    ]
    if rows:
        headers = ["Code", "Service", "Line", "Priority", "Status", "Dates", "Vehicles"]
        print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Tachograph commands
# =============================================================================


def cmd_tacho_stats(args):
    """Tachograph storage usage."""
    store, session = open_store(args.data_file)
    files = store.select(session, "tachograph_files")
    stats = storage_stats(files, settings.storage_quota_bytes)

    print(f"Files: {stats.total_files}")
    print(f"Used: {format_file_size(stats.total_size)} of {format_file_size(stats.available)} "
          f"({stats.usage_percent:.1f}%)")
    if stats.oldest_upload:
        print(f"Oldest upload: {stats.oldest_upload[:10]}")
        print(f"Newest upload: {stats.newest_upload[:10]}")
    if stats.by_type:
        print()
        rows = sorted(stats.by_type.items())
        print(tabulate(rows, headers=["Type", "Files"], tablefmt="simple"))
    return 0


def cmd_tacho_upload(args):
    """Upload analog tachograph chart scans."""
    store, session = open_store(args.data_file)
    missing = [p for p in args.files if not p.exists()]
    if missing:
        print(f"Error: File not found: {missing[0]}")
        return 1

    charts = [ChartFile(p.name, p.read_bytes()) for p in args.files]
    print(f"Uploading {len(charts)} chart(s) to {args.blob_dir}:")
    for chart in charts:
        print(f"  {chart.name} ({format_file_size(chart.size)})")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    uploaded = upload_charts(
        store, BlobStore(args.blob_dir), session, charts,
        vehicle_id=args.vehicle, driver_id=args.driver, chart_date=args.chart_date,
        max_bytes=settings.max_upload_bytes,
    )
    for record in uploaded:
        print(f"  {record.original_name} -> {record.storage_path}")
    print("Upload complete.")
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fleet compliance tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/acme.yaml compliance
  %(prog)s data/acme.yaml compliance --date 2025-01-15 --all
  %(prog)s data/acme.yaml licenses
  %(prog)s data/acme.yaml vehicles --status off_road
  %(prog)s data/acme.yaml rail --status active
  %(prog)s data/acme.yaml tacho-upload scans/*.jpg --vehicle <vehicle-id>
""",
    )
    parser.add_argument(
        "data_file",
        type=Path,
        help="Path to organization YAML file",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (default: %(default)s)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Compliance subcommand
    compliance_parser = subparsers.add_parser(
        "compliance", help="Show expired, due soon and valid vehicle documents"
    )
    compliance_parser.add_argument("--date", type=str, help="Reference date YYYY-MM-DD (default: today)")
    compliance_parser.add_argument(
        "--warning-days", type=int, default=settings.warning_days,
        help="Days before expiry that count as due soon (default: %(default)s)",
    )
    compliance_parser.add_argument("--all", action="store_true", help="Also list valid documents")
    compliance_parser.add_argument(
        "--strict", action="store_true", help="Exit with status 1 if anything has expired"
    )

    # Licenses subcommand
    licenses_parser = subparsers.add_parser(
        "licenses", help="Show driver licence issues and the compliance summary"
    )
    licenses_parser.add_argument("--date", type=str, help="Reference date YYYY-MM-DD (default: today)")
    licenses_parser.add_argument(
        "--warning-days", type=int, default=settings.warning_days,
        help="Days before licence expiry that count as due soon (default: %(default)s)",
    )

    # ORV subcommand
    orv_parser = subparsers.add_parser("orv", help="List off-road declarations")
    orv_parser.add_argument("--date", type=str, help="Reference date YYYY-MM-DD (default: today)")

    # Vehicles subcommand
    vehicles_parser = subparsers.add_parser("vehicles", help="List vehicles")
    vehicles_parser.add_argument(
        "--status", choices=["active", "off_road", "maintenance", "retired"],
        help="Only vehicles with this status",
    )

    # Fuel subcommand
    fuel_parser = subparsers.add_parser("fuel", help="Fuel spend summary")
    fuel_parser.add_argument("--vehicle", type=str, help="Vehicle id to summarize")

    # Rail subcommand
    rail_parser = subparsers.add_parser("rail", help="Rail replacement services")
    rail_parser.add_argument("--status", type=str, help="Filter by status")
    rail_parser.add_argument("--priority", type=str, help="Filter by priority")

    # Tachograph subcommands
    subparsers.add_parser("tacho-stats", help="Tachograph storage usage")

    upload_parser = subparsers.add_parser("tacho-upload", help="Upload analog chart scans")
    upload_parser.add_argument("files", type=Path, nargs="+", help="Chart scan files")
    upload_parser.add_argument("--vehicle", type=str, help="Vehicle id")
    upload_parser.add_argument("--driver", type=str, help="Driver id")
    upload_parser.add_argument("--chart-date", type=str, help="Chart date YYYY-MM-DD (default: today)")
    upload_parser.add_argument(
        "--blob-dir", type=Path, default=settings.blob_dir,
        help="Blob storage directory (default: %(default)s)",
    )
    upload_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be uploaded without saving",
    )

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, job_name="fleet")

    # Validate data file exists
    if not args.data_file.exists():
        print(f"Error: File not found: {args.data_file}")
        return 1

    # Dispatch to command handler
    try:
        if args.command == "compliance":
            return cmd_compliance(args)
        elif args.command == "licenses":
            return cmd_licenses(args)
        elif args.command == "orv":
            return cmd_orv(args)
        elif args.command == "vehicles":
            return cmd_vehicles(args)
        elif args.command == "fuel":
            return cmd_fuel(args)
        elif args.command == "rail":
            return cmd_rail(args)
        elif args.command == "tacho-stats":
            return cmd_tacho_stats(args)
        elif args.command == "tacho-upload":
            return cmd_tacho_upload(args)
    except (FleetError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main() or 0)
