"""
Compliance aggregation across vehicles, licences and ORV declarations.

Everything here is a pure function of the records passed in and the
reference day, so the report is recomputed from fresh data on every request.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from .calculations import DEFAULT_WARNING_DAYS, DateLike, as_date, classify_expiry
from .records import Driver, DriverLicense, OrvDeclaration, Vehicle, VehicleDocument
from .session import Session
from .status import Severity, Status

VEHICLE_DATE_FIELDS = (
    ("mot_expiry", "MOT"),
    ("insurance_expiry", "Insurance"),
    ("tax_expiry", "Road Tax"),
)

# (field, issue type, label, warning window in days, severity when the date is unset)
LICENSE_CHECKS = (
    ("medical_certificate_expiry", "medical", "Medical certificate", 30, Severity.WARNING),
    ("background_check_expiry", "background", "Background check", 90, Severity.INFO),
    ("drug_test_expiry", "drug_test", "Drug test", 90, Severity.INFO),
    ("training_expiry", "training", "Training", 90, Severity.INFO),
)


@dataclass
class DocumentExpiry:
    """One dated vehicle document with its classification."""

    vehicle_id: str
    vehicle_number: str
    document_type: str
    document_name: str
    expiry_date: str
    status: Status
    days: int


@dataclass
class ComplianceIssue:
    """A problem found on a driver licence or one of its certificates."""

    license_id: str
    driver_id: str
    issue_type: str
    severity: Severity
    message: str
    days: Optional[int] = None
    driver_name: Optional[str] = None


@dataclass
class LicenseSummary:
    total: int
    compliant: int
    non_compliant: int
    critical: int
    warnings: int
    compliance_rate: int


@dataclass
class ComplianceReport:
    """Fleet-wide compliance snapshot for one organization and day."""

    as_of: str
    documents: List[DocumentExpiry] = field(default_factory=list)
    license_issues: List[ComplianceIssue] = field(default_factory=list)
    license_summary: Optional[LicenseSummary] = None
    orv: List[Dict] = field(default_factory=list)
    document_counts: Dict[str, int] = field(default_factory=dict)
    non_compliant_checks: int = 0


def document_expiries(
    vehicles: Iterable[Vehicle],
    documents: Iterable[VehicleDocument],
    today: DateLike,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> List[DocumentExpiry]:
    """
    Classify every dated vehicle document.

    Vehicle MOT, insurance and tax dates count as documents alongside the
    uploaded ones. Documents without an expiry date are skipped. Sorted most
    urgent first.
    """
    vehicles = list(vehicles)
    by_id = {v.id: v for v in vehicles}
    rows = []

    for vehicle in vehicles:
        for field_name, label in VEHICLE_DATE_FIELDS:
            expiry = getattr(vehicle, field_name)
            if not expiry:
                continue
            check = classify_expiry(expiry, today, warning_days)
            rows.append(DocumentExpiry(
                vehicle_id=vehicle.id,
                vehicle_number=vehicle.vehicle_number,
                document_type=label,
                document_name=f"{label} - {vehicle.registration}",
                expiry_date=expiry,
                status=check.status,
                days=check.days,
            ))

    for doc in documents:
        if not doc.expiry_date:
            continue
        vehicle = by_id.get(doc.vehicle_id)
        check = classify_expiry(doc.expiry_date, today, warning_days)
        rows.append(DocumentExpiry(
            vehicle_id=doc.vehicle_id,
            vehicle_number=vehicle.vehicle_number if vehicle else doc.vehicle_id,
            document_type=doc.document_type,
            document_name=doc.document_name,
            expiry_date=doc.expiry_date,
            status=check.status,
            days=check.days,
        ))

    rows.sort(key=lambda r: (r.status.value, r.days, r.vehicle_number))
    return rows


def _expiry_message(label: str, days: int) -> str:
    if days == 0:
        return f"{label} expired today"
    if days < 0:
        return f"{label} expired {abs(days)} days ago"
    return f"{label} expires in {days} days"


def license_issues(
    licenses: Iterable[DriverLicense],
    today: DateLike,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> List[ComplianceIssue]:
    """
    Check each licence and its supporting certificates.

    - Licence: expired -> critical, within ``warning_days`` -> warning
    - Medical certificate: 30-day window, unset -> warning
    - Background check, drug test, training: 90-day window, unset -> info
    """
    issues = []
    for lic in licenses:
        check = classify_expiry(lic.expiry_date, today, warning_days)
        if check.status == Status.EXPIRED:
            issues.append(ComplianceIssue(
                lic.id, lic.driver_id, "expired", Severity.CRITICAL,
                _expiry_message("License", check.days), check.days,
            ))
        elif check.status == Status.DUE_SOON:
            issues.append(ComplianceIssue(
                lic.id, lic.driver_id, "expiring_soon", Severity.WARNING,
                _expiry_message("License", check.days), check.days,
            ))

        for field_name, issue_type, label, window, missing_severity in LICENSE_CHECKS:
            expiry = getattr(lic, field_name)
            if not expiry:
                issues.append(ComplianceIssue(
                    lic.id, lic.driver_id, issue_type, missing_severity,
                    f"{label} expiry date not set",
                ))
                continue
            check = classify_expiry(expiry, today, window)
            if check.status == Status.VALID:
                continue
            severity = Severity.CRITICAL if check.status == Status.EXPIRED else Severity.WARNING
            issues.append(ComplianceIssue(
                lic.id, lic.driver_id, issue_type, severity,
                _expiry_message(label, check.days), check.days,
            ))

    issues.sort(key=lambda i: (i.severity.value, i.days if i.days is not None else 0))
    return issues


def summarize_issues(
    licenses: Iterable[DriverLicense], issues: Iterable[ComplianceIssue]
) -> LicenseSummary:
    """
    Roll issues up per licence.

    A licence is non-compliant when it has any critical or warning issue.
    Info-level issues do not count against it.
    """
    licenses = list(licenses)
    issues = list(issues)
    critical = sum(1 for i in issues if i.severity == Severity.CRITICAL)
    warnings = sum(1 for i in issues if i.severity == Severity.WARNING)
    flagged = {i.license_id for i in issues if i.severity in (Severity.CRITICAL, Severity.WARNING)}

    total = len(licenses)
    non_compliant = sum(1 for lic in licenses if lic.id in flagged)
    compliant = total - non_compliant
    rate = math.floor(compliant * 100 / total + 0.5) if total else 100

    return LicenseSummary(
        total=total,
        compliant=compliant,
        non_compliant=non_compliant,
        critical=critical,
        warnings=warnings,
        compliance_rate=rate,
    )


def orv_status(declaration: OrvDeclaration, today: DateLike) -> str:
    """
    Current status of an off-road declaration.

    Returned declarations stay returned; otherwise the declaration is expired
    once its expected return date is reached.
    """
    if declaration.status == "returned":
        return "returned"
    check = classify_expiry(declaration.expected_return_date, today)
    if check.status == Status.EXPIRED:
        return "expired"
    return "active"


def build_report(
    store,
    session: Session,
    today: Optional[DateLike] = None,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> ComplianceReport:
    """Fetch the organization's records and build a compliance report."""
    today = as_date(today) if today is not None else date.today()

    vehicles = store.select(session, "vehicles")
    documents = store.select(session, "vehicle_documents")
    licenses = store.select(session, "driver_licenses")
    drivers: List[Driver] = store.select(session, "drivers")
    declarations = store.select(session, "orv_declarations", order_by="start_date", descending=True)
    checks = store.select(session, "compliance_checks", filters={"status": "non_compliant"})

    docs = document_expiries(vehicles, documents, today, warning_days)
    issues = license_issues(licenses, today, warning_days)
    names = {d.id: d.name for d in drivers}
    for issue in issues:
        issue.driver_name = names.get(issue.driver_id, "Unknown Driver")

    vehicle_numbers = {v.id: v.vehicle_number for v in vehicles}
    orv_rows = [
        {
            "declaration": d,
            "vehicle_number": vehicle_numbers.get(d.vehicle_id, d.vehicle_id),
            "status": orv_status(d, today),
        }
        for d in declarations
    ]

    counts = {s.label: 0 for s in Status}
    for row in docs:
        counts[row.status.label] += 1

    return ComplianceReport(
        as_of=today.isoformat(),
        documents=docs,
        license_issues=issues,
        license_summary=summarize_issues(licenses, issues),
        orv=orv_rows,
        document_counts=counts,
        non_compliant_checks=len(checks),
    )
