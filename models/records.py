"""
Record types for every table in an organization's data file.

Rows are validated against ``schema.yaml`` before they become records, so a
record that exists has the right shape. Dates are ISO 'YYYY-MM-DD' strings,
timestamps ISO datetime strings.
"""

import json
from dataclasses import dataclass, field, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft202012Validator

from .errors import RecordValidationError

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


@dataclass
class Vehicle:
    id: str
    organization_id: str
    vehicle_number: str
    registration: str
    make: str
    model: str
    year: Optional[int] = None
    vehicle_type: Optional[str] = None
    fuel_type: Optional[str] = None
    status: str = "active"
    mot_expiry: Optional[str] = None
    insurance_expiry: Optional[str] = None
    tax_expiry: Optional[str] = None
    current_mileage: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.vehicle_number} ({self.registration}) {self.make} {self.model}"


@dataclass
class VehicleDocument:
    id: str
    organization_id: str
    vehicle_id: str
    document_type: str
    document_name: str
    expiry_date: Optional[str] = None
    file_path: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Driver:
    id: str
    organization_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    employee_id: Optional[str] = None
    status: str = "active"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class DriverLicense:
    id: str
    organization_id: str
    driver_id: str
    license_number: str
    license_type: str
    expiry_date: str
    license_class: Optional[str] = None
    issuing_authority: Optional[str] = None
    issue_date: Optional[str] = None
    status: str = "active"
    points_balance: int = 0
    endorsements: List[str] = field(default_factory=list)
    restrictions: List[str] = field(default_factory=list)
    medical_certificate_expiry: Optional[str] = None
    background_check_expiry: Optional[str] = None
    drug_test_expiry: Optional[str] = None
    training_expiry: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class ChildProfile:
    id: str
    organization_id: str
    parent_id: str
    first_name: str
    last_name: str
    date_of_birth: str
    grade: Optional[str] = None
    school: Optional[str] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    medical_conditions: Optional[str] = None
    allergies: Optional[str] = None
    special_instructions: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class RiskAssessment:
    id: str
    organization_id: str
    child_id: str
    assessment_type: str
    risk_level: str
    description: str
    assessment_date: str
    review_date: Optional[str] = None
    required_equipment: Optional[str] = None
    assessed_by: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class PersonalAssistant:
    id: str
    organization_id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    status: str = "active"
    experience_years: int = 0
    qualifications: List[str] = field(default_factory=list)
    background_check_date: Optional[str] = None
    background_check_status: str = "pending"
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class FuelPurchase:
    id: str
    organization_id: str
    vehicle_id: str
    fuel_type: str
    quantity: float
    unit_price: float
    total_cost: float
    purchase_date: str
    driver_id: Optional[str] = None
    location: Optional[str] = None
    odometer_reading: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class ComplianceCheck:
    id: str
    organization_id: str
    check_type: str
    check_date: str
    status: str
    vehicle_id: Optional[str] = None
    driver_id: Optional[str] = None
    issues: List[str] = field(default_factory=list)
    inspector: Optional[str] = None
    next_check_date: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class InspectionSchedule:
    id: str
    organization_id: str
    vehicle_id: str
    inspection_type: str
    scheduled_date: str
    assigned_driver_id: Optional[str] = None
    template_id: Optional[str] = None
    interval_months: Optional[float] = None
    last_completed: Optional[str] = None
    status: str = "scheduled"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class OrvDeclaration:
    id: str
    organization_id: str
    vehicle_id: str
    declaration_type: str
    reason: str
    start_date: str
    expected_return_date: str
    responsible_party: Optional[str] = None
    status: str = "active"
    total_cost: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class BorReturn:
    id: str
    organization_id: str
    vehicle_id: str
    orv_id: str
    return_date: str
    inspection_required: bool = True
    inspection_completed: bool = False
    roadworthiness_check: bool = False
    authorized_by: Optional[str] = None
    status: str = "pending"
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class RailReplacementService:
    id: str
    organization_id: str
    service_name: str
    affected_line: str
    service_type: str
    start_date: str
    end_date: str
    priority: str = "medium"
    status: str = "planned"
    service_code: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    vehicles_required: int = 0
    vehicles_assigned: int = 0
    passengers_affected: Optional[int] = None
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    revenue: Optional[float] = None
    rail_operator: Optional[str] = None
    pickup_locations: List[str] = field(default_factory=list)
    dropoff_locations: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Agreement:
    id: str
    organization_id: str
    agreement_type: str
    version: str
    title: str
    content: str
    is_active: bool = True
    effective_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class AgreementAcceptance:
    id: str
    organization_id: str
    agreement_id: str
    user_id: str
    accepted_at: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Incident:
    id: str
    organization_id: str
    incident_type: str
    severity: str
    incident_date: str
    description: str
    vehicle_id: Optional[str] = None
    driver_id: Optional[str] = None
    location: Optional[str] = None
    status: str = "open"
    reported_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class TachographFile:
    id: str
    organization_id: str
    filename: str
    original_name: str
    file_size: int
    file_type: str
    chart_type: str
    chart_date: str
    upload_date: str
    storage_path: str
    status: str = "uploaded"
    vehicle_id: Optional[str] = None
    driver_id: Optional[str] = None
    uploaded_by: Optional[str] = None
    download_method: Optional[str] = None
    next_download_due: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class VehicleCheckTemplate:
    id: str
    organization_id: str
    name: str
    category: str
    version: str = "1.0"
    description: Optional[str] = None
    is_active: bool = True
    is_default: bool = False
    vehicle_types: List[str] = field(default_factory=list)
    safety_critical: bool = False
    compliance_required: bool = False
    estimated_completion_time_minutes: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class VehicleCheckQuestion:
    id: str
    organization_id: str
    template_id: str
    question: str
    category: str
    question_type: str = "yes_no"
    is_required: bool = True
    is_critical: bool = False
    has_photo: bool = False
    has_notes: bool = True
    order_index: int = 0
    guidance: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


RECORD_TYPES = {
    "vehicles": Vehicle,
    "vehicle_documents": VehicleDocument,
    "drivers": Driver,
    "driver_licenses": DriverLicense,
    "child_profiles": ChildProfile,
    "risk_assessments": RiskAssessment,
    "personal_assistants": PersonalAssistant,
    "fuel_purchases": FuelPurchase,
    "compliance_checks": ComplianceCheck,
    "inspection_schedules": InspectionSchedule,
    "orv_declarations": OrvDeclaration,
    "bor_returns": BorReturn,
    "rail_replacement_services": RailReplacementService,
    "agreements": Agreement,
    "agreement_acceptances": AgreementAcceptance,
    "incidents": Incident,
    "tachograph_files": TachographFile,
    "vehicle_check_templates": VehicleCheckTemplate,
    "vehicle_check_questions": VehicleCheckQuestion,
}

# schema.yaml $defs key per table
SCHEMA_DEFS = {
    "vehicles": "vehicle",
    "vehicle_documents": "vehicleDocument",
    "drivers": "driver",
    "driver_licenses": "driverLicense",
    "child_profiles": "childProfile",
    "risk_assessments": "riskAssessment",
    "personal_assistants": "personalAssistant",
    "fuel_purchases": "fuelPurchase",
    "compliance_checks": "complianceCheck",
    "inspection_schedules": "inspectionSchedule",
    "orv_declarations": "orvDeclaration",
    "bor_returns": "borReturn",
    "rail_replacement_services": "railReplacementService",
    "agreements": "agreement",
    "agreement_acceptances": "agreementAcceptance",
    "incidents": "incident",
    "tachograph_files": "tachographFile",
    "vehicle_check_templates": "vehicleCheckTemplate",
    "vehicle_check_questions": "vehicleCheckQuestion",
}


@lru_cache(maxsize=1)
def load_schema() -> Dict[str, Any]:
    """Load the organization data file schema."""
    with open(SCHEMA_PATH) as fp:
        return yaml.safe_load(fp)


@lru_cache(maxsize=None)
def _row_validator(table: str) -> Draft202012Validator:
    schema = load_schema()
    return Draft202012Validator(
        {"$defs": schema["$defs"], "$ref": f"#/$defs/{SCHEMA_DEFS[table]}"},
        format_checker=Draft202012Validator.FORMAT_CHECKER,
    )


def normalize(data: Any) -> Any:
    """Turn YAML-native dates and datetimes into ISO strings."""
    return json.loads(json.dumps(data, default=str))


def validate_row(table: str, row: Dict[str, Any]) -> None:
    """Raise RecordValidationError if ``row`` does not match the table schema."""
    if table not in RECORD_TYPES:
        raise RecordValidationError(f"Unknown table '{table}'")
    errors = sorted(_row_validator(table).iter_errors(row), key=lambda e: [str(p) for p in e.path])
    if errors:
        first = errors[0]
        where = ".".join(str(p) for p in first.path)
        prefix = f"{table}.{where}" if where else table
        raise RecordValidationError(f"{prefix}: {first.message}")


def parse_record(table: str, row: Dict[str, Any]):
    """Validate a raw row and build its record type."""
    row = normalize(row)
    validate_row(table, row)
    cls = RECORD_TYPES[table]
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in row.items() if k in names})

