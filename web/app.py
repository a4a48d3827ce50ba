"""Flask web application for fleet compliance tracking."""

import base64
import binascii
from dataclasses import fields, is_dataclass
from datetime import date
from enum import Enum
from pathlib import Path

from flask import (
    Flask,
    abort,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

# Add parent directory to path for model imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from models import agreements, children, fuel, incidents, orv, rail, tachograph, vehicle_checks
from models.blobstore import BlobStore
from models.calculations import as_date
from models.compliance import build_report, license_issues, summarize_issues
from models.errors import (
    BackendError,
    FleetError,
    PermissionDenied,
    RecordNotFound,
    RecordValidationError,
)
from models.functions_client import FunctionsClient
from models.records import RECORD_TYPES
from models.session import ROLES, Session
from models.status import Status, status_classes
from models.store import FleetStore
from utils.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

setup_logging(level=settings.log_level, job_name="web")
logger = get_tagged_logger(__name__, tag="web")

app = Flask(__name__)
app.secret_key = settings.secret_key
app.config.update(
    STORE=FleetStore(settings.data_dir),
    BLOBS=BlobStore(settings.blob_dir),
    FUNCTIONS=FunctionsClient.from_settings(settings),
    WARNING_DAYS=settings.warning_days,
    MAX_UPLOAD_BYTES=settings.max_upload_bytes,
    STORAGE_QUOTA_BYTES=settings.storage_quota_bytes,
)


def store() -> FleetStore:
    return current_app.config["STORE"]


def blobs() -> BlobStore:
    return current_app.config["BLOBS"]


def functions() -> FunctionsClient:
    return current_app.config["FUNCTIONS"]


def current_session() -> Session:
    """
    Build the request session from headers set by the fronting auth layer.

    X-User-Id and X-Organization-Id are required; X-User-Role defaults to
    admin; a Bearer Authorization header becomes the access token.
    """
    user_id = request.headers.get("X-User-Id")
    organization_id = request.headers.get("X-Organization-Id")
    if not user_id or not organization_id:
        abort(401)

    role = request.headers.get("X-User-Role", "admin")
    if role not in ROLES:
        raise PermissionDenied(f"Unknown role '{role}'")

    token = None
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        token = auth[len("Bearer "):]
    return Session(user_id=user_id, organization_id=organization_id, role=role, access_token=token)


def jsonable(value):
    """Convert records, summaries and enums into JSON-ready structures."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return getattr(value, "label", value.name.lower())
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if isinstance(value, date):
        return value.isoformat()
    return value


def _query_value(raw: str):
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return raw


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise RecordValidationError("Request body must be a JSON object")
    return body


def _today():
    raw = request.args.get("date")
    return as_date(raw) if raw else date.today()


def format_date(date_str):
    """Format date for display."""
    if not date_str:
        return "-"
    return str(date_str)[:10]


def format_days(days):
    """'3 days left', 'today', '12 days ago'."""
    if days is None:
        return "-"
    if days == 0:
        return "today"
    if days < 0:
        return f"{abs(days)} days ago"
    return f"{days} days left"


# Register template filters
app.jinja_env.filters["format_date"] = format_date
app.jinja_env.filters["format_days"] = format_days
app.jinja_env.filters["format_file_size"] = tachograph.format_file_size
app.jinja_env.filters["status_classes"] = status_classes


# =============================================================================
# Error handling
# =============================================================================

def _error_response(exc: Exception, code: int):
    if request.path.startswith("/api/"):
        return jsonify({"error": str(exc)}), code
    return render_template("error.html", message=str(exc), retry_url=request.url), code


@app.errorhandler(401)
def handle_unauthorized(exc):
    message = "Missing X-User-Id or X-Organization-Id header"
    if request.path.startswith("/api/"):
        return jsonify({"error": message}), 401
    return render_template("error.html", message=message, retry_url=request.url), 401


@app.errorhandler(404)
def handle_unknown_route(exc):
    return _error_response(exc, 404)


@app.errorhandler(RecordValidationError)
def handle_validation(exc):
    return _error_response(exc, 400)


@app.errorhandler(RecordNotFound)
def handle_not_found(exc):
    return _error_response(exc, 404)


@app.errorhandler(PermissionDenied)
def handle_forbidden(exc):
    return _error_response(exc, 403)


@app.errorhandler(BackendError)
def handle_backend(exc):
    logger.error("Backend failure on %s: %s", request.path, exc)
    return _error_response(exc, 502)


# =============================================================================
# HTML pages
# =============================================================================

@app.route("/")
def index():
    """Dashboard with fleet compliance counts."""
    session = current_session()
    report = build_report(store(), session, _today(), current_app.config["WARNING_DAYS"])
    vehicles = store().select(session, "vehicles", order_by="vehicle_number")
    urgent = [d for d in report.documents if d.status != Status.VALID]
    return render_template(
        "index.html",
        organization=store().organization_name(session),
        report=report,
        vehicles=vehicles,
        urgent=urgent,
    )


@app.route("/compliance")
def compliance_page():
    """Document and licence compliance tables."""
    session = current_session()
    report = build_report(store(), session, _today(), current_app.config["WARNING_DAYS"])
    status_filter = request.args.get("status", "").lower() or None
    documents = report.documents
    if status_filter:
        documents = [d for d in documents if d.status.label == status_filter]
    return render_template(
        "compliance.html",
        report=report,
        documents=documents,
        status_filter=status_filter,
        Status=Status,
    )


@app.route("/tachograph")
def tachograph_page():
    """Uploaded charts and storage usage."""
    session = current_session()
    files = store().select(session, "tachograph_files", order_by="upload_date", descending=True)
    stats = tachograph.storage_stats(files, current_app.config["STORAGE_QUOTA_BYTES"])
    vehicles = store().select(session, "vehicles", order_by="vehicle_number")
    return render_template("tachograph.html", files=files, stats=stats, vehicles=vehicles)


@app.route("/tachograph/upload", methods=["POST"])
def tachograph_upload_form():
    """Handle the chart upload form."""
    session = current_session()
    files = [
        tachograph.ChartFile(f.filename, f.read(), f.mimetype)
        for f in request.files.getlist("files")
        if f.filename
    ]
    try:
        uploaded = tachograph.upload_charts(
            store(), blobs(), session, files,
            vehicle_id=request.form.get("vehicle_id") or None,
            driver_id=request.form.get("driver_id") or None,
            chart_date=request.form.get("chart_date") or None,
            max_bytes=current_app.config["MAX_UPLOAD_BYTES"],
        )
    except FleetError as exc:
        flash(str(exc), "error")
        return redirect(url_for("tachograph_page"))

    flash(f"Uploaded {len(uploaded)} chart(s)", "success")
    return redirect(url_for("tachograph_page"))


# =============================================================================
# Generic table API
# =============================================================================

def _check_table(table: str) -> str:
    if table not in RECORD_TYPES:
        abort(404)
    return table


@app.route("/api/<table>", methods=["GET"])
def api_list(table: str):
    """List rows; query args are equality filters plus order_by/desc/limit."""
    session = current_session()
    _check_table(table)
    args = request.args.to_dict()
    order_by = args.pop("order_by", None)
    descending = args.pop("desc", "false").lower() == "true"
    limit = args.pop("limit", None)
    if limit is not None:
        try:
            limit = int(limit)
        except ValueError as exc:
            raise RecordValidationError("limit must be an integer") from exc
        if limit < 0:
            raise RecordValidationError("limit must not be negative")
    filters = {k: _query_value(v) for k, v in args.items()}
    rows = store().select(
        session, table, filters=filters, order_by=order_by,
        descending=descending, limit=limit,
    )
    return jsonify(jsonable(rows))


@app.route("/api/<table>", methods=["POST"])
def api_create(table: str):
    session = current_session()
    _check_table(table)
    record = store().insert(session, table, _json_body())
    return jsonify(jsonable(record)), 201


@app.route("/api/<table>/<record_id>", methods=["GET"])
def api_get(table: str, record_id: str):
    session = current_session()
    _check_table(table)
    return jsonify(jsonable(store().get(session, table, record_id)))


@app.route("/api/<table>/<record_id>", methods=["PATCH"])
def api_update(table: str, record_id: str):
    session = current_session()
    _check_table(table)
    record = store().update(session, table, record_id, _json_body())
    return jsonify(jsonable(record))


@app.route("/api/<table>/<record_id>", methods=["DELETE"])
def api_delete(table: str, record_id: str):
    session = current_session()
    _check_table(table)
    store().delete(session, table, record_id)
    return "", 204


# =============================================================================
# Compliance
# =============================================================================

@app.route("/api/compliance/report")
def api_compliance_report():
    session = current_session()
    report = build_report(store(), session, _today(), current_app.config["WARNING_DAYS"])
    return jsonify(jsonable(report))


@app.route("/api/compliance/licenses")
def api_license_compliance():
    session = current_session()
    licenses = store().select(session, "driver_licenses")
    issues = license_issues(licenses, _today(), current_app.config["WARNING_DAYS"])
    return jsonify({
        "issues": jsonable(issues),
        "summary": jsonable(summarize_issues(licenses, issues)),
    })


# =============================================================================
# ORV / BOR
# =============================================================================

@app.route("/api/orv", methods=["POST"])
def api_declare_off_road():
    session = current_session()
    body = _json_body()
    declaration = orv.declare_off_road(
        store(), session,
        vehicle_id=body.get("vehicle_id", ""),
        reason=body.get("reason", ""),
        expected_return_date=body.get("expected_return_date") or "",
        declaration_type=body.get("declaration_type", "planned"),
        responsible_party=body.get("responsible_party"),
        start_date=body.get("start_date"),
    )
    return jsonify(jsonable(declaration)), 201


@app.route("/api/orv/<orv_id>/return", methods=["POST"])
def api_return_to_road(orv_id: str):
    session = current_session()
    body = _json_body()
    checklist = orv.BorChecklist(
        inspection_required=bool(body.get("inspection_required", True)),
        inspection_completed=bool(body.get("inspection_completed", False)),
        roadworthiness_check=bool(body.get("roadworthiness_check", False)),
        authorized_by=body.get("authorized_by"),
        notes=body.get("notes"),
    )
    bor = orv.return_to_road(store(), session, orv_id, checklist, body.get("return_date"))
    return jsonify(jsonable(bor)), 201


# =============================================================================
# Tachograph
# =============================================================================

@app.route("/api/tachograph/upload", methods=["POST"])
def api_tachograph_upload():
    session = current_session()
    files = [
        tachograph.ChartFile(f.filename, f.read(), f.mimetype)
        for f in request.files.getlist("files")
        if f.filename
    ]
    uploaded = tachograph.upload_charts(
        store(), blobs(), session, files,
        vehicle_id=request.form.get("vehicle_id") or None,
        driver_id=request.form.get("driver_id") or None,
        chart_date=request.form.get("chart_date") or None,
        max_bytes=current_app.config["MAX_UPLOAD_BYTES"],
    )
    return jsonify(jsonable(uploaded)), 201


@app.route("/api/tachograph/digital", methods=["POST"])
def api_tachograph_digital():
    """Digital download upload; file_data is base64."""
    session = current_session()
    body = _json_body()
    try:
        data = base64.b64decode(body.get("file_data") or "", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise RecordValidationError("file_data is not valid base64") from exc

    record = tachograph.upload_digital(
        store(), blobs(), session,
        file_name=body.get("file_name", ""),
        data=data,
        file_type=body.get("file_type", ""),
        vehicle_id=body.get("vehicle_id", ""),
        driver_id=body.get("driver_id"),
        download_date=body.get("download_date"),
        download_method=body.get("download_method", "manual"),
    )
    return jsonify(jsonable(record)), 201


@app.route("/api/tachograph/stats")
def api_tachograph_stats():
    session = current_session()
    files = store().select(session, "tachograph_files")
    stats = tachograph.storage_stats(files, current_app.config["STORAGE_QUOTA_BYTES"])
    return jsonify(jsonable(stats))


@app.route("/api/tachograph/<file_id>", methods=["DELETE"])
def api_tachograph_delete(file_id: str):
    session = current_session()
    tachograph.delete_chart(store(), blobs(), session, file_id)
    return "", 204


# =============================================================================
# Fuel, rail, agreements
# =============================================================================

@app.route("/api/fuel", methods=["POST"])
def api_record_fuel():
    session = current_session()
    body = _json_body()
    purchase = fuel.record_fuel_purchase(
        store(), session,
        vehicle_id=body.get("vehicle_id", ""),
        fuel_type=body.get("fuel_type", ""),
        quantity=body.get("quantity"),
        unit_price=body.get("unit_price"),
        purchase_date=body.get("purchase_date"),
        total_cost=body.get("total_cost"),
        driver_id=body.get("driver_id"),
        location=body.get("location"),
        odometer_reading=body.get("odometer_reading"),
        notes=body.get("notes"),
    )
    return jsonify(jsonable(purchase)), 201


@app.route("/api/fuel/summary")
def api_fuel_summary():
    session = current_session()
    filters = {}
    if request.args.get("vehicle_id"):
        filters["vehicle_id"] = request.args["vehicle_id"]
    purchases = store().select(session, "fuel_purchases", filters=filters)
    return jsonify(jsonable(fuel.fuel_summary(purchases)))


@app.route("/api/rail")
def api_rail_services():
    session = current_session()
    services = rail.list_services(
        store(), session,
        status=request.args.get("status"),
        service_type=request.args.get("service_type"),
        priority=request.args.get("priority"),
    )
    return jsonify(jsonable(services))


@app.route("/api/rail/summary")
def api_rail_summary():
    session = current_session()
    summary = rail.rail_summary(store().select(session, "rail_replacement_services"))
    data = jsonable(summary)
    data["vehicle_shortfall"] = summary.vehicle_shortfall
    return jsonify(data)


@app.route("/api/agreements/publish", methods=["POST"])
def api_publish_agreement():
    session = current_session()
    body = _json_body()
    agreement = agreements.publish_agreement(
        store(), session,
        agreement_type=body.get("agreement_type", ""),
        version=body.get("version", ""),
        title=body.get("title", ""),
        content=body.get("content", ""),
        effective_date=body.get("effective_date"),
    )
    return jsonify(jsonable(agreement)), 201


@app.route("/api/agreements/<agreement_id>/accept", methods=["POST"])
def api_accept_agreement(agreement_id: str):
    session = current_session()
    acceptance = agreements.accept_agreement(store(), session, agreement_id)
    return jsonify(jsonable(acceptance)), 201


@app.route("/api/agreements/analytics")
def api_agreement_analytics():
    session = current_session()
    try:
        total_users = int(request.args.get("total_users", "0"))
    except ValueError as exc:
        raise RecordValidationError("total_users must be an integer") from exc
    analytics = agreements.agreement_analytics(
        store().select(session, "agreements"),
        store().select(session, "agreement_acceptances"),
        total_users,
    )
    data = jsonable(analytics)
    data["terms_rate"] = analytics.terms_rate
    data["privacy_rate"] = analytics.privacy_rate
    return jsonify(data)


# =============================================================================
# Vehicle checks, inspections, children, incidents
# =============================================================================

@app.route("/api/templates/stats")
def api_template_stats():
    session = current_session()
    stats = vehicle_checks.template_stats(store().select(session, "vehicle_check_templates"))
    return jsonify(jsonable(stats))


@app.route("/api/templates/<template_id>/default", methods=["POST"])
def api_set_default_template(template_id: str):
    session = current_session()
    template = vehicle_checks.set_default_template(store(), session, template_id)
    return jsonify(jsonable(template))


@app.route("/api/templates/<template_id>/questions")
def api_template_questions(template_id: str):
    session = current_session()
    questions = vehicle_checks.questions_for_template(store(), session, template_id)
    return jsonify(jsonable(questions))


@app.route("/api/inspections/<schedule_id>/complete", methods=["POST"])
def api_complete_inspection(schedule_id: str):
    session = current_session()
    body = request.get_json(silent=True) or {}
    schedule = vehicle_checks.complete_inspection(
        store(), session, schedule_id, body.get("completed_on")
    )
    return jsonify(jsonable(schedule))


@app.route("/api/children/<child_id>/risk-assessments")
def api_child_risk_assessments(child_id: str):
    session = current_session()
    today = _today()
    rows = []
    for assessment in children.active_risk_assessments(store(), session, child_id):
        review = children.risk_review_status(assessment, today)
        rows.append({
            "assessment": jsonable(assessment),
            "review": jsonable(review) if review else None,
        })
    return jsonify(rows)


@app.route("/api/incidents/report", methods=["POST"])
def api_report_incident():
    session = current_session()
    body = _json_body()
    incident = incidents.report_incident(
        store(), session,
        incident_type=body.get("incident_type", ""),
        severity=body.get("severity", ""),
        description=body.get("description", ""),
        incident_date=body.get("incident_date"),
        vehicle_id=body.get("vehicle_id"),
        driver_id=body.get("driver_id"),
        location=body.get("location"),
    )
    return jsonify(jsonable(incident)), 201


# =============================================================================
# Training (hosted functions)
# =============================================================================

@app.route("/api/training/<training_id>/progress", methods=["POST"])
def api_training_progress(training_id: str):
    session = current_session()
    body = _json_body()
    try:
        progress = int(body.get("progress"))
    except (TypeError, ValueError) as exc:
        raise RecordValidationError("progress must be an integer") from exc
    return jsonify(functions().update_training_progress(session, training_id, progress))


@app.route("/api/training/<training_id>/complete", methods=["POST"])
def api_training_complete(training_id: str):
    session = current_session()
    return jsonify(functions().complete_training(session, training_id))


if __name__ == "__main__":
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
