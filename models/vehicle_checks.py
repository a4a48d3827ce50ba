"""Vehicle check templates, their questions and inspection schedules."""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from .calculations import DateLike, ExpiryCheck, as_date, classify_expiry, next_due_date
from .errors import RecordValidationError
from .records import InspectionSchedule, VehicleCheckQuestion, VehicleCheckTemplate
from .session import Session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="vehicle_checks")

INSPECTION_WARNING_DAYS = 7

# Walk-around check used when a template has no questions of its own
DEFAULT_QUESTIONS = (
    ("Are all lights working properly? (headlights, taillights, turn signals, brake lights)", "lights"),
    ("Are tires in good condition with adequate tread depth?", "tires"),
    ("Are brakes functioning properly? (no unusual noises, adequate brake pedal feel)", "brakes"),
    ("Is the engine running smoothly with no unusual noises or warning lights?", "engine"),
    ("Is fuel level adequate for the planned trip?", "fuel"),
    ("Are all mirrors properly adjusted and clean?", "general"),
    ("Is the windshield clean and free of cracks or damage?", "general"),
)


@dataclass
class TemplateStats:
    total: int
    active: int
    inactive: int
    defaults: int
    by_category: Dict[str, int] = field(default_factory=dict)


def template_stats(templates: Iterable[VehicleCheckTemplate]) -> TemplateStats:
    templates = list(templates)
    by_category: Dict[str, int] = {}
    for t in templates:
        by_category[t.category] = by_category.get(t.category, 0) + 1
    active = sum(1 for t in templates if t.is_active)
    return TemplateStats(
        total=len(templates),
        active=active,
        inactive=len(templates) - active,
        defaults=sum(1 for t in templates if t.is_default),
        by_category=by_category,
    )


def set_default_template(store, session: Session, template_id: str) -> VehicleCheckTemplate:
    """Make a template the default for its category, clearing any previous default."""
    session.require_role(("admin", "council", "compliance_officer"))
    template = store.get(session, "vehicle_check_templates", template_id)
    if not template.is_active:
        raise RecordValidationError(f"Template '{template.name}' is inactive")

    current = store.select(
        session, "vehicle_check_templates",
        filters={"category": template.category, "is_default": True},
    )
    for other in current:
        if other.id != template.id:
            store.update(session, "vehicle_check_templates", other.id, {"is_default": False})

    logger.info("Default %s template is now %s", template.category, template.name)
    return store.update(session, "vehicle_check_templates", template.id, {"is_default": True})


def default_questions(organization_id: str, template_id: str) -> List[VehicleCheckQuestion]:
    return [
        VehicleCheckQuestion(
            id=f"default-{i}",
            organization_id=organization_id,
            template_id=template_id,
            question=text,
            category=category,
            is_required=True,
            has_notes=False,
            order_index=i,
        )
        for i, (text, category) in enumerate(DEFAULT_QUESTIONS, start=1)
    ]


def questions_for_template(store, session: Session, template_id: str) -> List[VehicleCheckQuestion]:
    """Questions in display order; the default walk-around set when the template has none."""
    questions = store.select(
        session, "vehicle_check_questions",
        filters={"template_id": template_id}, order_by="order_index",
    )
    if questions:
        return questions
    return default_questions(session.organization_id, template_id)


# =============================================================================
# Inspection schedules
# =============================================================================

def schedule_status(
    schedule: InspectionSchedule,
    today: Optional[DateLike] = None,
    warning_days: int = INSPECTION_WARNING_DAYS,
) -> ExpiryCheck:
    """Classify a scheduled inspection date; due soon within a week."""
    return classify_expiry(schedule.scheduled_date, today, warning_days)


def complete_inspection(
    store,
    session: Session,
    schedule_id: str,
    completed_on: Optional[DateLike] = None,
) -> InspectionSchedule:
    """
    Mark an inspection done.

    Recurring schedules roll forward by ``interval_months`` from the
    completion date; one-off schedules become completed.
    """
    schedule = store.get(session, "inspection_schedules", schedule_id)
    if schedule.status != "scheduled":
        raise RecordValidationError(f"Inspection is already {schedule.status}")

    done = as_date(completed_on) if completed_on else date.today()
    changes = {"last_completed": done.isoformat()}
    following = next_due_date(done, schedule.interval_months)
    if following is None:
        changes["status"] = "completed"
    else:
        changes["scheduled_date"] = following.isoformat()

    logger.info("Inspection %s completed on %s", schedule_id, done)
    return store.update(session, "inspection_schedules", schedule_id, changes)
