"""Internship lifecycle service: status transitions, workload and progress reports.

Every mutation re-reads the internship row (``SELECT ... FOR UPDATE`` where the
backend supports it) right before applying the change and commits in one
step, so two requests racing on the same record never act on stale state.
"""
import logging
from collections.abc import Generator
from contextlib import contextmanager
from datetime import date, datetime
from enum import Enum

from sqlalchemy.orm import Session

from estagiopro.models.internship import (
    MANDATORY_REQUIRED_HOURS,
    REPORT_COUNT,
    Internship,
    InternshipKind,
    InternshipStatus,
    WorkloadEntry,
)
from estagiopro.services.errors import (
    IllegalTransition,
    IncompleteWorkload,
    InvalidDates,
    InvalidReportIndex,
    InvalidWorkload,
    NotFound,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    InternshipStatus.PENDING.value: frozenset({InternshipStatus.ACTIVE.value, InternshipStatus.CANCELLED.value}),
    InternshipStatus.ACTIVE.value: frozenset({InternshipStatus.COMPLETED.value, InternshipStatus.CANCELLED.value}),
}

WORKLOAD_MODES = ("absolute", "delta")

DETAIL_FIELDS = ("advisor_id", "company_id", "supervisor", "crc", "start_date", "end_date")


def _value(member: Enum | str) -> str:
    return member.value if isinstance(member, Enum) else member


def parse_iso_date(value: date | str | None) -> date | None:
    """Accept a date, an ISO date string (YYYY-MM-DD) or an ISO datetime string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if len(value) == 10:
        return datetime.strptime(value, "%Y-%m-%d").date()
    return datetime.fromisoformat(value).date()


def _to_column_date(value: date | str | None) -> str | None:
    parsed = parse_iso_date(value)
    return parsed.isoformat() if parsed else None


def _check_date_order(start_date: str | None, end_date: str | None) -> None:
    if start_date and end_date and end_date < start_date:
        raise InvalidDates(f"End date {end_date} is before start date {start_date}")


@contextmanager
def _atomic(db: Session) -> Generator[None, None, None]:
    """Commit on success, roll back on any failure."""
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


def _load_for_update(db: Session, internship_id: str) -> Internship:
    internship = (
        db.query(Internship)
        .filter(Internship.id == internship_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not internship:
        raise NotFound(f"Internship {internship_id} not found")
    return internship


def get_internship(db: Session, internship_id: str) -> Internship:
    internship = db.query(Internship).filter(Internship.id == internship_id).first()
    if not internship:
        raise NotFound(f"Internship {internship_id} not found")
    return internship


def list_internships(
    db: Session,
    status: InternshipStatus | str | None = None,
    kind: InternshipKind | str | None = None,
    student_id: str | None = None,
    advisor_id: str | None = None,
) -> list[Internship]:
    query = db.query(Internship)
    if status:
        query = query.filter(Internship.status == _value(status))
    if kind:
        query = query.filter(Internship.kind == _value(kind))
    if student_id:
        query = query.filter(Internship.student_id == student_id)
    if advisor_id:
        query = query.filter(Internship.advisor_id == advisor_id)
    return query.order_by(Internship.created_at.desc()).all()


def create_internship(
    db: Session,
    *,
    kind: InternshipKind | str,
    student_id: str,
    advisor_id: str | None = None,
    company_id: str | None = None,
    supervisor: str | None = None,
    crc: str | None = None,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
    required_workload_hours: int | None = None,
    partial_workload_hours: int = 0,
    actor_id: str | None = None,
) -> Internship:
    """Create an internship in ``pending``.

    Mandatory internships always require 390 hours; a different value from the
    caller is rejected rather than silently overridden.
    """
    kind = InternshipKind(_value(kind))

    if kind is InternshipKind.MANDATORY:
        if required_workload_hours not in (None, MANDATORY_REQUIRED_HOURS):
            raise InvalidWorkload(
                f"Mandatory internships require exactly {MANDATORY_REQUIRED_HOURS} hours"
            )
        required_workload_hours = MANDATORY_REQUIRED_HOURS
    elif required_workload_hours is not None and required_workload_hours < 0:
        raise InvalidWorkload("Required workload must not be negative")

    if partial_workload_hours < 0:
        raise InvalidWorkload("Partial workload must not be negative")

    start = _to_column_date(start_date)
    end = _to_column_date(end_date)
    _check_date_order(start, end)

    internship = Internship(
        kind=kind.value,
        student_id=student_id,
        advisor_id=advisor_id,
        company_id=company_id,
        supervisor=supervisor,
        crc=crc,
        status=InternshipStatus.PENDING.value,
        start_date=start,
        end_date=end,
        partial_workload_hours=partial_workload_hours,
        required_workload_hours=required_workload_hours,
        created_by=actor_id,
        updated_by=actor_id,
    )
    with _atomic(db):
        db.add(internship)
    db.refresh(internship)
    logger.info("Created %s internship %s for student %s", kind.value, internship.id, student_id)
    return internship


def update_internship_details(
    db: Session,
    internship_id: str,
    changes: dict,
    actor_id: str | None = None,
) -> Internship:
    """Assign advisor/company/supervisor/dates. Kind, status, workload and reports are not touched here."""
    with _atomic(db):
        internship = _load_for_update(db, internship_id)
        for field in DETAIL_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if field in ("start_date", "end_date"):
                value = _to_column_date(value)
            setattr(internship, field, value)
        _check_date_order(internship.start_date, internship.end_date)
        internship.updated_by = actor_id
    db.refresh(internship)
    return internship


def update_workload(
    db: Session,
    internship_id: str,
    hours: int,
    mode: str = "absolute",
    note: str | None = None,
    actor_id: str | None = None,
) -> Internship:
    """Set (``absolute``) or add to (``delta``) the partial workload.

    Status is never changed here: completion needs report sign-off as well,
    which is a separate explicit transition.
    """
    if mode not in WORKLOAD_MODES:
        raise InvalidWorkload(f"Unknown workload mode: {mode}")

    with _atomic(db):
        internship = _load_for_update(db, internship_id)
        previous = internship.partial_workload_hours or 0
        new_total = hours if mode == "absolute" else previous + hours
        if new_total < 0:
            raise InvalidWorkload(f"Resulting workload would be negative ({new_total} hours)")

        if new_total < previous:
            logger.warning(
                "Workload of internship %s reduced from %d to %d hours by %s",
                internship_id, previous, new_total, actor_id or "unknown actor",
            )

        internship.partial_workload_hours = new_total
        internship.updated_by = actor_id
        db.add(WorkloadEntry(
            internship_id=internship.id,
            previous_hours=previous,
            new_hours=new_total,
            mode=mode,
            note=note,
            actor_id=actor_id,
        ))
    db.refresh(internship)
    logger.info("Internship %s workload: %d -> %d hours", internship_id, previous, new_total)
    return internship


def record_report(
    db: Session,
    internship_id: str,
    report_index: int,
    attached: bool = True,
    actor_id: str | None = None,
) -> Internship:
    """Set progress report R<index> attached or not. Re-applying the same value is a no-op."""
    if not 1 <= report_index <= REPORT_COUNT:
        raise InvalidReportIndex(f"Report index must be between 1 and {REPORT_COUNT}, got {report_index}")

    with _atomic(db):
        internship = _load_for_update(db, internship_id)
        if internship.report_flag(report_index) != attached:
            setattr(internship, f"r{report_index}", 1 if attached else 0)
            internship.updated_by = actor_id
            logger.info(
                "Internship %s report R%d %s", internship_id, report_index,
                "attached" if attached else "detached",
            )
    db.refresh(internship)
    return internship


def transition(
    db: Session,
    internship_id: str,
    target_status: InternshipStatus | str,
    actor_id: str | None = None,
) -> Internship:
    """Move an internship along pending -> active -> completed, or cancel it."""
    target = _value(target_status)

    with _atomic(db):
        internship = _load_for_update(db, internship_id)
        current = internship.status

        if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
            raise IllegalTransition(f"Cannot move internship from {current} to {target}")

        if target == InternshipStatus.ACTIVE.value:
            missing = [
                label
                for label, value in (
                    ("advisor", internship.advisor_id),
                    ("start date", internship.start_date),
                    ("end date", internship.end_date),
                )
                if not value
            ]
            if missing:
                raise IllegalTransition(f"Cannot activate internship without {', '.join(missing)}")

        if target == InternshipStatus.COMPLETED.value:
            remaining = remaining_workload(internship)
            if remaining > 0:
                raise IncompleteWorkload(
                    f"{remaining} of {internship.required_workload_hours} required hours still missing"
                )

        internship.status = target
        internship.updated_by = actor_id
    db.refresh(internship)
    logger.info("Internship %s moved from %s to %s", internship_id, current, target)
    return internship


def remaining_workload(internship: Internship) -> int:
    """Hours still missing; over-completion counts as zero."""
    required = internship.required_workload_hours
    if required is None:
        return 0
    return max(0, required - (internship.partial_workload_hours or 0))


def completed_reports(internship: Internship) -> list[int]:
    """Indices of attached reports, in ascending order."""
    return [i for i in range(1, REPORT_COUNT + 1) if internship.report_flag(i)]


def completed_report_count(internship: Internship) -> int:
    return len(completed_reports(internship))
