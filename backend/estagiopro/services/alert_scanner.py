"""Expiration alert scan for active internships.

The sweep keeps no state of its own: the persisted alerts are the only memory
between runs. An internship with an open (pending or sent) expiration warning
is skipped, so the scan can be triggered manually, by the scheduler, or by
several processes at once without producing duplicates.
"""
import json
import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from estagiopro.models.alert import (
    OPEN_ALERT_STATUSES,
    AlertSeverity,
    AlertStatus,
    AlertType,
    InternshipAlert,
)
from estagiopro.models.internship import Internship, InternshipKind, InternshipStatus
from estagiopro.services.lifecycle import parse_iso_date

logger = logging.getLogger(__name__)

# Tightest first; the first matching tier wins.
EXPIRATION_THRESHOLDS: tuple[tuple[int, AlertSeverity], ...] = (
    (7, AlertSeverity.HIGH),
    (15, AlertSeverity.MEDIUM),
    (30, AlertSeverity.LOW),
)

KIND_LABELS = {
    InternshipKind.MANDATORY.value: "Mandatory",
    InternshipKind.NON_MANDATORY.value: "Non-mandatory",
}


def days_until_expiration(end_date: date, today: date | None = None) -> int:
    """Whole calendar days until the end date; negative once past due."""
    if today is None:
        today = datetime.utcnow().date()
    return (end_date - today).days


def severity_for_days(days: int) -> AlertSeverity | None:
    """Severity tier for a days-until-expiration value, or None beyond the loosest tier."""
    for limit, severity in EXPIRATION_THRESHOLDS:
        if days <= limit:
            return severity
    return None


def build_expiration_alert_content(kind: str, end_date: date, days: int) -> tuple[str, str]:
    """Title and message for an expiration warning."""
    label = KIND_LABELS.get(kind, kind)
    end_label = end_date.strftime("%d/%m/%Y")

    if days < 0:
        title = f"{label} internship past its end date"
        message = f"The internship ended on {end_label}, {-days} days ago, and is still active."
    elif days == 0:
        title = f"{label} internship ends today"
        message = f"The internship ends today ({end_label})."
    else:
        title = f"{label} internship nearing expiration"
        message = f"The internship ends on {end_label}. {days} days remaining."

    return title, message


def has_open_expiration_alert(db: Session, internship_id: str) -> bool:
    return db.query(InternshipAlert.id).filter(
        InternshipAlert.internship_id == internship_id,
        InternshipAlert.alert_type == AlertType.EXPIRATION_WARNING.value,
        InternshipAlert.status.in_(OPEN_ALERT_STATUSES),
    ).first() is not None


def _create_expiration_alert(
    db: Session,
    internship_id: str,
    kind: str,
    advisor_id: str | None,
    end_date: date,
    days: int,
    severity: AlertSeverity,
) -> InternshipAlert | None:
    """Insert one pending warning. Returns None if a concurrent scan already opened one."""
    title, message = build_expiration_alert_content(kind, end_date, days)
    alert = InternshipAlert(
        internship_id=internship_id,
        internship_kind=kind,
        alert_type=AlertType.EXPIRATION_WARNING.value,
        severity=severity.value,
        status=AlertStatus.PENDING.value,
        title=title,
        message=message,
        days_until_expiration=days,
        target_users=json.dumps([advisor_id] if advisor_id else []),
    )
    db.add(alert)
    try:
        db.commit()
    except IntegrityError:
        # The partial unique index rejected a second open warning.
        db.rollback()
        logger.info("Open expiration warning for internship %s created concurrently; skipped", internship_id)
        return None
    return alert


def run_expiration_scan(db: Session, today: date | None = None) -> dict:
    """Sweep active internships and create at most one warning per internship.

    Returns ``{"message": str, "alerts_created": int}``.
    """
    if today is None:
        today = datetime.utcnow().date()

    # Plain rows, so a rollback after a lost race does not expire anything we still need.
    candidates = db.query(
        Internship.id,
        Internship.kind,
        Internship.advisor_id,
        Internship.end_date,
    ).filter(
        Internship.status == InternshipStatus.ACTIVE.value,
        Internship.end_date.isnot(None),
    ).all()

    created = 0
    for internship_id, kind, advisor_id, raw_end_date in candidates:
        try:
            end_date = parse_iso_date(raw_end_date)
        except ValueError:
            logger.warning("Skipping internship %s: unparseable end date %r", internship_id, raw_end_date)
            continue
        if end_date is None:
            continue

        days = days_until_expiration(end_date, today)
        severity = severity_for_days(days)
        if severity is None:
            continue

        if has_open_expiration_alert(db, internship_id):
            logger.debug("Internship %s already has an open expiration warning", internship_id)
            continue

        alert = _create_expiration_alert(db, internship_id, kind, advisor_id, end_date, days, severity)
        if alert:
            created += 1
            logger.info(
                "Created %s severity expiration warning for internship %s (%d days)",
                severity.value, internship_id, days,
            )

    message = f"Scan finished. {created} new alerts created."
    logger.info("Expiration scan checked %d internships: %s", len(candidates), message)
    return {"message": message, "alerts_created": created}
