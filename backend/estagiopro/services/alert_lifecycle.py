"""Alert status transitions: pending -> sent -> read, and dismissal.

Each transition is one conditional UPDATE guarded by the allowed source
statuses, so concurrent requests on the same alert cannot both win. The
source internship is never touched.
"""
import json
import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from estagiopro.models.alert import AlertStatus, InternshipAlert
from estagiopro.services.errors import IllegalTransition, NotFound

logger = logging.getLogger(__name__)


def get_alert(db: Session, alert_id: str) -> InternshipAlert:
    alert = db.query(InternshipAlert).filter(InternshipAlert.id == alert_id).first()
    if not alert:
        raise NotFound(f"Alert {alert_id} not found")
    return alert


def list_alerts(
    db: Session,
    status: AlertStatus | str | None = None,
    target_user: str | None = None,
    internship_id: str | None = None,
    include_dismissed: bool = False,
    limit: int = 100,
) -> list[InternshipAlert]:
    """Alerts newest first. Dismissed alerts are hidden unless asked for."""
    query = db.query(InternshipAlert)
    if status:
        query = query.filter(InternshipAlert.status == AlertStatus(status).value)
    elif not include_dismissed:
        query = query.filter(InternshipAlert.status != AlertStatus.DISMISSED.value)
    if internship_id:
        query = query.filter(InternshipAlert.internship_id == internship_id)
    if target_user:
        # target_users is a JSON list of ids; match the quoted element
        query = query.filter(InternshipAlert.target_users.contains(json.dumps(target_user), autoescape=True))

    return query.order_by(InternshipAlert.created_at.desc()).limit(limit).all()


def _apply_transition(
    db: Session,
    alert_id: str,
    allowed_from: tuple[str, ...],
    values: dict,
) -> bool:
    """Compare-and-set the alert's status. Returns False if the alert was not in an allowed status."""
    updated = db.query(InternshipAlert).filter(
        InternshipAlert.id == alert_id,
        InternshipAlert.status.in_(allowed_from),
    ).update(values, synchronize_session=False)
    if updated:
        db.commit()
        return True
    db.rollback()
    return False


def mark_sent(db: Session, alert_id: str, delivery_reference: str | None = None) -> InternshipAlert:
    """Record delivery of a pending alert."""
    values = {
        "status": AlertStatus.SENT.value,
        "sent_at": datetime.utcnow().isoformat(),
    }
    if delivery_reference:
        values["delivery_reference"] = delivery_reference

    if not _apply_transition(db, alert_id, (AlertStatus.PENDING.value,), values):
        alert = get_alert(db, alert_id)
        raise IllegalTransition(f"Cannot mark alert as sent from status {alert.status}")

    logger.info("Alert %s marked as sent", alert_id)
    return get_alert(db, alert_id)


def mark_read(db: Session, alert_id: str) -> InternshipAlert:
    """Mark an alert read. Reading an already-read alert is a no-op."""
    values = {
        "status": AlertStatus.READ.value,
        "read_at": func.coalesce(InternshipAlert.read_at, datetime.utcnow().isoformat()),
    }
    if not _apply_transition(db, alert_id, (AlertStatus.PENDING.value, AlertStatus.SENT.value), values):
        alert = get_alert(db, alert_id)
        if alert.status == AlertStatus.READ.value:
            return alert
        raise IllegalTransition(f"Cannot mark alert as read from status {alert.status}")

    logger.info("Alert %s marked as read", alert_id)
    return get_alert(db, alert_id)


def dismiss(db: Session, alert_id: str) -> InternshipAlert:
    """Dismiss an alert. Dismissed is terminal; the record is kept for audit."""
    allowed_from = (AlertStatus.PENDING.value, AlertStatus.SENT.value, AlertStatus.READ.value)
    values = {
        "status": AlertStatus.DISMISSED.value,
        "dismissed_at": datetime.utcnow().isoformat(),
    }
    if not _apply_transition(db, alert_id, allowed_from, values):
        alert = get_alert(db, alert_id)
        raise IllegalTransition(f"Cannot dismiss alert in status {alert.status}")

    logger.info("Alert %s dismissed", alert_id)
    return get_alert(db, alert_id)
