"""Alert API endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from estagiopro.api.deps import get_current_actor, get_db, http_error
from estagiopro.models.alert import AlertStatus
from estagiopro.schemas.alert import AlertResponse, AlertScanResponse, AlertSentRequest
from estagiopro.services import alert_lifecycle
from estagiopro.services.alert_scanner import run_expiration_scan
from estagiopro.services.errors import EngineError

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.post("/scan", response_model=AlertScanResponse)
def run_alert_scan(
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """Run the expiration scan now. Safe to repeat: open warnings are never duplicated."""
    result = run_expiration_scan(db)
    return AlertScanResponse(**result)


@router.get("", response_model=list[AlertResponse])
def list_alerts(
    status_filter: AlertStatus | None = Query(None, alias="status"),
    target_user: str | None = Query(None, description="Only alerts addressed to this user"),
    internship_id: str | None = Query(None),
    include_dismissed: bool = False,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """List alerts, newest first. Callers poll this; there is no push channel."""
    alerts = alert_lifecycle.list_alerts(
        db,
        status=status_filter,
        target_user=target_user,
        internship_id=internship_id,
        include_dismissed=include_dismissed,
        limit=limit,
    )
    return [AlertResponse.model_validate(a) for a in alerts]


@router.get("/{alert_id}", response_model=AlertResponse)
def get_alert(
    alert_id: str,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    try:
        alert = alert_lifecycle.get_alert(db, alert_id)
    except EngineError as exc:
        raise http_error(exc) from exc
    return AlertResponse.model_validate(alert)


@router.post("/{alert_id}/sent", response_model=AlertResponse)
def mark_alert_sent(
    alert_id: str,
    data: AlertSentRequest | None = None,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """Record that the alert was delivered to its recipients."""
    try:
        alert = alert_lifecycle.mark_sent(
            db, alert_id, delivery_reference=data.delivery_reference if data else None
        )
    except EngineError as exc:
        raise http_error(exc) from exc
    return AlertResponse.model_validate(alert)


@router.post("/{alert_id}/read", response_model=AlertResponse)
def mark_alert_read(
    alert_id: str,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    try:
        alert = alert_lifecycle.mark_read(db, alert_id)
    except EngineError as exc:
        raise http_error(exc) from exc
    return AlertResponse.model_validate(alert)


@router.post("/{alert_id}/dismiss", response_model=AlertResponse)
def dismiss_alert(
    alert_id: str,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    try:
        alert = alert_lifecycle.dismiss(db, alert_id)
    except EngineError as exc:
        raise http_error(exc) from exc
    return AlertResponse.model_validate(alert)
