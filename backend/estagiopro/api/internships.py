"""Internship API endpoints."""
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from estagiopro.api.deps import get_current_actor, get_db, http_error
from estagiopro.models.internship import REPORT_COUNT, Internship, InternshipKind, InternshipStatus
from estagiopro.schemas.internship import (
    CertificateEligibilityResponse,
    InternshipCreate,
    InternshipResponse,
    InternshipUpdate,
    ReportUpdate,
    StatusTransition,
    WorkloadUpdate,
)
from estagiopro.services import lifecycle
from estagiopro.services.eligibility import evaluate_certificate_eligibility
from estagiopro.services.errors import EngineError
from estagiopro.services.institution_settings import get_institution_settings

router = APIRouter(prefix="/internships", tags=["internships"])


def _to_response(internship: Internship) -> InternshipResponse:
    return InternshipResponse(
        id=internship.id,
        kind=internship.kind,
        student_id=internship.student_id,
        advisor_id=internship.advisor_id,
        company_id=internship.company_id,
        supervisor=internship.supervisor,
        crc=internship.crc,
        status=internship.status,
        start_date=internship.start_date,
        end_date=internship.end_date,
        partial_workload_hours=internship.partial_workload_hours or 0,
        required_workload_hours=internship.required_workload_hours,
        remaining_workload_hours=lifecycle.remaining_workload(internship),
        reports={f"r{i}": internship.report_flag(i) for i in range(1, REPORT_COUNT + 1)},
        completed_reports=lifecycle.completed_reports(internship),
        completed_report_count=lifecycle.completed_report_count(internship),
        created_at=internship.created_at,
        updated_at=internship.updated_at,
    )


@router.post("", response_model=InternshipResponse, status_code=status.HTTP_201_CREATED)
def create_internship(
    data: InternshipCreate,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """Register an internship in pending status."""
    try:
        internship = lifecycle.create_internship(db, **data.model_dump(), actor_id=actor_id)
    except EngineError as exc:
        raise http_error(exc) from exc
    return _to_response(internship)


@router.get("", response_model=list[InternshipResponse])
def list_internships(
    status_filter: InternshipStatus | None = Query(None, alias="status"),
    kind: InternshipKind | None = Query(None),
    student_id: str | None = Query(None),
    advisor_id: str | None = Query(None),
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """List internships with optional equality filters."""
    internships = lifecycle.list_internships(
        db,
        status=status_filter,
        kind=kind,
        student_id=student_id,
        advisor_id=advisor_id,
    )
    return [_to_response(i) for i in internships]


@router.get("/{internship_id}", response_model=InternshipResponse)
def get_internship(
    internship_id: str,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    try:
        internship = lifecycle.get_internship(db, internship_id)
    except EngineError as exc:
        raise http_error(exc) from exc
    return _to_response(internship)


@router.patch("/{internship_id}", response_model=InternshipResponse)
def update_internship(
    internship_id: str,
    data: InternshipUpdate,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """Assign advisor, company, supervisor or dates."""
    try:
        internship = lifecycle.update_internship_details(
            db, internship_id, data.model_dump(exclude_unset=True), actor_id=actor_id
        )
    except EngineError as exc:
        raise http_error(exc) from exc
    return _to_response(internship)


@router.put("/{internship_id}/workload", response_model=InternshipResponse)
def update_workload(
    internship_id: str,
    data: WorkloadUpdate,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """Set or add to the partial workload. Never changes the status."""
    try:
        internship = lifecycle.update_workload(
            db, internship_id, data.hours, mode=data.mode, note=data.note, actor_id=actor_id
        )
    except EngineError as exc:
        raise http_error(exc) from exc
    return _to_response(internship)


@router.put("/{internship_id}/reports/{report_index}", response_model=InternshipResponse)
def record_report(
    internship_id: str,
    data: ReportUpdate,
    report_index: int = Path(..., ge=1, le=REPORT_COUNT),
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """Mark progress report R<index> as attached (or not)."""
    try:
        internship = lifecycle.record_report(
            db, internship_id, report_index, attached=data.attached, actor_id=actor_id
        )
    except EngineError as exc:
        raise http_error(exc) from exc
    return _to_response(internship)


@router.put("/{internship_id}/status", response_model=InternshipResponse)
def transition_status(
    internship_id: str,
    data: StatusTransition,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """Move the internship to another status, if the edge is allowed."""
    try:
        internship = lifecycle.transition(db, internship_id, data.status, actor_id=actor_id)
    except EngineError as exc:
        raise http_error(exc) from exc
    return _to_response(internship)


@router.get("/{internship_id}/certificate-eligibility", response_model=CertificateEligibilityResponse)
def get_certificate_eligibility(
    internship_id: str,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """Whether a certificate can be issued, with every blocking reason."""
    try:
        internship = lifecycle.get_internship(db, internship_id)
    except EngineError as exc:
        raise http_error(exc) from exc

    evaluation = evaluate_certificate_eligibility(internship)
    return CertificateEligibilityResponse(
        internship_id=internship.id,
        eligible=evaluation["eligible"],
        reasons=[reason.value for reason in evaluation["reasons"]],
        institution=get_institution_settings(),
    )
