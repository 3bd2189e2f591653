"""Internship schemas."""
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from estagiopro.models.internship import InternshipKind, InternshipStatus


class InternshipCreate(BaseModel):
    """Request to register an internship (created as pending)."""

    kind: InternshipKind
    student_id: str
    advisor_id: str | None = None
    company_id: str | None = None
    supervisor: str | None = None
    crc: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    required_workload_hours: int | None = Field(
        None,
        ge=0,
        description="Mandatory internships always require 390 hours; any other value is rejected",
    )
    partial_workload_hours: int = Field(0, ge=0)


class InternshipUpdate(BaseModel):
    """Assign relations and dates. Kind, status, workload and reports have their own endpoints."""

    advisor_id: str | None = None
    company_id: str | None = None
    supervisor: str | None = None
    crc: str | None = None
    start_date: date | None = None
    end_date: date | None = None


class WorkloadUpdate(BaseModel):
    """Absolute value or delta for the partial workload."""

    hours: int
    mode: Literal["absolute", "delta"] = "absolute"
    note: str | None = None

    @model_validator(mode="after")
    def absolute_not_negative(self) -> "WorkloadUpdate":
        if self.mode == "absolute" and self.hours < 0:
            raise ValueError("Absolute workload must not be negative")
        return self


class ReportUpdate(BaseModel):
    attached: bool = True


class StatusTransition(BaseModel):
    status: InternshipStatus


class InternshipResponse(BaseModel):
    """Internship record with derived workload/report status."""

    id: str
    kind: str
    student_id: str
    advisor_id: str | None
    company_id: str | None
    supervisor: str | None
    crc: str | None
    status: str
    start_date: str | None
    end_date: str | None
    partial_workload_hours: int
    required_workload_hours: int | None
    remaining_workload_hours: int
    reports: dict[str, bool]  # r1..r10
    completed_reports: list[int]
    completed_report_count: int
    created_at: str
    updated_at: str


class CertificateEligibilityResponse(BaseModel):
    """Eligibility verdict plus the institution settings the renderer needs."""

    internship_id: str
    eligible: bool
    reasons: list[str]
    institution: dict[str, str]
