"""Internship models."""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from estagiopro.database import Base

MANDATORY_REQUIRED_HOURS = 390
REPORT_COUNT = 10


class InternshipKind(str, Enum):
    MANDATORY = "mandatory"
    NON_MANDATORY = "non_mandatory"


class InternshipStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Internship(Base):
    """A student's internship, mandatory or not."""

    __tablename__ = "internships"
    __table_args__ = (
        Index("ix_internships_status_end", "status", "end_date"),
        Index("ix_internships_student", "student_id"),
        Index("ix_internships_advisor", "advisor_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    kind = Column(String(20), nullable=False)  # mandatory, non_mandatory

    # Relations owned by other services
    student_id = Column(String(36), nullable=False)
    advisor_id = Column(String(36))
    company_id = Column(String(36))
    supervisor = Column(String(255))
    crc = Column(String(50))

    status = Column(String(20), nullable=False, default=InternshipStatus.PENDING.value)
    start_date = Column(String(10))  # YYYY-MM-DD
    end_date = Column(String(10))  # YYYY-MM-DD, expiration reference

    # Workload
    partial_workload_hours = Column(Integer, nullable=False, default=0)
    required_workload_hours = Column(Integer)  # NULL = no fixed requirement

    # Progress reports R1-R10 (SQLite booleans, no ordering between them)
    r1 = Column(Integer, nullable=False, default=0)
    r2 = Column(Integer, nullable=False, default=0)
    r3 = Column(Integer, nullable=False, default=0)
    r4 = Column(Integer, nullable=False, default=0)
    r5 = Column(Integer, nullable=False, default=0)
    r6 = Column(Integer, nullable=False, default=0)
    r7 = Column(Integer, nullable=False, default=0)
    r8 = Column(Integer, nullable=False, default=0)
    r9 = Column(Integer, nullable=False, default=0)
    r10 = Column(Integer, nullable=False, default=0)

    # Audit
    created_by = Column(String(36))
    updated_by = Column(String(36))
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())

    # Relationships
    workload_entries = relationship(
        "WorkloadEntry",
        back_populates="internship",
        cascade="all, delete-orphan",
        order_by="WorkloadEntry.created_at",
    )

    def report_flag(self, index: int) -> bool:
        return bool(getattr(self, f"r{index}", 0))


class WorkloadEntry(Base):
    """One recorded change to an internship's partial workload."""

    __tablename__ = "internship_workload_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    internship_id = Column(String(36), ForeignKey("internships.id", ondelete="CASCADE"), nullable=False, index=True)
    previous_hours = Column(Integer, nullable=False)
    new_hours = Column(Integer, nullable=False)
    mode = Column(String(10), nullable=False)  # delta, absolute
    note = Column(Text)
    actor_id = Column(String(36))
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())

    internship = relationship("Internship", back_populates="workload_entries")
