"""Alert model for internship expiration warnings."""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, text

from estagiopro.database import Base


class AlertType(str, Enum):
    EXPIRATION_WARNING = "expiration_warning"
    DOCUMENT_MISSING = "document_missing"
    SYSTEM_ALERT = "system_alert"


class AlertStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    READ = "read"
    DISMISSED = "dismissed"


class AlertSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


OPEN_ALERT_STATUSES = (AlertStatus.PENDING.value, AlertStatus.SENT.value)

# Shared by the SQLite and PostgreSQL partial indexes below.
_OPEN_EXPIRATION_WARNING = text(
    "alert_type = 'expiration_warning' AND status IN ('pending', 'sent')"
)


class InternshipAlert(Base):
    """Alert raised about an internship (expiration, missing documents, ...)."""

    __tablename__ = "internship_alerts"
    __table_args__ = (
        # At most one open expiration warning per internship, enforced by the store.
        Index(
            "uq_internship_alerts_open_expiration",
            "internship_id",
            "alert_type",
            unique=True,
            sqlite_where=_OPEN_EXPIRATION_WARNING,
            postgresql_where=_OPEN_EXPIRATION_WARNING,
        ),
        Index("ix_internship_alerts_status_created", "status", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    internship_id = Column(String(36), ForeignKey("internships.id", ondelete="CASCADE"), nullable=False, index=True)
    internship_kind = Column(String(20), nullable=False)  # snapshot at creation

    alert_type = Column(String(30), nullable=False)
    severity = Column(String(10))  # high, medium, low
    status = Column(String(20), nullable=False, default=AlertStatus.PENDING.value)

    # Content
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    days_until_expiration = Column(Integer)  # snapshot, never recomputed

    # Delivery
    target_users = Column(Text, default="[]")  # JSON array of user ids
    delivery_reference = Column(String(255))

    # Timestamps
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    sent_at = Column(String(26))
    read_at = Column(String(26))
    dismissed_at = Column(String(26))
