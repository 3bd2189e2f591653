"""Alert schemas."""
import json
from typing import Any

from pydantic import BaseModel, Field, field_validator


class AlertResponse(BaseModel):
    """Alert record."""

    id: str
    internship_id: str
    internship_kind: str
    alert_type: str
    severity: str | None = None
    status: str
    title: str
    message: str
    days_until_expiration: int | None = None
    target_users: list[str]
    delivery_reference: str | None = None
    created_at: str
    sent_at: str | None = None
    read_at: str | None = None
    dismissed_at: str | None = None

    @field_validator("target_users", mode="before")
    @classmethod
    def parse_target_users(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return json.loads(v)
        return v

    class Config:
        from_attributes = True


class AlertSentRequest(BaseModel):
    """Delivery confirmation from the notification channel."""

    delivery_reference: str | None = None


class AlertScanResponse(BaseModel):
    """Result of an expiration scan."""

    message: str
    alerts_created: int = Field(serialization_alias="alertsCreated")

    class Config:
        populate_by_name = True
