# app/schemas/alert.py
from pydantic import BaseModel, Field
from typing import Any, Optional

from app.schemas.base import BackendPayload


class CountingAlert(BackendPayload):
    id: str
    type: str                  # auto_fallback | service_error | ...
    message: str = ""
    timestamp: Optional[str] = None
    acknowledged: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


class CountingAlertsResponse(BackendPayload):
    status: Optional[str] = None
    timestamp: Optional[str] = None
    count: int = 0
    alerts: list[CountingAlert] = Field(default_factory=list)


class AcknowledgeRequest(BaseModel):
    alert_ids: Optional[list[str]] = None   # None = every unacknowledged alert


class AcknowledgeAlertsResponse(BackendPayload):
    status: Optional[str] = None
    message: Optional[str] = None
    acknowledged_count: int = 0


class SelectionUpdate(BaseModel):
    alert_ids: list[str]
