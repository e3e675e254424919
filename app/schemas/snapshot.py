# app/schemas/snapshot.py
from pydantic import BaseModel
from datetime import datetime
from typing import Any, Optional


class ErrorInfoOut(BaseModel):
    kind: str
    message: str
    status_code: Optional[int] = None


class SnapshotOut(BaseModel):
    source: str
    state: str                 # pending | ok | failed | stale
    loading: bool
    data: Optional[Any] = None
    error: Optional[ErrorInfoOut] = None
    last_fetched_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    polling: bool = False
    observers: int = 0
