# app/schemas/algorithm.py
from typing import Optional

from app.schemas.base import BackendPayload


class AlgorithmServiceStatus(BackendPayload):
    status: str = "unknown"    # unknown | healthy | unhealthy | error
    name: Optional[str] = None
    url: Optional[str] = None
    last_success_time: Optional[str] = None
    last_error_time: Optional[str] = None
    last_error_message: Optional[str] = None
    total_requests: int = 0
    total_success: int = 0
    total_errors: int = 0
    success_rate: Optional[float] = None
    last_response_time_ms: Optional[float] = None
    avg_response_time_ms: Optional[float] = None
    consecutive_errors: int = 0


class AlgorithmHealthResponse(BackendPayload):
    status: Optional[str] = None
    timestamp: Optional[str] = None
    overall_status: Optional[str] = None
    services: Optional[dict[str, Optional[AlgorithmServiceStatus]]] = None
