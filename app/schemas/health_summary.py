# app/schemas/health_summary.py
from enum import Enum
from pydantic import BaseModel
from typing import Optional


class AlgorithmStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    ERROR = "error"
    UNKNOWN = "unknown"


class HealthSummary(BaseModel):
    system_reliable: Optional[bool] = None
    unreliable_camera_count: Optional[int] = None
    camera_count: int
    overall_algorithm_status: AlgorithmStatus = AlgorithmStatus.UNKNOWN
    healthy_service_count: int = 0
    total_service_count: int
    multiview_enabled: Optional[bool] = None
    singleview_enabled: Optional[bool] = None

    def display(self) -> dict:
        """Render for a status card — unknown values become "-"."""
        def show(value):
            return "-" if value is None else value

        return {
            "system_reliable": show(self.system_reliable),
            "unreliable_cameras": f"{show(self.unreliable_camera_count)}/{self.camera_count}",
            "algorithm_status": "-" if self.overall_algorithm_status == AlgorithmStatus.UNKNOWN
            else self.overall_algorithm_status.value,
            "services_healthy": f"{self.healthy_service_count}/{self.total_service_count}",
            "multiview_enabled": show(self.multiview_enabled),
            "singleview_enabled": show(self.singleview_enabled),
        }
