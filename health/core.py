# ============================================================================
# HEALTH CHECK CORE TYPES
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Base classes for health checks
# PURPOSE: Health check plugin interface and result types
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Core Types

Self checks describe the monitor process. Registry outcomes are never
health checks; they are CheckResult records on the result stream.

Statuses, best to worst: healthy, degraded, unhealthy. Aggregates take the
worst member.

Categories run in priority order:
    startup (10)         process, config
    infrastructure (20)  kubernetes
    application (40)     reconciler, result_sink
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Health check status values."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def aggregate(cls, statuses: Iterable["HealthStatus"]) -> "HealthStatus":
        """Worst status wins; no statuses is healthy."""
        return max(statuses, key=_SEVERITY.__getitem__, default=cls.HEALTHY)


_SEVERITY = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}


class HealthCheckCategory(str, Enum):
    """Check categories; each carries a default priority."""
    STARTUP = "startup"
    INFRASTRUCTURE = "infrastructure"
    APPLICATION = "application"

    @property
    def default_priority(self) -> int:
        return _CATEGORY_PRIORITY[self]


_CATEGORY_PRIORITY = {
    HealthCheckCategory.STARTUP: 10,
    HealthCheckCategory.INFRASTRUCTURE: 20,
    HealthCheckCategory.APPLICATION: 40,
}


# ============================================================================
# RESULTS
# ============================================================================

class HealthCheckResult(BaseModel):
    """Outcome of one self check."""
    status: HealthStatus
    message: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    duration_ms: float = 0.0
    checked_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def healthy(cls, message: Optional[str] = None, **details) -> "HealthCheckResult":
        return cls(status=HealthStatus.HEALTHY, message=message, details=details)

    @classmethod
    def degraded(cls, message: str, **details) -> "HealthCheckResult":
        return cls(status=HealthStatus.DEGRADED, message=message, details=details)

    @classmethod
    def unhealthy(cls, message: str, **details) -> "HealthCheckResult":
        return cls(status=HealthStatus.UNHEALTHY, message=message, details=details)

    @classmethod
    def from_exception(cls, e: Exception) -> "HealthCheckResult":
        return cls.unhealthy(str(e) or type(e).__name__, exception_type=type(e).__name__)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form; empty message and details are omitted."""
        body = self.model_dump(
            mode="json",
            include={"status", "message", "details"},
            exclude_none=True,
        )
        if not body.get("details"):
            body.pop("details", None)
        body["duration_ms"] = round(self.duration_ms, 2)
        return body


class AggregatedHealthResult(BaseModel):
    """Outcome of a set of checks."""
    status: HealthStatus
    checks: Dict[str, HealthCheckResult]
    total_duration_ms: float
    checked_at: datetime = Field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "checks": {name: check.to_dict() for name, check in self.checks.items()},
            "total_duration_ms": round(self.total_duration_ms, 2),
            "checked_at": self.checked_at.isoformat(),
        }


# ============================================================================
# PLUGIN BASE
# ============================================================================

class HealthCheckPlugin(ABC):
    """
    Base class for self checks.

    Subclasses set a unique name and implement check(). Priority defaults
    to the category's; required_for_ready=False keeps a check out of
    /readyz. Register with @register_check.
    """

    name: ClassVar[str] = "unnamed"
    category: ClassVar[HealthCheckCategory] = HealthCheckCategory.APPLICATION
    priority: ClassVar[Optional[int]] = None
    timeout_seconds: ClassVar[float] = 10.0
    required_for_ready: ClassVar[bool] = True

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.priority is None:
            cls.priority = cls.category.default_priority

    @abstractmethod
    async def check(self) -> HealthCheckResult:
        """Run the check. Raising is reported as unhealthy."""


__all__ = [
    "HealthStatus",
    "HealthCheckCategory",
    "HealthCheckResult",
    "AggregatedHealthResult",
    "HealthCheckPlugin",
]
