# ============================================================================
# CLAUDE CONTEXT - CHECK RESULT MODELS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core model - Probe outcome and source identity
# PURPOSE: Define what a checker publishes on the result stream
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: SourceIdentity, CheckResult, MAX_MESSAGE_LENGTH
# DEPENDENCIES: pydantic
# ============================================================================
"""
Check Result Models

Two models:
- SourceIdentity: which pod ran the probe (optional tagging)
- CheckResult: one probe outcome, created fresh per cycle

Results are immutable and consumed once by the result sink.
Messages are kept whole; output renderers cap them at MAX_MESSAGE_LENGTH.
The serialized form is a flat record, one JSON object per line:

{
    "source": "10.1.4.17",
    "source_pod": "registry-monitor-6d9f7",
    "url": "registry.example.com",
    "success": true,
    "message": "{\"repositories\": []}",
    "checked_at": "2026-10-17T12:00:00+00:00",
    "duration_ms": 42
}

The source fields are omitted when identity tagging is disabled.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

MAX_MESSAGE_LENGTH = 2000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceIdentity(BaseModel):
    """Identity of the monitor instance that ran a probe."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., description="Pod IP matched against local interfaces")
    pod_name: Optional[str] = Field(default=None)
    namespace: Optional[str] = Field(default=None)

    def __str__(self) -> str:
        if self.pod_name:
            return f"{self.pod_name}/{self.address}"
        return self.address


class CheckResult(BaseModel):
    """Outcome of a single registry probe."""

    model_config = ConfigDict(frozen=True)

    source: Optional[SourceIdentity] = Field(default=None)
    url: str = Field(...)
    success: bool = Field(...)
    message: str = Field(default="")
    checked_at: datetime = Field(default_factory=_utcnow)
    duration_ms: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def ok(
        cls,
        url: str,
        message: str,
        duration_ms: Optional[int] = None,
    ) -> "CheckResult":
        """Create a success result."""
        return cls(
            url=url,
            success=True,
            message=message,
            duration_ms=duration_ms,
        )

    @classmethod
    def failed(
        cls,
        url: str,
        message: str,
        duration_ms: Optional[int] = None,
    ) -> "CheckResult":
        """Create a failure result."""
        return cls(
            url=url,
            success=False,
            message=message or "unknown error",
            duration_ms=duration_ms,
        )

    def with_source(self, source: Optional[SourceIdentity]) -> "CheckResult":
        """Return a copy tagged with the probing instance's identity."""
        if source is None:
            return self
        return self.model_copy(update={"source": source})

    def to_dict(self, max_message_length: Optional[int] = None) -> Dict[str, Any]:
        """
        Convert to the flat output record.

        Args:
            max_message_length: Truncate the message to this many
                characters (full message if None)
        """
        record: Dict[str, Any] = {}
        if self.source is not None:
            record["source"] = self.source.address
            if self.source.pod_name:
                record["source_pod"] = self.source.pod_name
        record.update({
            "url": self.url,
            "success": self.success,
            "message": self.message[:max_message_length],
            "checked_at": self.checked_at.isoformat(),
            "duration_ms": self.duration_ms,
        })
        return record

    def to_json(self, max_message_length: Optional[int] = None) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(max_message_length), default=str)


__all__ = ["SourceIdentity", "CheckResult", "MAX_MESSAGE_LENGTH"]
