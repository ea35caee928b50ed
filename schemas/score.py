from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

STORAGE_KEY_PREFIX = "ticket-score:"


def storage_key(issue_key: str) -> str:
    """Key under which an issue's score lives in the key-value store."""
    return f"{STORAGE_KEY_PREFIX}{issue_key}"


def utc_now_iso() -> str:
    """Current UTC time as ``2025-01-01T12:00:00.000Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ScoreRecord(BaseModel):
    """Latest score of one issue. Overwritten on every save (last-write-wins)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    issue_key: str
    score: Union[int, float]
    metadata: dict[str, Any] = Field(default_factory=dict)
    updated_at: str = Field(..., description="ISO-8601 UTC timestamp")
    updated_by: Optional[str] = Field(default=None, description="Acting account id")

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
