from __future__ import annotations

import asyncio
import math
import numbers
from typing import Any, Iterable, Optional

from app_core.async_bridge import run_async
from app_core.errors import ValidationError
from app_logging.activity_logger import ActivityLogger
from persistence.repository import StorageRepository
from schemas.score import ScoreRecord, storage_key, utc_now_iso

logger = ActivityLogger("score_access")


def require_issue_key(issue_key: Any, message: str = "Issue key is required") -> str:
    if not issue_key:
        raise ValidationError(message, field="issueKey")
    if not isinstance(issue_key, str):
        raise ValidationError("Issue key must be a string", field="issueKey")
    return issue_key


def validate_score(score: Any) -> None:
    if score is None:
        raise ValidationError("Score is required", field="score")
    # bool is an int subclass, but true/false are not scores
    if isinstance(score, bool) or not isinstance(score, numbers.Real):
        raise ValidationError("Score must be a number", field="score")
    # NaN and infinities are not valid JSON and would poison every later read
    if isinstance(score, float) and not math.isfinite(score):
        raise ValidationError("Score must be a number", field="score")


class ScoreAccess:
    """Read/write/delete of ticket score records in the key-value store."""

    def __init__(self, repository: Optional[StorageRepository] = None) -> None:
        self._repo = repository or StorageRepository()

    # ── Writes ────────────────────────────────────────────────────────────────

    def save(
        self,
        issue_key: Any,
        score: Any,
        metadata: Optional[dict[str, Any]] = None,
        updated_by: Optional[str] = None,
    ) -> ScoreRecord:
        """Validate and store a manually supplied score. Nothing is written on failure."""
        issue_key = require_issue_key(issue_key)
        validate_score(score)
        if metadata is not None and not isinstance(metadata, dict):
            raise ValidationError("Metadata must be an object", field="metadata")

        record = ScoreRecord(
            issue_key=issue_key,
            score=score,
            metadata=metadata or {},
            updated_at=utc_now_iso(),
            updated_by=updated_by,
        )
        self.put(record)
        return record

    def put(self, record: ScoreRecord) -> None:
        """Store an already-assembled record, replacing any previous one."""
        self._repo.set(storage_key(record.issue_key), record.to_storage())
        logger.info("ticket_score_saved", issue_key=record.issue_key, score=record.score)

    def delete(self, issue_key: Any) -> None:
        issue_key = require_issue_key(issue_key)
        existed = self._repo.delete(storage_key(issue_key))
        logger.info("ticket_score_deleted", issue_key=issue_key, existed=existed)

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get(self, issue_key: Any) -> Optional[ScoreRecord]:
        issue_key = require_issue_key(issue_key)
        value = self._repo.get(storage_key(issue_key))
        if not value:
            logger.debug("ticket_score_not_found", issue_key=issue_key)
            return None
        return ScoreRecord.model_validate(value)

    async def aget_many(self, issue_keys: Iterable[str]) -> dict[str, ScoreRecord]:
        """
        Fan out one read per key on worker threads and join on all of them.
        Any failing read fails the whole batch.
        """
        keys = list(dict.fromkeys(issue_keys))
        for key in keys:
            require_issue_key(key)

        results = await asyncio.gather(*(asyncio.to_thread(self.get, key) for key in keys))
        return {key: record for key, record in zip(keys, results) if record is not None}

    def get_many(self, issue_keys: Iterable[str]) -> dict[str, ScoreRecord]:
        scores = run_async(self.aget_many(issue_keys))
        logger.info("ticket_scores_batch_read", found=len(scores))
        return scores
