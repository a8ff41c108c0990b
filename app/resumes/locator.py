from __future__ import annotations

import logging

from app.core.errors import (
    DuplicateRecord,
    InvalidIdentifier,
    NotAuthorized,
    RecordNotFound,
)
from app.integrations.types import RecordStore
from app.resumes.identifiers import first_segment, is_valid_uuid
from app.resumes.models import ResumeRecord
from app.resumes.similarity import best_match

logger = logging.getLogger(__name__)

RESUMES_TABLE = "resumes"


class ResumeLocator:
    """Turns a client-supplied resume id into the authoritative record.

    An exact match is preferred. When no row carries the id, rows sharing the
    id's first segment are scored positionally and the best one is
    substituted if it clears ``threshold``. Ownership is always checked last.
    """

    def __init__(self, store: RecordStore, *, threshold: float = 0.9):
        self._store = store
        self._threshold = threshold

    def locate(self, requested_id: str, owner_id: str) -> ResumeRecord:
        if not is_valid_uuid(requested_id):
            raise InvalidIdentifier(details="Resume ID must be a valid UUID")

        rows = self._store.select(RESUMES_TABLE, {"id": requested_id})
        if len(rows) > 1:
            logger.error("resume_duplicate_rows resume_id=%s count=%s", requested_id, len(rows))
            raise DuplicateRecord(details="Database integrity issue")

        if rows:
            record = ResumeRecord.from_row(rows[0])
        else:
            record = self._recover_similar(requested_id)

        if record.owner_id != owner_id:
            logger.warning("resume_owner_mismatch resume_id=%s", record.id)
            raise NotAuthorized(details="The resume belongs to a different user")
        return record

    def _recover_similar(self, requested_id: str) -> ResumeRecord:
        prefix = first_segment(requested_id)
        candidates = self._store.select_prefix(RESUMES_TABLE, "id", prefix)
        if not candidates:
            logger.info("resume_not_found resume_id=%s similar=0", requested_id)
            raise RecordNotFound(details="No resume with this ID exists")

        winner, best_score = best_match(
            requested_id,
            candidates,
            key=lambda row: str(row.get("id") or ""),
            threshold=self._threshold,
        )
        if winner is None:
            logger.info(
                "resume_not_found resume_id=%s similar=%s best_score=%.3f",
                requested_id,
                len(candidates),
                best_score,
            )
            raise RecordNotFound(
                details={
                    "message": "No resume with this ID exists",
                    "similarFound": True,
                    "similarityThreshold": "not met",
                }
            )

        logger.info(
            "resume_id_substituted requested=%s using=%s score=%.3f",
            requested_id,
            winner.get("id"),
            best_score,
        )
        return ResumeRecord.from_row(winner)
