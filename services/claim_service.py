"""
Claim Service.

Creates claims together with their document rows, lists and filters them for
HR review, and records approve/reject decisions.

Creation flow:
  validate → generate claim id → insert claim + documents (one transaction)
  → on failure roll back and delete this request's attachment files
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from db.models import Claim, ClaimStatus, Document
from services.errors import NotFoundError, StoreError, ValidationError
from services.file_store import FileStore
from services.validation import Attachment, check_employee_id, validate_submission

logger = logging.getLogger(__name__)

CLAIM_ID_ATTEMPTS = 5
DECISION_STATUSES = (ClaimStatus.APPROVED.value, ClaimStatus.REJECTED.value)


@dataclass
class StoredDocument:
    original_name: str
    stored_path: str


@dataclass
class CreatedClaim:
    claim_id: str
    documents: list[StoredDocument] = field(default_factory=list)


def generate_claim_id(now: Optional[datetime] = None) -> str:
    """CLM-<year>-<4 random digits>; not unique on its own."""
    year = (now or datetime.now()).year
    return f"CLM-{year}-{random.randint(1000, 9999)}"


class ClaimService:
    def __init__(self, session: Session, file_store: FileStore) -> None:
        self.session = session
        self.file_store = file_store

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _new_claim_id(self, now: datetime) -> str:
        for _ in range(CLAIM_ID_ATTEMPTS):
            claim_id = generate_claim_id(now)
            if self.session.get(Claim, claim_id) is None:
                return claim_id
            logger.warning("Claim id collision on %s, regenerating", claim_id)
        raise StoreError(f"Could not allocate a free claim id after {CLAIM_ID_ATTEMPTS} attempts")

    def create(self, fields: Mapping[str, Any], attachments: Sequence[Attachment]) -> CreatedClaim:
        """
        Validate a submission and persist the claim with one document row per
        stored attachment.

        The attachment files are already in the file store; on any failure they
        are deleted before the error propagates.
        """
        stored_paths = [a.storage_path for a in attachments]

        try:
            submission = validate_submission(fields, attachments)
        except ValidationError as e:
            logger.info("Claim submission rejected (%s): %s", e.reason, e.detail)
            self.file_store.remove_all(stored_paths)
            raise

        try:
            now = datetime.now()
            claim_id = self._new_claim_id(now)
            claim = Claim(
                claim_id=claim_id,
                employee_name=submission.employee_name,
                employee_email=submission.employee_email,
                employee_id=submission.employee_id,
                department=submission.department,
                claim_date=submission.claim_date,
                amount=submission.amount,
                description=submission.description,
                type=submission.type,
                status=ClaimStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
            self.session.add(claim)

            for attachment in attachments:
                if not self.file_store.exists(attachment.storage_path):
                    logger.error("File not saved to disk: %s", attachment.storage_path)
                    continue
                claim.documents.append(
                    Document(
                        file_name=attachment.original_name,
                        file_path=attachment.storage_path,
                        uploaded_at=datetime.now(),
                    )
                )

            self.session.commit()
        except (SQLAlchemyError, StoreError) as e:
            self.session.rollback()
            logger.exception("Claim creation failed, cleaning up %d file(s): %s", len(stored_paths), e)
            self.file_store.remove_all(stored_paths)
            if isinstance(e, StoreError):
                raise
            raise StoreError("Claim could not be saved") from e

        logger.info("Claim %s saved with %d document(s)", claim_id, len(claim.documents))
        return CreatedClaim(
            claim_id=claim_id,
            documents=[
                StoredDocument(original_name=a.original_name, stored_path=a.storage_path)
                for a in attachments
            ],
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_claims(
        self,
        employee_id: Optional[str] = None,
        claim_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Claim]:
        """Claims matching every given filter, newest first, documents attached."""
        query = select(Claim).options(selectinload(Claim.documents))

        if employee_id:
            query = query.where(Claim.employee_id == check_employee_id(employee_id))
        if claim_id:
            query = query.where(Claim.claim_id == claim_id)
        if status:
            query = query.where(Claim.status == status)

        query = query.order_by(Claim.created_at.desc())
        try:
            return list(self.session.scalars(query).all())
        except SQLAlchemyError as e:
            logger.exception("Claim listing failed: %s", e)
            raise StoreError("Claims could not be fetched") from e

    def get(self, claim_id: str) -> Claim:
        try:
            claim = self.session.get(Claim, claim_id, options=[selectinload(Claim.documents)])
        except SQLAlchemyError as e:
            logger.exception("Claim lookup failed for %s: %s", claim_id, e)
            raise StoreError("Claim could not be fetched") from e
        if claim is None:
            raise NotFoundError("Claim not found", resource="claim", key=claim_id)
        return claim

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def update_status(self, claim_id: str, status: str) -> Claim:
        """
        Record an HR decision. Decided claims may be decided again; the last
        write wins.
        """
        if status not in DECISION_STATUSES:
            raise ValidationError("bad status", "Status must be approved or rejected")

        claim = self.get(claim_id)
        try:
            claim.status = status
            claim.updated_at = datetime.now()
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Status update failed for claim %s: %s", claim_id, e)
            raise StoreError("Claim could not be updated") from e

        logger.info("Claim %s status updated to %s", claim_id, status)
        return claim
