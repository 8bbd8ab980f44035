"""Document Service: per-claim document listings and single-document retrieval."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import Document
from services.errors import NotFoundError, StoreError
from services.file_store import FileStore

logger = logging.getLogger(__name__)


@dataclass
class DocumentView:
    id: int
    claim_id: str
    file_name: str
    file_path: str
    uploaded_at: datetime
    file_exists: bool
    url: Optional[str]


@dataclass
class DocumentFile:
    path: str
    file_name: str


class DocumentService:
    def __init__(self, session: Session, file_store: FileStore) -> None:
        self.session = session
        self.file_store = file_store

    def list_for_claim(self, claim_id: str) -> list[DocumentView]:
        """Documents of a claim, each flagged with whether its file is still on disk."""
        query = select(Document).where(Document.claim_id == claim_id).order_by(Document.id)
        try:
            documents = self.session.scalars(query).all()
        except SQLAlchemyError as e:
            logger.exception("Document listing failed for claim %s: %s", claim_id, e)
            raise StoreError("Documents could not be fetched") from e

        views = []
        for doc in documents:
            exists = self.file_store.exists(doc.file_path)
            if not exists:
                logger.warning("Document %s of claim %s missing on disk: %s", doc.id, claim_id, doc.file_path)
            views.append(
                DocumentView(
                    id=doc.id,
                    claim_id=doc.claim_id,
                    file_name=doc.file_name,
                    file_path=doc.file_path,
                    uploaded_at=doc.uploaded_at,
                    file_exists=exists,
                    url=self.file_store.url_for(doc.file_path) if exists else None,
                )
            )
        return views

    def fetch(self, document_id: int) -> DocumentFile:
        try:
            doc = self.session.get(Document, document_id)
        except SQLAlchemyError as e:
            logger.exception("Document lookup failed for %s: %s", document_id, e)
            raise StoreError("Document could not be fetched") from e
        if doc is None:
            raise NotFoundError("Document not found", resource="document", key=document_id)
        if not self.file_store.exists(doc.file_path):
            logger.warning("Document %s metadata present but file missing: %s", document_id, doc.file_path)
            raise NotFoundError("File not found on server", resource="file", key=doc.file_path)
        return DocumentFile(path=doc.file_path, file_name=doc.file_name)
