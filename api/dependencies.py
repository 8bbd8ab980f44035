"""FastAPI dependencies wiring request-scoped services to the app's store handles."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from db.database import get_db
from services.claim_service import ClaimService
from services.document_service import DocumentService
from services.file_store import FileStore


def get_file_store(request: Request) -> FileStore:
    return request.app.state.file_store


def get_claim_service(
    db: Session = Depends(get_db),
    file_store: FileStore = Depends(get_file_store),
) -> ClaimService:
    return ClaimService(db, file_store)


def get_document_service(
    db: Session = Depends(get_db),
    file_store: FileStore = Depends(get_file_store),
) -> DocumentService:
    return DocumentService(db, file_store)
