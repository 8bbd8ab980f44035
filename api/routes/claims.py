"""
Claims API routes.
POST  /api/claims                        — submit a claim with supporting documents
GET   /api/claims                        — list claims (filters: employee_id, claim_id, status)
GET   /api/claims/{claim_id}             — retrieve one claim with its documents
GET   /api/claims/{claim_id}/documents   — list a claim's documents with on-disk status
PATCH /api/claims/{claim_id}             — approve or reject a claim
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict

from api.dependencies import get_claim_service, get_document_service, get_file_store
from services.claim_service import ClaimService
from services.document_service import DocumentService
from services.errors import FileStoreError, NotFoundError, StoreError, ValidationError
from services.file_store import FileStore
from services.validation import Attachment

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/claims", tags=["claims"])


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class StoredDocumentOut(BaseModel):
    original_name: str
    stored_path: str


class SubmitClaimResponse(BaseModel):
    message: str
    claim_id: str
    documents: list[StoredDocumentOut]


class ClaimDocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_name: str
    file_path: str


class ClaimOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    claim_id: str
    employee_name: str
    employee_email: str
    employee_id: str
    department: str
    claim_date: date
    amount: Decimal
    description: str
    type: str
    status: str
    created_at: datetime
    updated_at: datetime


class ClaimWithDocumentsOut(ClaimOut):
    documents: list[ClaimDocumentOut] = []


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    claim_id: str
    file_name: str
    file_path: str
    uploaded_at: datetime
    file_exists: bool
    url: Optional[str]


class StatusUpdate(BaseModel):
    status: Optional[str] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", response_model=SubmitClaimResponse, status_code=201)
def submit_claim(
    employee_name: Optional[str] = Form(None),
    employee_email: Optional[str] = Form(None),
    employee_id: Optional[str] = Form(None),
    department: Optional[str] = Form(None),
    claim_date: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    documents: Optional[list[UploadFile]] = File(None),
    service: ClaimService = Depends(get_claim_service),
    file_store: FileStore = Depends(get_file_store),
):
    """
    Submit an expense claim. Attach 1–5 documents (PDF, JPG or PNG, max 5MB each)
    under the ``documents`` form field.
    """
    fields = {
        "employee_name": employee_name,
        "employee_email": employee_email,
        "employee_id": employee_id,
        "department": department,
        "claim_date": claim_date,
        "amount": amount,
        "description": description,
        "type": type,
    }

    attachments: list[Attachment] = []
    try:
        for upload in documents or []:
            attachments.append(
                file_store.save(upload.file, upload.filename or "", upload.content_type)
            )
    except FileStoreError as e:
        logger.exception("Attachment upload failed [%s]: %s", e.code, e)
        file_store.remove_all(a.storage_path for a in attachments)
        raise HTTPException(status_code=500, detail="Server error while submitting claim")

    logger.info(
        "Claim submission for %s with %d document(s)", employee_id, len(attachments)
    )

    try:
        created = service.create(fields, attachments)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except StoreError as e:
        logger.error("Claim submission failed [%s]: %s", e.code, e)
        raise HTTPException(status_code=500, detail="Server error while submitting claim")

    return SubmitClaimResponse(
        message="Claim submitted successfully",
        claim_id=created.claim_id,
        documents=[
            StoredDocumentOut(original_name=d.original_name, stored_path=d.stored_path)
            for d in created.documents
        ],
    )


@router.get("", response_model=list[ClaimWithDocumentsOut])
def list_claims(
    employee_id: Optional[str] = None,
    claim_id: Optional[str] = None,
    status: Optional[str] = None,
    service: ClaimService = Depends(get_claim_service),
):
    """List claims, newest first, each with its documents."""
    try:
        return service.list_claims(employee_id=employee_id, claim_id=claim_id, status=status)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except StoreError as e:
        logger.error("Claim listing failed [%s]: %s", e.code, e)
        raise HTTPException(status_code=500, detail="Server error while fetching claims")


@router.get("/{claim_id}", response_model=ClaimWithDocumentsOut)
def get_claim(claim_id: str, service: ClaimService = Depends(get_claim_service)):
    """Retrieve a single claim by ID."""
    try:
        return service.get(claim_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        logger.error("Claim lookup failed [%s]: %s", e.code, e)
        raise HTTPException(status_code=500, detail="Server error while fetching claim")


@router.get("/{claim_id}/documents", response_model=list[DocumentOut])
def list_claim_documents(
    claim_id: str, service: DocumentService = Depends(get_document_service)
):
    """Documents attached to a claim, with a URL for those still on disk."""
    try:
        return service.list_for_claim(claim_id)
    except StoreError as e:
        logger.error("Document listing failed [%s]: %s", e.code, e)
        raise HTTPException(status_code=500, detail="Server error while fetching documents")


@router.patch("/{claim_id}", response_model=ClaimOut)
def update_claim_status(
    claim_id: str,
    payload: StatusUpdate,
    service: ClaimService = Depends(get_claim_service),
):
    """Approve or reject a claim."""
    try:
        return service.update_status(claim_id, payload.status or "")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        logger.error("Status update failed [%s]: %s", e.code, e)
        raise HTTPException(status_code=500, detail="Server error while updating claim")
