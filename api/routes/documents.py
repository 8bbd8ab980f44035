"""
Document API routes.
GET /api/documents/{document_id} — stream one stored attachment
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from api.dependencies import get_document_service
from services.document_service import DocumentService
from services.errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.get("/{document_id}")
def get_document(document_id: int, service: DocumentService = Depends(get_document_service)):
    try:
        document = service.fetch(document_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        logger.error("Document lookup failed [%s]: %s", e.code, e)
        raise HTTPException(status_code=500, detail="Server error while fetching document")

    logger.info("Serving document %s from %s", document_id, document.path)
    return FileResponse(
        document.path,
        filename=document.file_name,
        content_disposition_type="inline",
    )
