"""
Error taxonomy for the claims portal services.

Every error carries a class-level ``code`` so the HTTP layer (and logs) can
identify the category without parsing messages.

  ValidationError  — client input is malformed or out of range (HTTP 400)
  NotFoundError    — referenced claim, document or file is absent (HTTP 404)
  StoreError       — the relational store failed (HTTP 500, detail not leaked)
  FileStoreError   — reading or writing an attachment failed (HTTP 500)
"""

from __future__ import annotations


class ClaimsPortalError(Exception):
    """Base exception for all claims portal errors."""

    code: str = "CLAIMS_PORTAL_ERROR"


class ValidationError(ClaimsPortalError):
    """
    A claim submission, filter or status update failed validation.

    ``reason`` is a short stable code ("bad email", "no documents", ...);
    ``detail`` is the message shown to the caller.
    """

    code: str = "VALIDATION_ERROR"

    def __init__(self, reason: str, detail: str | None = None):
        self.reason = reason
        self.detail = detail or reason
        super().__init__(self.detail)


class NotFoundError(ClaimsPortalError):
    """A claim, document row, or the document's file on disk does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, message: str, *, resource: str = "claim", key: object = None):
        self.resource = resource
        self.key = key
        super().__init__(message)


class StoreError(ClaimsPortalError):
    """The relational store rejected or failed a statement."""

    code: str = "STORE_ERROR"


class FileStoreError(ClaimsPortalError):
    """An attachment could not be written to or read from the file store."""

    code: str = "FILE_STORE_ERROR"
