"""Tests for the Document Service: listings with on-disk status, and fetch by id."""

import os

import pytest
from sqlalchemy.exc import SQLAlchemyError

from services.errors import NotFoundError, StoreError


@pytest.fixture
def created(claim_service, valid_fields, store_attachment):
    return claim_service.create(
        valid_fields, [store_attachment("receipt.pdf"), store_attachment("hotel.jpg", "image/jpeg")]
    )


def test_list_for_claim_reports_existence_and_url(document_service, created):
    views = document_service.list_for_claim(created.claim_id)

    assert [v.file_name for v in views] == ["receipt.pdf", "hotel.jpg"]
    for view in views:
        assert view.claim_id == created.claim_id
        assert view.file_exists is True
        assert view.url == "/uploads/" + os.path.basename(view.file_path)
        assert view.uploaded_at is not None


def test_list_for_claim_flags_missing_file(document_service, created):
    os.unlink(created.documents[0].stored_path)

    views = document_service.list_for_claim(created.claim_id)

    assert views[0].file_exists is False
    assert views[0].url is None
    assert views[1].file_exists is True


def test_list_for_unknown_claim_is_empty(document_service):
    assert document_service.list_for_claim("CLM-1999-0000") == []


def test_fetch_returns_stored_file(document_service, created):
    doc_id = document_service.list_for_claim(created.claim_id)[0].id

    document = document_service.fetch(doc_id)

    assert document.file_name == "receipt.pdf"
    with open(document.path, "rb") as f:
        assert f.read().startswith(b"%PDF")


def test_fetch_unknown_document(document_service):
    with pytest.raises(NotFoundError, match="Document not found"):
        document_service.fetch(9999)


def test_fetch_file_removed_from_store(document_service, created):
    view = document_service.list_for_claim(created.claim_id)[1]
    os.unlink(view.file_path)

    with pytest.raises(NotFoundError, match="File not found on server") as exc:
        document_service.fetch(view.id)
    assert exc.value.resource == "file"


def test_fetch_store_failure(document_service, session, created, monkeypatch):
    doc_id = document_service.list_for_claim(created.claim_id)[0].id

    def failing_get(*args, **kwargs):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(session, "get", failing_get)

    with pytest.raises(StoreError, match="Document could not be fetched"):
        document_service.fetch(doc_id)
