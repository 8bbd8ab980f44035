"""
Pytest fixtures for the claims portal test suite.

Provides:
- A SQLite-backed Database handle per test (foreign keys enforced)
- A FileStore rooted in the test's tmp_path
- Helpers for building valid submissions and stored attachments
- A TestClient wired to both
"""

import io
import os
import tempfile

# Keep module-level defaults (api.main builds an app at import) out of the working tree
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="claims-uploads-"))
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(tempfile.mkdtemp(), "claims.db"))

from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from db.database import Database
from services.claim_service import ClaimService
from services.document_service import DocumentService
from services.file_store import FileStore
from services.validation import Attachment

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"


@pytest.fixture
def database(tmp_path: Path):
    db = Database(f"sqlite:///{tmp_path / 'claims.db'}").open()
    db.init_db()
    yield db
    db.close()


@pytest.fixture
def session(database: Database):
    with database.session() as s:
        yield s


@pytest.fixture
def file_store(tmp_path: Path) -> FileStore:
    return FileStore(tmp_path / "uploads")


@pytest.fixture
def claim_service(session, file_store) -> ClaimService:
    return ClaimService(session, file_store)


@pytest.fixture
def document_service(session, file_store) -> DocumentService:
    return DocumentService(session, file_store)


@pytest.fixture
def valid_fields() -> dict:
    return {
        "employee_name": "Asha Rao",
        "employee_email": "a@gmail.com",
        "employee_id": "ATS0123",
        "department": "Engineering",
        "claim_date": date.today().isoformat(),
        "amount": "1500.50",
        "description": "Client visit travel",
        "type": "travel",
    }


@pytest.fixture
def store_attachment(file_store: FileStore):
    """Write bytes into the file store and return the attachment descriptor."""

    def _store(name="receipt.pdf", content_type="application/pdf", data=PDF_BYTES) -> Attachment:
        return file_store.save(io.BytesIO(data), name, content_type)

    return _store


@pytest.fixture
def client(tmp_path: Path, file_store: FileStore):
    app = create_app(
        database=Database(f"sqlite:///{tmp_path / 'api.db'}"),
        file_store=file_store,
    )
    with TestClient(app) as c:
        yield c
