import io
import os
import tempfile

# Settings are read at import time, so point them at throwaway locations first
_TMP_DIR = tempfile.mkdtemp(prefix="procurement-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ.setdefault("AUTO_CREATE_TABLES", "true")

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from database import Base, SessionLocal, engine
import models  # noqa: F401


@pytest.fixture(autouse=True)
def reset_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_xlsx():
    """Build an in-memory workbook from a header row and data rows."""
    def _make(header, rows, sheet_name="Sheet1"):
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = sheet_name
        sheet.append(list(header))
        for row in rows:
            sheet.append(list(row))
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
    return _make
