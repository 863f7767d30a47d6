from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Never touch a real database from the test run
TMP_DIR = Path(tempfile.mkdtemp(prefix="student-registry-"))
os.environ["DATABASE_URL"] = f"sqlite:///{TMP_DIR / 'students.db'}"

from app.database import SessionLocal, create_tables  # noqa: E402
from app.main import app  # noqa: E402
from app.models.student import Student  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    with TestClient(app) as tc:
        yield tc


@pytest.fixture(autouse=True)
def clean_students():
    create_tables()
    yield
    with SessionLocal() as session:
        session.query(Student).delete()
        session.commit()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
