import shutil
import uuid

import pytest
from sqlalchemy import create_engine, inspect, text

from app.database import BACKEND_DIR, engine, run_migrations
from app.errors import NotNullViolation, UniquenessViolation
from app.services.students import create_student


def _plan(sql, params):
    with engine.connect() as conn:
        rows = conn.execute(text("EXPLAIN QUERY PLAN " + sql), params).all()
    return " ".join(row[-1] for row in rows)


def test_distinct_usernames_get_distinct_ids(db):
    students = [create_student(db, f"user{i}", "hash", f"User {i}") for i in range(5)]

    ids = {s.id for s in students}
    assert len(ids) == 5
    assert all(isinstance(i, uuid.UUID) for i in ids)


def test_new_record_has_equal_timestamps(db):
    student = create_student(db, "jdoe", "<hash>", "Jane Doe", matric_number="U1234567")

    assert student.created_at is not None
    assert student.created_at == student.updated_at


def test_duplicate_username_is_rejected(db):
    create_student(db, "jdoe", "<hash>", "Jane Doe", matric_number="U1234567")

    with pytest.raises(UniquenessViolation) as exc:
        create_student(db, "jdoe", "other", "Someone Else")
    assert exc.value.column == "username"


def test_duplicate_matric_number_is_rejected(db):
    create_student(db, "jdoe", "<hash>", "Jane Doe", matric_number="U1234567")

    with pytest.raises(UniquenessViolation) as exc:
        create_student(db, "asmith", "<hash>", "Al Smith", matric_number="U1234567")
    assert exc.value.column == "matric_number"


def test_null_matric_numbers_do_not_collide(db):
    create_student(db, "first", "hash", "First")
    create_student(db, "second", "hash", "Second")

    assert db.execute(text("SELECT COUNT(*) FROM students WHERE matric_number IS NULL")).scalar() == 2


@pytest.mark.parametrize("missing", ["username", "password", "name"])
def test_required_fields(db, missing):
    fields = {"username": "jdoe", "password": "hash", "name": "Jane Doe"}
    fields[missing] = None

    with pytest.raises(NotNullViolation) as exc:
        create_student(db, **fields)
    assert exc.value.column == missing


def test_session_usable_after_violation(db):
    create_student(db, "jdoe", "hash", "Jane Doe")
    with pytest.raises(UniquenessViolation):
        create_student(db, "jdoe", "hash", "Jane Doe")

    assert create_student(db, "asmith", "hash", "Al Smith").username == "asmith"


def test_username_lookup_uses_index(db):
    create_student(db, "jdoe", "hash", "Jane Doe")

    plan = _plan("SELECT * FROM students WHERE username = :u", {"u": "jdoe"})
    assert "SEARCH" in plan
    assert "INDEX" in plan


def test_matric_lookup_uses_index(db):
    create_student(db, "jdoe", "hash", "Jane Doe", matric_number="U1234567")

    plan = _plan("SELECT * FROM students WHERE matric_number = :m", {"m": "U1234567"})
    assert "SEARCH" in plan
    assert "INDEX" in plan


def test_named_indexes_exist():
    names = {ix["name"] for ix in inspect(engine).get_indexes("students")}
    assert {"idx_students_username", "idx_students_matric_number"} <= names


def test_migration_creates_students_table(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    run_migrations(url)

    migrated = create_engine(url)
    try:
        inspector = inspect(migrated)
        columns = {c["name"]: c for c in inspector.get_columns("students")}
        assert list(columns) == [
            "id", "username", "password", "name", "matric_number", "created_at", "updated_at"
        ]
        assert columns["username"]["nullable"] is False
        assert columns["password"]["nullable"] is False
        assert columns["name"]["nullable"] is False
        assert columns["matric_number"]["nullable"] is True

        indexes = {ix["name"] for ix in inspector.get_indexes("students")}
        assert {"idx_students_username", "idx_students_matric_number"} <= indexes

        uniques = {tuple(u["column_names"]) for u in inspector.get_unique_constraints("students")}
        assert ("username",) in uniques
        assert ("matric_number",) in uniques
    finally:
        migrated.dispose()


def test_migrations_dir_is_configurable(tmp_path, monkeypatch):
    relocated = tmp_path / "migrations"
    shutil.copytree(BACKEND_DIR / "migrations", relocated)
    monkeypatch.setenv("MIGRATIONS_DIR", str(relocated))

    url = f"sqlite:///{tmp_path / 'relocated.db'}"
    run_migrations(url)

    migrated = create_engine(url)
    try:
        assert "students" in inspect(migrated).get_table_names()
    finally:
        migrated.dispose()


def test_missing_migrations_dir_fails_clearly(tmp_path, monkeypatch):
    monkeypatch.setenv("MIGRATIONS_DIR", str(tmp_path / "nowhere"))

    with pytest.raises(FileNotFoundError, match="MIGRATIONS_DIR"):
        run_migrations(f"sqlite:///{tmp_path / 'never.db'}")
