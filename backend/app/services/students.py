"""
Student Service - data access for student records.

All writes go through here so constraint failures reach callers as
UniquenessViolation / NotNullViolation instead of driver-specific
IntegrityErrors. The session is rolled back before either is raised.

Matric numbers are issued sequentially as MAT00001, MAT00002, ... based on
how many students already hold one.
"""

import time
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import translate_integrity_error
from app.models.student import Student
from app.services.passwords import hash_password, verify_password
from app.logging_config import get_logger, log_with_context

logger = get_logger("db")
auth_logger = get_logger("auth")

MATRIC_PREFIX = "MAT"


def _commit(db: Session, action: str, context: dict = None):
    """Commit, turning constraint failures into UniquenessViolation / NotNullViolation."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        error = translate_integrity_error(e)
        log_with_context(logger, "WARNING", "Rejected {}: {}".format(action, error),
                         context=context,
                         extra_data={"error_type": type(error).__name__})
        if error is e:
            raise
        raise error from e


def create_student(db: Session, username: str, password: str, name: str,
                   matric_number: Optional[str] = None) -> Student:
    """
    Insert a student row and return it.

    ``password`` must already be hashed. created_at and updated_at get the
    same timestamp.

    Raises:
        UniquenessViolation: username or non-null matric_number is taken
        NotNullViolation: username, password or name is None
    """
    now = datetime.now(timezone.utc)
    student = Student(
        username=username,
        password=password,
        name=name,
        matric_number=matric_number,
        created_at=now,
        updated_at=now,
    )
    db.add(student)
    _commit(db, "student insert", context={"username": username})
    db.refresh(student)

    log_with_context(logger, "INFO", "Created student: {}".format(username),
                     context={"student_id": str(student.id)},
                     extra_data={"matric_number": matric_number})
    return student


def register_student(db: Session, username: str, password: str, name: str,
                     matric_number: Optional[str] = None) -> Student:
    """Hash a plaintext password and create the student."""
    hashed = hash_password(password) if password is not None else None
    return create_student(db, username, hashed, name, matric_number=matric_number)


def get_student_by_username(db: Session, username: str) -> Optional[Student]:
    """Find a student by exact username (served by idx_students_username). None if absent."""
    return db.query(Student).filter(Student.username == username).one_or_none()


def get_student_by_matric(db: Session, matric_number: str) -> Optional[Student]:
    """Find a student by matric number (served by idx_students_matric_number). None if absent."""
    return db.query(Student).filter(Student.matric_number == matric_number).one_or_none()


def list_students(db: Session) -> List[Student]:
    """All students, oldest registration first."""
    return db.query(Student).order_by(Student.created_at, Student.username).all()


def next_matric_number(db: Session) -> str:
    """Format the next sequential matric number from the count already issued."""
    issued = db.query(func.count(Student.id)).filter(Student.matric_number.isnot(None)).scalar()
    return "{}{:05d}".format(MATRIC_PREFIX, (issued or 0) + 1)


def assign_matric_number(db: Session, username: str) -> Optional[Student]:
    """
    Give the student a matric number if they do not have one yet.

    Returns None when the username is unknown or already has a matric
    number. Raises UniquenessViolation if the generated number is taken.
    """
    start_time = time.time()
    student = db.query(Student).filter(
        Student.username == username,
        Student.matric_number.is_(None)
    ).one_or_none()
    if student is None:
        return None

    matric_number = next_matric_number(db)
    student.matric_number = matric_number
    _commit(db, "matric assignment", context={"student_id": str(student.id)})
    db.refresh(student)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Assigned matric number {} to {}".format(matric_number, username),
                     context={"student_id": str(student.id)},
                     extra_data={"duration_ms": round(duration_ms, 2)})
    return student


def authenticate(db: Session, username: str, password: str) -> Optional[Student]:
    """Return the student if the username exists and the password matches."""
    student = get_student_by_username(db, username)
    if student is None or not verify_password(password, student.password):
        log_with_context(auth_logger, "INFO", "Login failed for {}".format(username))
        return None
    log_with_context(auth_logger, "INFO", "Login succeeded for {}".format(username),
                     context={"student_id": str(student.id)})
    return student
