"""
Student API routes - registration, listing, lookup and matric assignment.

Provides endpoints for:
- Registering a student (password hashed before storage)
- Listing all students
- Looking a student up by matric number
- Assigning the next sequential matric number to a student
"""

import time
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import UniquenessViolation, NotNullViolation
from app.models.student import Student
from app.services import students as student_service
from app.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class CreateStudentRequest(BaseModel):
    """Schema for registering a student."""
    username: str = Field(..., min_length=1, max_length=255, description="Unique login name")
    password: str = Field(..., min_length=1, description="Plaintext password, hashed before storage")
    name: str = Field(..., min_length=1, max_length=255, description="Student's full name")
    matric_number: Optional[str] = Field(None, min_length=1, max_length=20,
                                         description="Enrollment number, if already issued")


def serialize_student(student: Student) -> dict:
    """Serialize a Student ORM object for API responses. The password hash is left out."""
    return {
        "id": str(student.id),
        "username": student.username,
        "name": student.name,
        "matric_number": student.matric_number,
        "created_at": student.created_at.isoformat() if student.created_at else None,
        "updated_at": student.updated_at.isoformat() if student.updated_at else None
    }


def conflict_detail(error: UniquenessViolation) -> str:
    if error.column == "matric_number":
        return "Matric number already exists"
    return "Username already exists"


@router.post("/students", status_code=201)
def create_student(request: CreateStudentRequest, db: Session = Depends(get_db)):
    """Register a new student."""
    try:
        student = student_service.register_student(
            db, request.username, request.password, request.name,
            matric_number=request.matric_number
        )
    except UniquenessViolation as e:
        raise HTTPException(status_code=409, detail=conflict_detail(e))
    except NotNullViolation as e:
        raise HTTPException(status_code=400, detail=str(e))

    return serialize_student(student)


@router.get("/students")
def list_students(db: Session = Depends(get_db)):
    """List every registered student."""
    start_time = time.time()
    students = student_service.list_students(db)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Listed {} students".format(len(students)),
                     extra_data={"duration_ms": round(duration_ms, 2)})
    return [serialize_student(s) for s in students]


@router.get("/students/matric/{matric_number}")
def get_student_by_matric(matric_number: str, db: Session = Depends(get_db)):
    """Look a student up by matric number."""
    student = student_service.get_student_by_matric(db, matric_number)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return serialize_student(student)


@router.post("/students/{username}/matric")
def assign_matric_number(username: str, db: Session = Depends(get_db)):
    """
    Assign the next matric number (MAT00001, MAT00002, ...) to a student.

    Fails with 400 when the student does not exist or already has one.
    """
    try:
        student = student_service.assign_matric_number(db, username)
    except UniquenessViolation as e:
        raise HTTPException(status_code=409, detail=conflict_detail(e))

    if not student:
        raise HTTPException(status_code=400,
                            detail="Student not found or already has matric number")
    return serialize_student(student)
