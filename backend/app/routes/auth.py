"""Login route - checks a username/password pair against the stored hash."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.routes.students import serialize_student
from app.services import students as student_service

router = APIRouter()


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Return the student on valid credentials, 401 otherwise."""
    student = student_service.authenticate(db, request.username, request.password)
    if not student:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return serialize_student(student)
