"""
Student model - one row per registered student.

Each student is identified by a UUID and, for lookups, by a unique username
and an optional unique matric number. The password column only ever holds
a hash produced by app.services.passwords.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, String, Uuid, Index, UniqueConstraint, TypeDecorator, func
from app.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


def _as_utc(value):
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp, always handed out in UTC.

    SQLite stores DateTime values without an offset, so naive results are
    read back as UTC. Naive values written by callers are taken as UTC too.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return _as_utc(value)

    def process_result_value(self, value, dialect):
        return _as_utc(value)


class Student(Base):
    """
    SQLAlchemy model for the students table.

    Constraint and index names match the Alembic revision so integrity errors
    can be attributed to a column on both PostgreSQL and SQLite.
    """
    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("username", name="students_username_key"),
        UniqueConstraint("matric_number", name="students_matric_number_key"),
        Index("idx_students_username", "username"),
        Index("idx_students_matric_number", "matric_number"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
                doc="Unique student identifier")
    username = Column(String(255), nullable=False,
                      doc="Login name, unique across all students")
    password = Column(Text, nullable=False,
                      doc="Password hash (never plaintext)")
    name = Column(String(255), nullable=False,
                  doc="Student's full name")
    matric_number = Column(String(20), nullable=True,
                           doc="Enrollment number, unique when present")
    created_at = Column(UTCDateTime(), server_default=func.now(),
                        doc="When the record was created")
    updated_at = Column(UTCDateTime(), server_default=func.now(),
                        onupdate=_utcnow,
                        doc="Refreshed by the ORM on every UPDATE of the row")

    def __repr__(self):
        return f"<Student(id={self.id}, username='{self.username}', matric_number={self.matric_number!r})>"
