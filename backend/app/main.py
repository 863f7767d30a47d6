"""
Student Registry - FastAPI Application Entry Point.

This is the main application module that:
1. Sets up structured JSON logging
2. Brings the database schema up to date (create_all on SQLite,
   Alembic migrations on PostgreSQL)
3. Implements request ID middleware (X-Request-ID header)
4. Registers the student and login routes
5. Provides health check endpoint

Layout:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: Data access and password hashing
- errors.py: Constraint-violation errors
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from app.routes import students, auth
from app.database import DATABASE_URL, create_tables, run_migrations

# Register models with Base.metadata
from app.models.student import Student  # noqa: F401

setup_logging()
logger = get_logger("http")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if DATABASE_URL.startswith("sqlite"):
        log_with_context(logger, "INFO", "Using SQLite, creating tables directly")
        create_tables()
    else:
        log_with_context(logger, "INFO", "Applying database migrations")
        run_migrations()
    yield


app = FastAPI(
    title="Student Registry",
    description=(
        "Registers students, issues matric numbers and checks student "
        "credentials against hashed passwords."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    Tag every request with a UUID.

    The ID is stored in a context variable so every log entry written while
    handling the request carries it, and is returned as X-Request-ID.
    """
    req_id = generate_request_id()
    request_id_var.set(req_id)
    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", "")
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


app.include_router(students.router, tags=["Students"])
app.include_router(auth.router, tags=["Auth"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for container health checks."""
    return {"status": "healthy", "service": "student-registry", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Student Registry",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "register": "POST /students",
            "list": "GET /students",
            "by_matric": "GET /students/matric/{matric_number}",
            "assign_matric": "POST /students/{username}/matric",
            "login": "POST /login"
        }
    }
