import logging
import os
import re
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Depends, Body, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field, ValidationError
from sqlalchemy.exc import DataError, IntegrityError, ProgrammingError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from database import Database, TableName, get_db
from schemas import ApiResponse

logger = logging.getLogger(__name__)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:4220")
API_RATE_LIMIT = int(os.getenv("API_RATE_LIMIT", "100"))
RATE_LIMIT_WINDOW_SECONDS = 15 * 60
ROW_ID_PATTERN = re.compile(r"[0-9]+")

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; style-src 'self' 'unsafe-inline'; "
                               "script-src 'self'; img-src 'self' data: https:",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request counter per client address, applied under path_prefix."""

    def __init__(self, app, limit: int = 100, window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
                 path_prefix: str = "/api/"):
        super().__init__(app)
        self.limit = limit
        self.window_seconds = window_seconds
        self.path_prefix = path_prefix
        self._hits: Dict[str, tuple] = {}
        self._last_sweep = time.monotonic()
        self._lock = threading.Lock()

    def _register_hit(self, client: str, now: float):
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._hits = {
                    c: hit for c, hit in self._hits.items() if now - hit[0] < self.window_seconds
                }
                self._last_sweep = now
            window_start, count = self._hits.get(client, (now, 0))
            if now - window_start >= self.window_seconds:
                window_start, count = now, 0
            count += 1
            self._hits[client] = (window_start, count)
        return window_start, count

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)
        client = request.client.host if request.client else "unknown"
        now = time.monotonic()
        window_start, count = self._register_hit(client, now)
        reset = max(0, int(window_start + self.window_seconds - now))
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(max(0, self.limit - count)),
            "RateLimit-Reset": str(reset),
        }
        if count > self.limit:
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": "Too many requests, please try again later."},
                headers=headers,
            )
        response = await call_next(request)
        response.headers.update(headers)
        return response


# App setup
app = FastAPI(title="Storefront Table API", version="0.1.0")
app.add_middleware(RateLimitMiddleware, limit=API_RATE_LIMIT)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


# Error envelopes
def error_response(status_code: int, error: str, headers=None) -> JSONResponse:
    body = ApiResponse(success=False, error=error).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Invalid request")


async def database_request_error_handler(request: Request, exc: Exception):
    logger.error("Database request error on %s %s: %s", request.method, request.url.path, exc)
    return error_response(400, "Invalid database request")


for _exc_class in (ProgrammingError, IntegrityError, DataError):
    app.add_exception_handler(_exc_class, database_request_error_handler)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("API error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error")


# Utilities
def require_connection(database: Database = Depends(get_db)) -> Database:
    if not database.ping():
        raise HTTPException(status_code=503, detail="Database connection unavailable")
    return database


def resolve_table(table_name: str, action: str = "accessible") -> TableName:
    try:
        return TableName(table_name)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Table '{table_name}' is not {action} through this API")


def envelope(**fields) -> Dict[str, Any]:
    return ApiResponse(success=True, **fields).model_dump(exclude_none=True)


class NewUserRow(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr


# Health
@app.get("/")
def root():
    return {"message": "Storefront Table API running"}


@app.get("/api/health")
def health(database: Database = Depends(get_db)):
    return {
        "success": True,
        "message": "API is running",
        "database": "connected" if database.ping() else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Tables
@app.get("/api/tables/{table_name}")
def list_rows(table_name: str, database: Database = Depends(require_connection)):
    table = resolve_table(table_name)
    rows = database.fetch_all(table)
    return envelope(data=rows, count=len(rows))


@app.get("/api/tables/{table_name}/{row_id}")
def get_row(table_name: str, row_id: str, database: Database = Depends(require_connection)):
    table = resolve_table(table_name)
    if not ROW_ID_PATTERN.fullmatch(row_id):
        raise HTTPException(status_code=400, detail="Invalid ID format")
    row = database.fetch_one(table, int(row_id))
    if row is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return envelope(data=row)


@app.post("/api/tables/{table_name}", status_code=201)
def create_row(table_name: str, payload: Any = Body(None), database: Database = Depends(require_connection)):
    table = resolve_table(table_name, action="accessible for creation")
    if not isinstance(payload, dict) or not payload:
        raise HTTPException(status_code=400, detail="Request body cannot be empty")
    if table is not TableName.USERS:
        raise HTTPException(status_code=400, detail="Invalid data format for this table")
    try:
        row = NewUserRow.model_validate(payload)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid data format for this table")
    new_id = database.insert_user(row.name, str(row.email))
    logger.info("Inserted %s row %s", table.value, new_id)
    return envelope(data={"id": new_id}, message="Record created successfully")


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    if get_db().ping():
        get_db().create_schema()
    logger.info("CORS enabled for: %s", FRONTEND_URL)
    port = int(os.getenv("PORT", 3000))
    uvicorn.run(app, host="0.0.0.0", port=port)
