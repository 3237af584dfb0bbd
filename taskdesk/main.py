import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskdesk import config
from taskdesk.database import init_db
from taskdesk.errors import AppError, UnexpectedError
from taskdesk.routers import attachments, auth, tasks
from taskdesk.schemas.envelope import envelope, field_errors
from taskdesk.utils.logger import setup_logger, log_event, log_warning, log_error

logger = setup_logger("api")

FRONTEND_DIR = Path(__file__).resolve().parent / "frontend"

init_db()

app = FastAPI(title="TaskDesk")

# API routers
app.include_router(auth.router, prefix=config.API_PREFIX)
app.include_router(tasks.router, prefix=config.API_PREFIX)
# Uploaded attachments, read-only
app.include_router(attachments.router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    context = {"method": request.method, "path": request.url.path, "status": exc.status_code}
    if exc.detail:
        context["detail"] = exc.detail
    log_event(logger, level, f"{type(exc).__name__}: {exc.message}", **context)
    return envelope(status=exc.envelope_status, message=exc.message, error=exc.error, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = field_errors(exc.errors())
    log_warning(logger, "Request validation failed", method=request.method, path=request.url.path, errors=errors)
    return envelope(status="fail", message="Validation error", error=errors, status_code=422)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return envelope(status="fail", message=str(exc.detail), error=str(exc.detail), status_code=exc.status_code)


# Generic error handler so unexpected exceptions still produce the envelope;
# the traceback goes to the log, never to the client
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    log_error(logger, "Unhandled exception", exc_info=exc, method=request.method, path=request.url.path)
    err = UnexpectedError()
    return envelope(status=err.envelope_status, message=err.message, error=err.error, status_code=err.status_code)


# Serve the SPA from / (index.html in taskdesk/frontend)
app.mount("/", StaticFiles(directory=FRONTEND_DIR, html=True), name="frontend")
