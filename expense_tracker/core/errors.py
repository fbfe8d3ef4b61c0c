import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)

# (status, type, message)
_DB_ERRORS = {
    IntegrityError: (409, "database", "Invalid data provided."),
    OperationalError: (503, "database", "The service is currently unavailable."),
}

def map_db_error(exc: SQLAlchemyError) -> tuple[int, dict]:
    for exc_type, (status, kind, message) in _DB_ERRORS.items():
        if isinstance(exc, exc_type):
            return status, {"detail": message, "type": kind, "code": exc_type.__name__}
    return 500, {"detail": "An unexpected error occurred.", "type": "unknown", "code": "unknown"}

async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    status, body = map_db_error(exc)
    return JSONResponse(status_code=status, content=body)

def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
