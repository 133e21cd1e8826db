"""Exception handlers mapping the error taxonomy onto JSON responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from campushub.api.responses import failure
from campushub.errors import CampusHubError

log = logging.getLogger(__name__)


async def handle_campushub_error(request: Request, exc: CampusHubError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=failure(exc.message))


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=failure("Validation failed", errors))


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = f"Route {request.url.path} not found"
    return JSONResponse(status_code=exc.status_code, content=failure(message), headers=exc.headers)


async def handle_unexpected_error(request: Request, exc: Exception):
    log.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=failure("Internal server error"))


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(CampusHubError, handle_campushub_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
