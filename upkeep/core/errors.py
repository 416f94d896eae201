"""
core/errors.py
--------------
Typed workflow errors and their HTTP rendering.

Services raise these; routes never translate them by hand. The handler
registered in main.py renders every WorkflowError as:

    {"error": "<code>", "detail": "<message>"}

Codes are stable and part of the API contract: clients branch on them to
tell "retry won't help" (failed-precondition) from "resource vanished"
(not-found) from "not yours" (permission-denied).
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from upkeep.core.logging import get_logger

logger = get_logger(__name__)


class WorkflowError(Exception):
    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class InvalidArgumentError(WorkflowError):
    code = "invalid-argument"
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(WorkflowError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(WorkflowError):
    code = "permission-denied"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(WorkflowError):
    code = "not-found"
    status_code = status.HTTP_404_NOT_FOUND


class FailedPreconditionError(WorkflowError):
    code = "failed-precondition"
    status_code = status.HTTP_409_CONFLICT


class InternalError(WorkflowError):
    pass


async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    headers = None
    if isinstance(exc, UnauthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalError("Internal server error").to_dict(),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Typed workflow errors keep their code; anything else becomes a bare 500."""
    app.add_exception_handler(WorkflowError, workflow_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
