"""Maps the error taxonomy onto JSON responses.

Every failure reaches the client as ``{"error": <message>}``. Client errors
carry their specific message; collaborator failures carry a generic one and
the details stay in the log.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.errors import ClientError, NitiPrintError

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Terjadi kesalahan pada server. Silakan coba lagi."


def register_exception_handlers(app: FastAPI) -> None:
    """Install the NitiPrintError and catch-all handlers on ``app``."""

    @app.exception_handler(NitiPrintError)
    async def handle_nitiprint_error(request: Request, exc: NitiPrintError) -> JSONResponse:
        if isinstance(exc, ClientError):
            logger.warning(
                "%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc
            )
        else:
            logger.error(
                "%s %s failed (%d): %s",
                request.method,
                request.url.path,
                exc.status_code,
                exc,
                exc_info=exc,
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.user_message})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(status_code=500, content={"error": GENERIC_SERVER_ERROR})
