"""OpenAI-style error bodies and the catch-all 404 handler."""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("nim-bridge")


def error_response(
    message: str, status_code: int, code: Optional[object] = None
) -> JSONResponse:
    """Build ``{"error": {message, type, code}}`` with the given status."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "message": message,
                "type": "invalid_request_error",
                "code": status_code if code is None else code,
            }
        },
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render routing errors in the OpenAI error shape.

    Unknown paths and unsupported methods on known paths both answer 404.
    """
    if exc.status_code in (404, 405):
        logger.info(f"No endpoint for {request.method} {request.url.path}")
        return error_response(f"Endpoint {request.url.path} not found", 404)
    return error_response(str(exc.detail), exc.status_code)
