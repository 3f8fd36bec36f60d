"""
Error payloads for the HTTP layer.

Every error answered by the API has the same body:

    {"success": false, "error": "<message>", "code": "<CODE>", "timestamp": "..."}

Service results carry an ErrorCode; HTTP-level failures (auth, unknown route,
body validation) are mapped to a code from their status.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from .services.availability import ErrorCode, ServiceResult

# Service error code -> HTTP status
ERROR_STATUS = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.STORE_UNAVAILABLE: 503,
    ErrorCode.STORE_PERSIST_ERROR: 500,
}

# HTTP status -> code used for errors raised outside the services
STATUS_CODES = {
    400: "INVALID_INPUT",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "INVALID_INPUT",
    429: "RATE_LIMITED",
    503: "SERVICE_UNAVAILABLE",
}


def error_payload(error: str, code: str, **extra: Any) -> Dict[str, Any]:
    payload = {
        "success": False,
        "error": error,
        "code": code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    payload.update(extra)
    return payload


def error_response(
    status_code: int,
    error: str,
    code: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    code = code or STATUS_CODES.get(status_code, "ERROR")
    return JSONResponse(
        status_code=status_code,
        content=error_payload(error, code, **extra),
        headers=headers,
    )


def result_error_response(result: ServiceResult) -> JSONResponse:
    """Translate a failed ServiceResult into its HTTP error response."""
    extra = {}
    if result.code is ErrorCode.STORE_UNAVAILABLE:
        extra["offline"] = True
    return error_response(
        ERROR_STATUS.get(result.code, 500),
        result.error or "Request failed",
        code=result.code.value if result.code else None,
        **extra,
    )
