"""Bearer authentication for the render job API."""

from __future__ import annotations

import secrets

from fastapi import Request
from fastapi.responses import JSONResponse

from reelsync.api.schemas import ErrorObject, ErrorResponse
from reelsync.utils.constant import API_BEARER_TOKEN


def _build_unauthorized_response() -> JSONResponse:
    """Build the standard invalid-token response.

    Returns:
        JSON response with unauthorized status and an error object payload.
    """
    payload = ErrorResponse(
        error=ErrorObject(
            message="Invalid authentication credentials.",
            type="authentication_error",
            code="invalid_token",
        )
    ).model_dump()
    return JSONResponse(
        status_code=401,
        content=payload,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_api_bearer_token(request: Request) -> JSONResponse | None:
    """Validate bearer authentication when configured.

    Auth is disabled (open mode) when ``API_BEARER_TOKEN`` is unset or empty.

    Args:
        request: Incoming request with an optional ``Authorization`` header.

    Returns:
        ``None`` when the request is authorized (or auth is disabled),
        otherwise the unauthorized JSON response.
    """
    expected_token = API_BEARER_TOKEN
    if not expected_token:
        return None

    authorization_header = request.headers.get("Authorization", "").strip()
    scheme, _, token = authorization_header.partition(" ")
    provided_token = token.strip()

    if scheme.lower() != "bearer" or not provided_token:
        return _build_unauthorized_response()

    if not secrets.compare_digest(provided_token, expected_token):
        return _build_unauthorized_response()

    return None
