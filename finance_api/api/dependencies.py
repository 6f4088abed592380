"""Dependency injection for FastAPI endpoints"""

import uuid
from typing import Optional
from fastapi import HTTPException, Request
from finance_api.config import settings
from finance_api.domain.exceptions import UnauthenticatedCallerError


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def resolve_user_id(header_value: Optional[str]) -> str:
    """
    Caller identity as forwarded by the authentication layer.

    The value is trusted as-is; only its presence is checked.

    Raises:
        UnauthenticatedCallerError: header missing or blank
    """
    user_id = (header_value or "").strip()
    if not user_id:
        raise UnauthenticatedCallerError("Caller identity is required")
    return user_id


def get_current_user_id(request: Request) -> str:
    """Provide the caller's user id, rejecting anonymous requests"""
    try:
        return resolve_user_id(request.headers.get(settings.user_id_header))
    except UnauthenticatedCallerError as e:
        raise HTTPException(status_code=401, detail=str(e))


def parse_id(value: str) -> uuid.UUID:
    """Path identifier to UUID, 400 when malformed"""
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid ID format")
