"""Shared request dependencies: caller identity and service-token auth."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from wingfinder.config import settings
from wingfinder.services.errors import (
    ItemNotFoundError,
    NotAuthenticatedError,
    RatingValidationError,
    WingFinderError,
)


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-ID"),
) -> Optional[str]:
    """
    Opaque subject id from the identity provider, or None when anonymous.
    The value is not interpreted beyond trimming whitespace.
    """
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


async def verify_service_token(
    x_service_token: str = Header(..., alias="X-Service-Token"),
) -> None:
    """Verify that the admin token matches the configured secret."""
    if x_service_token != settings.service_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid service token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def to_http_error(exc: WingFinderError) -> HTTPException:
    """Map a service error onto the matching HTTP status."""
    if isinstance(exc, NotAuthenticatedError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"X-Error-Code": "NOT_AUTHENTICATED"},
        )
    if isinstance(exc, RatingValidationError):
        return HTTPException(
            status_code=422,
            detail=str(exc),
        )
    if isinstance(exc, ItemNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
