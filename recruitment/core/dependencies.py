"""
Shared FastAPI dependencies.

Identity comes from upstream authentication as plain headers; these
dependencies only parse them.
"""

from typing import Optional
from uuid import UUID

from fastapi import Header, status

from recruitment.db.session import get_db
from recruitment.errors import AppError

__all__ = ["get_db", "get_acting_user_id", "get_organization_id"]


def _parse_uuid(header: str, value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise AppError(
            status.HTTP_400_BAD_REQUEST,
            "INVALID_HEADER",
            f"{header} must be a UUID",
            {"header": header},
        ) from None


async def get_acting_user_id(x_user_id: Optional[str] = Header(default=None)) -> UUID:
    """Acting user from the X-User-Id header (required)."""
    if not x_user_id:
        raise AppError(
            status.HTTP_401_UNAUTHORIZED,
            "MISSING_ACTING_USER",
            "X-User-Id header is required",
        )
    return _parse_uuid("X-User-Id", x_user_id)


async def get_organization_id(x_organization_id: Optional[str] = Header(default=None)) -> Optional[UUID]:
    """Acting organization from the optional X-Organization-Id header."""
    if not x_organization_id:
        return None
    return _parse_uuid("X-Organization-Id", x_organization_id)
