"""Structured errors for the selection pipeline and their API rendering."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    def __init__(self, status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        self.payload = build_error_payload(code, message, details)


class NotFoundError(AppError):
    """A referenced process, invitation, stage or cache entry does not exist."""

    def __init__(self, entity: str, entity_id: Any = None, message: Optional[str] = None):
        details = {"entity": entity}
        if entity_id is not None:
            details["id"] = str(entity_id)
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            "NOT_FOUND",
            message or f"{entity} not found",
            details,
        )


class BusinessRuleViolation(AppError):
    """A state-machine rule rejected the operation. Not retryable."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(status.HTTP_409_CONFLICT, code, message, details)


class OwnershipViolation(AppError):
    """The acting identity does not own the targeted resource."""

    def __init__(self, message: str = "actor does not own this resource", details: Optional[Dict[str, Any]] = None):
        super().__init__(status.HTTP_403_FORBIDDEN, "OWNERSHIP_VIOLATION", message, details)


class ConcurrentModificationError(AppError):
    """Another writer changed the aggregate first. Safe to retry."""

    retryable = True

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            status.HTTP_409_CONFLICT,
            "CONCURRENT_MODIFICATION",
            f"{entity} was modified concurrently; retry the operation",
            {"entity": entity, "id": str(entity_id)},
        )


class ScoringError(Exception):
    """Raised by scorer adapters when a single score request fails."""


class RecoverableScoringFailure(Exception):
    """One (candidate, job posting) pair could not be scored during recalculation.

    Logged and skipped; never propagated to the request that raised the
    profile-update event.
    """

    def __init__(self, candidate_id: Any, job_posting_id: Any, reason: str):
        super().__init__(f"scoring failed for candidate {candidate_id} / job posting {job_posting_id}: {reason}")
        self.candidate_id = candidate_id
        self.job_posting_id = job_posting_id
        self.reason = reason


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)
