"""
Ownership helpers for the selection pipeline.

Authentication happens upstream; these helpers only compare the acting
identity passed in by the caller with the owner recorded on a resource.
"""

from typing import Optional
from uuid import UUID

from recruitment.errors import OwnershipViolation
from recruitment.models.job_posting import JobPosting


def check_organization_owns(job_posting: JobPosting, organization_id: Optional[UUID]) -> bool:
    """
    Check whether an organization may manage a job posting.

    Args:
        job_posting: The posting being acted on
        organization_id: The acting organization, or None when the caller
            does not scope the request to an organization

    Returns:
        True if the organization owns the posting or no scope was given
    """
    if organization_id is None:
        return True
    return job_posting.organization_id == organization_id


def require_organization_owns(job_posting: JobPosting, organization_id: Optional[UUID]) -> None:
    """
    Raise OwnershipViolation when a scoped caller does not own the posting.

    Raises:
        OwnershipViolation: 403 with the posting id in the details
    """
    if not check_organization_owns(job_posting, organization_id):
        raise OwnershipViolation(
            "job posting belongs to another organization",
            {"job_posting_id": str(job_posting.id)},
        )


def require_recipient(recipient_id: UUID, acting_user_id: Optional[UUID]) -> None:
    """Raise OwnershipViolation when someone other than the recipient responds."""
    if acting_user_id is not None and acting_user_id != recipient_id:
        raise OwnershipViolation("invitation is addressed to another candidate")
