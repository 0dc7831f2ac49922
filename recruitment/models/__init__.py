"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from recruitment.models.job_posting import JobPosting
from recruitment.models.process_stage import ProcessStage
from recruitment.models.application import Application, SavedJobPosting
from recruitment.models.selection_process import SelectionProcess, StageTransition
from recruitment.models.invitation import Invitation
from recruitment.models.compatibility_cache import CompatibilityCacheEntry
from recruitment.models.outbox_event import OutboxEvent

# Export all models
__all__ = [
    "JobPosting",
    "ProcessStage",
    "Application",
    "SavedJobPosting",
    "SelectionProcess",
    "StageTransition",
    "Invitation",
    "CompatibilityCacheEntry",
    "OutboxEvent",
]
