"""Database persistence layer for litestar-stepqueue.

This module provides SQLAlchemy models and repositories for persisting
processing steps and the jobs that track their execution attempts.
"""

from __future__ import annotations

from litestar_stepqueue.db.models import JobModel, StepModel
from litestar_stepqueue.db.repositories import JobRepository, StepRepository

__all__ = [
    "JobModel",
    "JobRepository",
    "StepModel",
    "StepRepository",
]
