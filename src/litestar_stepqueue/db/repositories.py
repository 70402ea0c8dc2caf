"""Repository implementations for step queue persistence.

This module provides async repositories for the step and job records using
advanced-alchemy's repository pattern. Every mutation is a single-row update
keyed by id; nothing here spans several steps in one transaction.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from advanced_alchemy.repository import SQLAlchemyAsyncRepository
from sqlalchemy import select, update

from litestar_stepqueue.core.types import JobStatus, StepStatus
from litestar_stepqueue.db.models import JobModel, StepModel

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

__all__ = [
    "JobRepository",
    "StepRepository",
]


class StepRepository(SQLAlchemyAsyncRepository[StepModel]):
    """Repository for processing step CRUD operations.

    Provides ordered sequence lookups and the conditional claim write that moves
    a step from PENDING to PROCESSING.
    """

    model_type = StepModel

    async def list_by_ids(self, step_ids: Iterable[UUID]) -> Sequence[StepModel]:
        """Load the steps with the given ids.

        Args:
            step_ids: The step ids to load.

        Returns:
            The matching steps ordered by step number.
        """
        ids = list(step_ids)
        if not ids:
            return []
        stmt = (
            select(StepModel)
            .where(StepModel.id.in_(ids))
            .order_by(StepModel.step_number.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_by_sequence(self, sequence_id: UUID) -> Sequence[StepModel]:
        """Load every step of a sequence.

        Args:
            sequence_id: The sequence identifier.

        Returns:
            The steps of the sequence ordered by step number.
        """
        stmt = (
            select(StepModel)
            .where(StepModel.sequence_id == sequence_id)
            .order_by(StepModel.step_number.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_fresh(self, step_id: UUID) -> StepModel | None:
        """Load a step, overwriting any stale copy held by the session.

        Args:
            step_id: The step id.

        Returns:
            The step as currently stored, or None if not found.
        """
        stmt = select(StepModel).where(StepModel.id == step_id).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_fields(self, step_id: UUID, **values: Any) -> StepModel | None:
        """Apply a patch to a single step.

        Args:
            step_id: The step id.
            **values: Column values to set.

        Returns:
            The updated step or None if not found.
        """
        step = await self.get_one_or_none(id=step_id)
        if step:
            for key, value in values.items():
                setattr(step, key, value)
            await self.session.flush()
        return step

    async def claim(self, step_id: UUID) -> bool:
        """Move a step from PENDING to PROCESSING if, and only if, it is still pending.

        The status check and the write happen in one statement, so two workers
        racing for the same step cannot both win.

        Args:
            step_id: The step id.

        Returns:
            True if this call performed the transition.
        """
        now = datetime.now(timezone.utc)
        stmt = (
            update(StepModel)
            .where(StepModel.id == step_id, StepModel.status == StepStatus.PENDING)
            .values(
                status=StepStatus.PROCESSING,
                started_at=now,
                completed_at=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def mark_completed(self, step_id: UUID) -> StepModel | None:
        """Mark a step as completed.

        Args:
            step_id: The step id.

        Returns:
            The updated step or None if not found.
        """
        return await self.update_fields(
            step_id,
            status=StepStatus.COMPLETED,
            completed_at=datetime.now(timezone.utc),
        )

    async def mark_failed(self, step_id: UUID) -> StepModel | None:
        """Mark a step as failed.

        Args:
            step_id: The step id.

        Returns:
            The updated step or None if not found.
        """
        return await self.update_fields(
            step_id,
            status=StepStatus.FAILED,
            completed_at=datetime.now(timezone.utc),
        )

    async def reset(self, step_id: UUID) -> StepModel | None:
        """Reset a step to PENDING and clear its timestamps.

        Args:
            step_id: The step id.

        Returns:
            The updated step or None if not found.
        """
        return await self.update_fields(
            step_id,
            status=StepStatus.PENDING,
            started_at=None,
            completed_at=None,
        )


class JobRepository(SQLAlchemyAsyncRepository[JobModel]):
    """Repository for job record CRUD operations."""

    model_type = JobModel

    async def list_by_ids(self, job_ids: Iterable[UUID]) -> Sequence[JobModel]:
        """Load the jobs with the given ids.

        Args:
            job_ids: The job ids to load.

        Returns:
            The matching jobs, in no particular order.
        """
        ids = list(job_ids)
        if not ids:
            return []
        result = await self.session.execute(select(JobModel).where(JobModel.id.in_(ids)))
        return result.scalars().all()

    async def update_status(
        self,
        job_id: UUID,
        status: JobStatus,
        *,
        result: Any = None,
    ) -> JobModel | None:
        """Update the status and result of a job.

        ``completed_at`` is set when the job completes and cleared otherwise.

        Args:
            job_id: The job id.
            status: The new status.
            result: The handler result, or the structured error on failure.

        Returns:
            The updated job or None if not found.
        """
        job = await self.get_one_or_none(id=job_id)
        if job:
            job.status = status
            job.result = result
            job.completed_at = datetime.now(timezone.utc) if status == JobStatus.COMPLETED else None
            await self.session.flush()
        return job
