"""Integration tests for database persistence layer.

Tests the SQLAlchemy models and repositories using an async SQLite database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from litestar_stepqueue.core.types import JobStatus, StepStatus
from litestar_stepqueue.db.models import JobModel, StepModel
from litestar_stepqueue.db.repositories import JobRepository, StepRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def step_repo(async_session: AsyncSession) -> StepRepository:
    """Create a step repository."""
    return StepRepository(session=async_session)


@pytest.fixture
def job_repo(async_session: AsyncSession) -> JobRepository:
    """Create a job repository."""
    return JobRepository(session=async_session)


@pytest.fixture
async def sequence(step_repo: StepRepository, async_session: AsyncSession) -> list[StepModel]:
    """Persist a three-step sequence, inserted out of order."""
    sequence_id = uuid4()
    steps = await step_repo.add_many(
        [
            StepModel(type="C", status=StepStatus.PENDING, step_number=3, sequence_id=sequence_id, user_id="u"),
            StepModel(type="A", status=StepStatus.PENDING, step_number=1, sequence_id=sequence_id, user_id="u"),
            StepModel(type="B", status=StepStatus.PENDING, step_number=2, sequence_id=sequence_id, user_id="u"),
        ]
    )
    await async_session.commit()
    return list(steps)


@pytest.mark.integration
class TestStepRepository:
    """Tests for StepRepository."""

    async def test_list_by_ids_orders_by_step_number(
        self, step_repo: StepRepository, sequence: list[StepModel]
    ) -> None:
        """Test steps come back in step-number order."""
        steps = await step_repo.list_by_ids([step.id for step in sequence])

        assert [step.type for step in steps] == ["A", "B", "C"]

    async def test_list_by_ids_empty(self, step_repo: StepRepository) -> None:
        """Test an empty id list returns no steps."""
        assert await step_repo.list_by_ids([]) == []

    async def test_list_by_sequence(self, step_repo: StepRepository, sequence: list[StepModel]) -> None:
        """Test loading every step of a sequence."""
        steps = await step_repo.list_by_sequence(sequence[0].sequence_id)

        assert [step.step_number for step in steps] == [1, 2, 3]
        assert await step_repo.list_by_sequence(uuid4()) == []

    async def test_claim_only_once(
        self, step_repo: StepRepository, sequence: list[StepModel], async_session: AsyncSession
    ) -> None:
        """Test the conditional claim succeeds for a pending step only."""
        step_id = sequence[1].id

        assert await step_repo.claim(step_id) is True
        await async_session.commit()
        assert await step_repo.claim(step_id) is False

        step = await step_repo.get_fresh(step_id)
        assert step is not None
        assert step.status == StepStatus.PROCESSING
        assert step.started_at is not None
        assert step.completed_at is None

    async def test_claim_unknown_step(self, step_repo: StepRepository) -> None:
        """Test claiming a missing step does nothing."""
        assert await step_repo.claim(uuid4()) is False

    async def test_mark_and_reset(self, step_repo: StepRepository, sequence: list[StepModel]) -> None:
        """Test the terminal transitions and the retry reset."""
        step_id = sequence[0].id

        failed = await step_repo.mark_failed(step_id)
        assert failed is not None
        assert failed.status == StepStatus.FAILED
        assert failed.completed_at is not None

        reset = await step_repo.reset(step_id)
        assert reset is not None
        assert reset.status == StepStatus.PENDING
        assert reset.started_at is None
        assert reset.completed_at is None

        completed = await step_repo.mark_completed(step_id)
        assert completed is not None
        assert completed.status == StepStatus.COMPLETED

    async def test_update_missing_step(self, step_repo: StepRepository) -> None:
        """Test updates on a missing step return None."""
        assert await step_repo.update_fields(uuid4(), status=StepStatus.FAILED) is None
        assert await step_repo.get_fresh(uuid4()) is None

    async def test_to_data(self, sequence: list[StepModel]) -> None:
        """Test the detached snapshot."""
        data = sequence[1].to_data()

        assert data.id == sequence[1].id
        assert data.type == "A"
        assert data.step_number == 1
        assert data.job_id is None


@pytest.mark.integration
class TestJobRepository:
    """Tests for JobRepository."""

    async def test_update_status(self, job_repo: JobRepository, async_session: AsyncSession) -> None:
        """Test completed_at follows the COMPLETED status."""
        job = await job_repo.add(JobModel(type="STEP_A", status=JobStatus.PENDING, payload={"step_number": 1}, user_id="u"))
        await async_session.commit()

        completed = await job_repo.update_status(job.id, JobStatus.COMPLETED, result={"ok": True})
        assert completed is not None
        assert completed.result == {"ok": True}
        assert completed.completed_at is not None

        failed = await job_repo.update_status(job.id, JobStatus.FAILED, result={"error": "boom"})
        assert failed is not None
        assert failed.status == JobStatus.FAILED
        assert failed.completed_at is None

    async def test_update_missing_job(self, job_repo: JobRepository) -> None:
        """Test updating a missing job returns None."""
        assert await job_repo.update_status(uuid4(), JobStatus.FAILED) is None

    async def test_list_by_ids(self, job_repo: JobRepository, async_session: AsyncSession) -> None:
        """Test loading several jobs at once."""
        jobs = await job_repo.add_many(
            [JobModel(type="STEP_A", status=JobStatus.PENDING, payload={}, user_id="u") for _ in range(3)]
        )
        await async_session.commit()

        loaded = await job_repo.list_by_ids([job.id for job in jobs[:2]])

        assert {job.id for job in loaded} == {job.id for job in jobs[:2]}
        assert await job_repo.list_by_ids([]) == []

    async def test_step_references_job(
        self,
        step_repo: StepRepository,
        job_repo: JobRepository,
        sequence: list[StepModel],
        async_session: AsyncSession,
    ) -> None:
        """Test a step can point at its job."""
        job = await job_repo.add(JobModel(type="STEP_A", status=JobStatus.PENDING, payload={}, user_id="u"))
        await step_repo.update_fields(sequence[1].id, job_id=job.id)
        await async_session.commit()

        step = await step_repo.get_fresh(sequence[1].id)
        assert step is not None
        assert step.job_id == job.id
        assert step.to_data().job_id == job.id
