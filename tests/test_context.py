"""Tests for StepExecutionContext and the core data models."""

from __future__ import annotations

from uuid import uuid4

import pytest

from litestar_stepqueue.core.context import StepExecutionContext
from litestar_stepqueue.core.models import SequenceStatus, StepJobPayload


@pytest.mark.unit
class TestStepExecutionContext:
    """Tests for StepExecutionContext."""

    def test_payload_accessors(self) -> None:
        """Test user id and data are read from the payload."""
        context = StepExecutionContext(
            step_id=uuid4(),
            step_type="WEBSITE_LOADING",
            payload={"user_id": "user-1", "data": {"url": "https://example.com"}},
            current_step_number=1,
            total_steps=2,
        )

        assert context.user_id == "user-1"
        assert context.data == {"url": "https://example.com"}
        assert not context.is_last_step

    def test_empty_payload(self) -> None:
        """Test defaults when the payload carries nothing."""
        context = StepExecutionContext(step_id=uuid4(), step_type="OK", payload={"data": None})

        assert context.user_id is None
        assert context.data == {}
        assert context.is_last_step


@pytest.mark.unit
class TestStepJobPayload:
    """Tests for the queue message."""

    def test_dict_form_uses_strings(self) -> None:
        """Test ids are serialized as strings."""
        step_ids = [uuid4(), uuid4()]
        payload = StepJobPayload(
            job_id=uuid4(),
            step_id=step_ids[0],
            step_number=1,
            step_type="OK",
            step_ids=step_ids,
            user_id="user-1",
        )

        data = payload.to_dict()

        assert data["step_id"] == str(step_ids[0])
        assert data["step_ids"] == [str(step_id) for step_id in step_ids]
        assert StepJobPayload.from_dict(data) == payload

    def test_from_dict_without_optional_keys(self) -> None:
        """Test step ids and user default when absent."""
        job_id, step_id = uuid4(), uuid4()

        payload = StepJobPayload.from_dict(
            {"job_id": str(job_id), "step_id": str(step_id), "step_number": "2", "step_type": "OK"}
        )

        assert payload.step_number == 2
        assert payload.step_ids == []
        assert payload.user_id is None

    def test_from_dict_missing_key(self) -> None:
        """Test a payload without a step id is rejected."""
        with pytest.raises(KeyError):
            StepJobPayload.from_dict({"job_id": str(uuid4())})


@pytest.mark.unit
class TestSequenceStatus:
    """Tests for SequenceStatus flags."""

    def test_finished(self) -> None:
        """Test a fully completed sequence."""
        status = SequenceStatus(total_steps=2, completed_steps=2, failed_steps=0, pending_steps=0)

        assert status.is_finished
        assert not status.is_halted

    def test_halted(self) -> None:
        """Test a sequence with a failed step."""
        status = SequenceStatus(total_steps=2, completed_steps=0, failed_steps=1, pending_steps=1)

        assert status.is_halted
        assert not status.is_finished

    def test_empty_is_not_finished(self) -> None:
        """Test an empty report is not a finished sequence."""
        assert not SequenceStatus(total_steps=0, completed_steps=0, failed_steps=0, pending_steps=0).is_finished
