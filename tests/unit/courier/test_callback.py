"""
Tests for the workflow callbacks
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fulfillment.core.exceptions import MissingDependencyError
from fulfillment.courier.callback import (
    MAX_ERROR_LENGTH,
    InMemoryWorkflowCallback,
    ResumeError,
    StepFunctionsCallback,
    TaskTokenConsumedError,
    WorkflowCallback,
)


class TestInMemoryWorkflowCallback:
    def test_satisfies_protocol(self, callback):
        assert isinstance(callback, WorkflowCallback)

    @pytest.mark.asyncio
    async def test_records_calls(self, callback):
        await callback.resume_success("T1", {"courier": "c-1"})
        await callback.resume_failure("T2", "NoCourierAvailable", "No couriers are available")

        assert callback.successes == [("T1", {"courier": "c-1"})]
        assert callback.failures == [("T2", "NoCourierAvailable", "No couriers are available")]
        assert callback.call_count == 2
        assert callback.calls_for("T1") == 1

    @pytest.mark.asyncio
    async def test_token_can_only_be_used_once(self, callback):
        await callback.resume_success("T1", {"courier": "c-1"})

        with pytest.raises(TaskTokenConsumedError):
            await callback.resume_failure("T1", "NoCourierAvailable", "late")

        assert callback.calls_for("T1") == 1

    @pytest.mark.asyncio
    async def test_fail_next_does_not_consume_token(self, callback):
        callback.fail_next()

        with pytest.raises(ResumeError):
            await callback.resume_success("T1", {"courier": "c-1"})

        await callback.resume_success("T1", {"courier": "c-1"})
        assert callback.calls_for("T1") == 1


@pytest.fixture
def sfn_client():
    client = AsyncMock()
    with patch("fulfillment.courier.callback.aioboto3") as mock_aioboto3:
        session = MagicMock()
        session.client.return_value.__aenter__.return_value = client
        mock_aioboto3.Session.return_value = session
        yield client, session


class TestStepFunctionsCallback:
    def test_aioboto3_not_available(self):
        with patch("fulfillment.courier.callback.AIOBOTO3_AVAILABLE", False):
            with pytest.raises(MissingDependencyError, match="aioboto3"):
                StepFunctionsCallback()

    @pytest.mark.asyncio
    async def test_resume_success(self, sfn_client):
        client, session = sfn_client
        callback = StepFunctionsCallback(region_name="eu-west-1")

        await callback.resume_success("T1", {"courier": "c-1"})

        session.client.assert_called_once_with("stepfunctions", region_name="eu-west-1")
        kwargs = client.send_task_success.await_args.kwargs
        assert kwargs["taskToken"] == "T1"
        assert json.loads(kwargs["output"]) == {"courier": "c-1"}

    @pytest.mark.asyncio
    async def test_resume_failure_truncates_to_api_limits(self, sfn_client):
        client, _ = sfn_client
        callback = StepFunctionsCallback()

        await callback.resume_failure("T1", "E" * 1000, "cause")

        kwargs = client.send_task_failure.await_args.kwargs
        assert kwargs["taskToken"] == "T1"
        assert len(kwargs["error"]) == MAX_ERROR_LENGTH
        assert kwargs["cause"] == "cause"

    @pytest.mark.asyncio
    async def test_api_errors_propagate(self, sfn_client):
        client, _ = sfn_client
        client.send_task_success.side_effect = RuntimeError("ThrottlingException")
        callback = StepFunctionsCallback()

        with pytest.raises(RuntimeError, match="ThrottlingException"):
            await callback.resume_success("T1", {"courier": "c-1"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["TaskTimedOut", "TaskDoesNotExist"])
    async def test_dead_token_errors_become_consumed(self, sfn_client, code):
        client, _ = sfn_client
        error = Exception(code)
        error.response = {"Error": {"Code": code, "Message": "gone"}}
        client.send_task_failure.side_effect = error
        callback = StepFunctionsCallback()

        with pytest.raises(TaskTokenConsumedError) as exc_info:
            await callback.resume_failure("T1", "NoCourierAvailable", "cause")

        assert exc_info.value.token == "T1"
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_other_client_error_codes_propagate(self, sfn_client):
        client, _ = sfn_client
        error = Exception("denied")
        error.response = {"Error": {"Code": "AccessDeniedException"}}
        client.send_task_success.side_effect = error
        callback = StepFunctionsCallback()

        with pytest.raises(Exception, match="denied") as exc_info:
            await callback.resume_success("T1", {})

        assert not isinstance(exc_info.value, TaskTokenConsumedError)

    @pytest.mark.asyncio
    async def test_client_creation_failure(self, sfn_client):
        _, session = sfn_client
        session.client.side_effect = ValueError("bad region")
        callback = StepFunctionsCallback()

        with pytest.raises(ResumeError, match="Failed to create Step Functions client"):
            await callback.resume_success("T1", {})

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, sfn_client):
        client, _ = sfn_client

        async with StepFunctionsCallback() as callback:
            assert callback._client is not None

        client.__aexit__.assert_awaited_once_with(None, None, None)
        assert callback._client is None
