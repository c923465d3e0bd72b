"""
Workflow orchestrator callback - resume a saga suspended on a task token.

Exactly one of ``resume_success`` / ``resume_failure`` is called per
suspended execution. ``StepFunctionsCallback`` talks to AWS Step Functions
through aioboto3; ``InMemoryWorkflowCallback`` records calls for tests and
local runs and, like the real orchestrator, refuses a second resume for
the same token.

Requires (Step Functions): pip install aioboto3
"""

import json
from typing import Any, Protocol, runtime_checkable

from fulfillment.core.exceptions import FulfillmentError, MissingDependencyError
from fulfillment.core.logger import get_logger
from fulfillment.monitoring.logging import short_token

try:
    import aioboto3

    AIOBOTO3_AVAILABLE = True
except ImportError:  # pragma: no cover
    AIOBOTO3_AVAILABLE = False  # pragma: no cover
    aioboto3 = None  # pragma: no cover

logger = get_logger(__name__)

# Step Functions API limits
MAX_ERROR_LENGTH = 256
MAX_CAUSE_LENGTH = 32768

# Error codes meaning the execution no longer waits on the token
CONSUMED_TOKEN_ERRORS = frozenset({"TaskTimedOut", "TaskDoesNotExist"})


class ResumeError(FulfillmentError):
    """The orchestrator did not accept a resume call."""


class TaskTokenConsumedError(ResumeError):
    """The token was already used to resume its execution."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Task token already consumed: {short_token(token)}")


def _is_consumed_token_error(error: Exception) -> bool:
    response = getattr(error, "response", None)
    code = response.get("Error", {}).get("Code") if isinstance(response, dict) else None
    return code in CONSUMED_TOKEN_ERRORS


@runtime_checkable
class WorkflowCallback(Protocol):
    """
    Protocol for resuming suspended workflow executions.
    """

    async def resume_success(self, token: str, output: dict[str, Any]) -> None:
        """Resume the execution holding ``token`` with a success output."""
        ...

    async def resume_failure(self, token: str, error: str, cause: str) -> None:
        """Resume the execution holding ``token`` with a failure."""
        ...


class InMemoryWorkflowCallback:
    """
    Records resume calls instead of sending them anywhere.

    Usage:
        >>> callback = InMemoryWorkflowCallback()
        >>> await callback.resume_success("T1", {"courier": "c-1"})
        >>> callback.successes
        [('T1', {'courier': 'c-1'})]
    """

    def __init__(self):
        self.successes: list[tuple[str, dict[str, Any]]] = []
        self.failures: list[tuple[str, str, str]] = []
        self._consumed: set[str] = set()
        self._next_error: Exception | None = None

    def fail_next(self, error: Exception | None = None) -> None:
        """Make the next resume call raise (simulates an unreachable orchestrator)."""
        self._next_error = error or ResumeError("Orchestrator unavailable")

    def _consume(self, token: str) -> None:
        if self._next_error is not None:
            error, self._next_error = self._next_error, None
            raise error
        if token in self._consumed:
            raise TaskTokenConsumedError(token)
        self._consumed.add(token)

    async def resume_success(self, token: str, output: dict[str, Any]) -> None:
        self._consume(token)
        self.successes.append((token, output))

    async def resume_failure(self, token: str, error: str, cause: str) -> None:
        self._consume(token)
        self.failures.append((token, error, cause))

    @property
    def call_count(self) -> int:
        return len(self.successes) + len(self.failures)

    def calls_for(self, token: str) -> int:
        """Number of resume calls recorded for one token."""
        return sum(1 for t, _ in self.successes if t == token) + sum(
            1 for t, _, _ in self.failures if t == token
        )


class StepFunctionsCallback:
    """
    Resume AWS Step Functions executions waiting on a task token.

    Example:
        >>> async with StepFunctionsCallback(region_name="eu-west-1") as callback:
        ...     await callback.resume_success(token, {"courier": "c-1"})
    """

    def __init__(self, region_name: str = "us-east-1", **client_kwargs):
        if not AIOBOTO3_AVAILABLE:
            msg = "aioboto3"
            raise MissingDependencyError(msg, "Step Functions workflow callback")

        self.region_name = region_name
        self.client_kwargs = client_kwargs
        self._session = None
        self._client = None

    async def _get_client(self):
        """Get Step Functions client, creating if necessary"""
        if self._client is None:
            try:
                self._session = aioboto3.Session()
                self._client = await self._session.client(
                    "stepfunctions", region_name=self.region_name, **self.client_kwargs
                ).__aenter__()
            except Exception as e:
                msg = f"Failed to create Step Functions client: {e}"
                raise ResumeError(msg) from e

        return self._client

    async def resume_success(self, token: str, output: dict[str, Any]) -> None:
        client = await self._get_client()
        try:
            await client.send_task_success(
                taskToken=token, output=json.dumps(output, default=str)
            )
        except Exception as e:
            if _is_consumed_token_error(e):
                raise TaskTokenConsumedError(token) from e
            raise
        logger.info(f"Sent task success for {short_token(token)}")

    async def resume_failure(self, token: str, error: str, cause: str) -> None:
        client = await self._get_client()
        try:
            await client.send_task_failure(
                taskToken=token,
                error=error[:MAX_ERROR_LENGTH],
                cause=cause[:MAX_CAUSE_LENGTH],
            )
        except Exception as e:
            if _is_consumed_token_error(e):
                raise TaskTokenConsumedError(token) from e
            raise
        logger.info(f"Sent task failure for {short_token(token)}: {error}")

    async def close(self) -> None:
        """Close the Step Functions client"""
        if self._client:
            await self._client.__aexit__(None, None, None)
            self._client = None
            self._session = None

    async def __aenter__(self):
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
