"""
buildfleet.orchestration.error_handler - Retry and Escalation for Publishing
=============================================================================

Network trouble during a publish should not sink a release: a timed-out
upload is retried with exponential backoff, and only when the retry budget is
spent does the failure escalate to PartialPublishFailure.

Error Handling Flow:

    Exception raised by a transport call
            │
            v
    Is the error_code retryable? ──── NO ───> ESCALATE (re-raise as is)
            │
           YES
            │
            v
    attempt < max_retries? ──── NO ───> ESCALATE (PartialPublishFailure)
            │
           YES
            │
            v
    RETRY (sleep calculate_delay(attempt), call again)

Only publish operations go through here. BUILD and CLEAN failures are
fail-fast and never retried.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

import structlog
from pydantic import BaseModel, Field

from buildfleet.core.exceptions import BuildFleetError, PartialPublishFailure


logger = structlog.get_logger()

T = TypeVar("T")


# =============================================================================
# ErrorAction Enumeration
# =============================================================================
# The handler decides, the caller executes. RETRY means sleep and call again;
# ESCALATE means stop retrying and surface the failure.
# =============================================================================
class ErrorAction(str, Enum):
    """Actions the ErrorHandler can recommend after analyzing an error."""

    RETRY = "retry"
    ESCALATE = "escalate"


# =============================================================================
# RetryPolicy
# =============================================================================
# delay = min(initial_delay * (backoff_multiplier ^ attempt) + jitter, max_delay)
#
# Example delay progression (default settings):
#   Attempt 0: ~1.0s
#   Attempt 1: ~2.0s
#   Attempt 2: ~4.0s
#   Attempt N: capped at max_delay
# =============================================================================
class RetryPolicy(BaseModel):
    """Retry behavior with exponential backoff and jitter.

    Attributes:
        max_retries: Retries after the first attempt. 0 disables retries.
        initial_delay: Base delay in seconds for the first retry.
        max_delay: Cap on any single delay.
        backoff_multiplier: Growth factor between retries.
        retryable_errors: Error codes worth retrying. Everything else is
            escalated immediately.

    Example:
        >>> policy = RetryPolicy(max_retries=5, initial_delay=0.5)
        >>> policy.is_retryable("NETWORK_TIMEOUT")
        True
        >>> policy.is_retryable("MISSING_CREDENTIALS")
        False
    """

    max_retries: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Maximum retry attempts. Matches PublishConfig.max_retries default.",
    )
    initial_delay: float = Field(
        default=1.0,
        gt=0,
        le=30.0,
        description="Base delay in seconds for the first retry attempt",
    )
    max_delay: float = Field(
        default=30.0,
        gt=0,
        le=300.0,
        description="Maximum delay cap in seconds",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Multiplier for exponential backoff",
    )
    retryable_errors: list[str] = Field(
        default=["NETWORK_TIMEOUT", "NETWORK_ERROR"],
        description="Error codes that are worth retrying",
    )

    def calculate_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (zero-based).

        Adds up to 10% proportional jitter and caps the result at max_delay.
        """
        base_delay = self.initial_delay * (self.backoff_multiplier ** attempt)
        jitter = random.uniform(0, base_delay * 0.1)
        return min(base_delay + jitter, self.max_delay)

    def is_retryable(self, error_code: str) -> bool:
        return error_code in self.retryable_errors


# =============================================================================
# ErrorHandler
# =============================================================================
class ErrorHandler:
    """Applies a RetryPolicy around one publish operation.

    Attributes:
        _retry_policy: Decides how often and how long to wait.
        _logger: Structured logger bound to this component.

    Example:
        >>> handler = ErrorHandler(RetryPolicy(max_retries=2))
        >>> result, attempts = await handler.run_with_retry(upload, module="yaml")
    """

    def __init__(self, retry_policy: RetryPolicy | None = None) -> None:
        self._retry_policy = retry_policy or RetryPolicy()
        self._logger = logger.bind(component="error_handler")

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    def decide(self, error: Exception, attempt: int) -> ErrorAction:
        """Decide whether a failed attempt should be retried.

        Args:
            error: The exception the attempt raised. Non-BuildFleetError
                exceptions are never retried.
            attempt: Zero-based number of the attempt that just failed.
        """
        error_code = getattr(error, "error_code", "UNKNOWN_ERROR")

        if not self._retry_policy.is_retryable(error_code):
            return ErrorAction.ESCALATE
        if attempt >= self._retry_policy.max_retries:
            self._logger.warning(
                "max_retries_exhausted",
                error_code=error_code,
                attempt=attempt,
                max_retries=self._retry_policy.max_retries,
            )
            return ErrorAction.ESCALATE
        return ErrorAction.RETRY

    async def run_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        module: str,
    ) -> tuple[T, int]:
        """Run ``operation`` until it succeeds or the policy gives up.

        Returns:
            The operation's result and the number of attempts it took.

        Raises:
            PartialPublishFailure: A retryable error outlived the retry budget.
            BuildFleetError: Any non-retryable error, unchanged.
        """
        attempt = 0
        while True:
            try:
                return await operation(), attempt + 1
            except BuildFleetError as exc:
                action = self.decide(exc, attempt)
                if action == ErrorAction.ESCALATE:
                    if self._retry_policy.is_retryable(exc.error_code):
                        raise PartialPublishFailure(
                            message=(
                                f"Publishing {module} failed after {attempt + 1} attempts: "
                                f"{exc.message}"
                            ),
                            module=module,
                            details={"attempts": attempt + 1, "cause": exc.to_dict()},
                        ) from exc
                    raise

                delay = self._retry_policy.calculate_delay(attempt)
                self._logger.info(
                    "publish_retry_scheduled",
                    module=module,
                    error_code=exc.error_code,
                    attempt=attempt,
                    delay_seconds=round(delay, 3),
                )
                await asyncio.sleep(delay)
                attempt += 1
