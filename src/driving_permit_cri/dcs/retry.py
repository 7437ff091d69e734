"""Bounded retry of DCS document checks.

Each attempt rebuilds the request, submits it under a timeout and classifies
the response. :class:`AttemptState` records outcomes and moves the state
machine; ``tenacity`` drives the loop, keeps going while the state is
``ATTEMPTING`` and applies the configured backoff between attempts.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)
from tenacity.wait import wait_base

from driving_permit_cri.config import RetryPolicy
from driving_permit_cri.exceptions import (
    ClientRejection,
    ErrorResponse,
    ResponseIntegrityError,
    ServiceUnavailable,
    TooManyRetryAttempts,
    VerificationTransportError,
)
from driving_permit_cri.logging_config import get_event_logger
from driving_permit_cri.models import (
    ClientError,
    PermitSubmission,
    RawResponse,
    ServerError,
    SignedVerificationRequest,
    StatusClass,
    Success,
    TransportFailure,
    VerificationOutcome,
)

from .transport import VerificationTransport

logger = logging.getLogger(__name__)

_CLIENT_ERROR_RESPONSES = {
    StatusClass.REDIRECTION: ErrorResponse.DCS_ERROR_HTTP_30X,
    StatusClass.CLIENT: ErrorResponse.DCS_ERROR_HTTP_40X,
    StatusClass.UNHANDLED: ErrorResponse.DCS_ERROR_HTTP_X,
    StatusClass.REJECTED: ErrorResponse.DCS_RETURNED_AN_ERROR,
}


class RetryState(str, Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    FATAL = "fatal"


@dataclass(slots=True)
class AttemptState:
    """Attempt bookkeeping for a single document check."""

    max_attempts: int
    attempts: int = 0
    last_outcome: VerificationOutcome | None = None
    state: RetryState = RetryState.ATTEMPTING

    def record(self, outcome: VerificationOutcome) -> RetryState:
        self.attempts += 1
        self.last_outcome = outcome
        if isinstance(outcome, Success):
            self.state = RetryState.SUCCEEDED
        elif isinstance(outcome, ClientError):
            self.state = RetryState.FATAL
        elif self.attempts >= self.max_attempts:
            self.state = RetryState.EXHAUSTED
        else:
            self.state = RetryState.ATTEMPTING
        return self.state

    @property
    def terminal(self) -> bool:
        return self.state is not RetryState.ATTEMPTING


class RequestBuilder(Protocol):
    def build(self, submission: PermitSubmission) -> SignedVerificationRequest: ...


class ResponseInterpreter(Protocol):
    def interpret(self, raw: RawResponse) -> VerificationOutcome: ...


class RetryController:
    """Runs document check attempts until success, exhaustion or a fatal error."""

    def __init__(
        self,
        builder: RequestBuilder,
        transport: VerificationTransport,
        interpreter: ResponseInterpreter,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._builder = builder
        self._transport = transport
        self._interpreter = interpreter
        self._policy = policy or RetryPolicy()
        self._events = get_event_logger(__name__)

    async def run(self, submission: PermitSubmission, *, timeout: float | None = None) -> Success:
        """Return the successful outcome or raise the terminal error.

        ``timeout`` bounds each attempt; when omitted the timeout carried in
        the request metadata applies.
        """
        state = AttemptState(max_attempts=self._policy.max_attempts)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._policy.max_attempts),
            wait=self._wait_strategy(),
            retry=retry_if_result(lambda _: state.state is RetryState.ATTEMPTING),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            retry_error_callback=_last_result,
            reraise=True,
        )
        outcome = await retrying(self._attempt, submission, state, timeout)
        outcome = dataclasses.replace(outcome, attempt_count=state.attempts)
        return self._resolve(state, outcome)

    async def _attempt(
        self, submission: PermitSubmission, state: AttemptState, timeout: float | None
    ) -> VerificationOutcome:
        request = self._builder.build(submission)
        limit = timeout if timeout is not None else request.metadata.timeout
        try:
            raw = await asyncio.wait_for(
                self._transport.submit(request.payload, request.metadata), limit
            )
        except (VerificationTransportError, asyncio.TimeoutError, OSError) as exc:
            raw = RawResponse.from_exception(exc)

        outcome = self._interpreter.interpret(raw)
        state.record(outcome)
        logger.info(
            "DCS attempt %d/%d for request %s: %s",
            state.attempts,
            state.max_attempts,
            request.request_id,
            type(outcome).__name__,
        )
        return outcome

    def _wait_strategy(self) -> wait_base:
        if self._policy.backoff_base <= 0:
            return wait_none()
        return wait_exponential(multiplier=self._policy.backoff_base, max=self._policy.backoff_max)

    def _resolve(self, state: AttemptState, outcome: VerificationOutcome) -> Success:
        if state.state is RetryState.SUCCEEDED and isinstance(outcome, Success):
            return outcome

        if state.state is RetryState.FATAL and isinstance(outcome, ClientError):
            if outcome.status_class is StatusClass.INTEGRITY:
                raise ResponseIntegrityError(outcome.message, upstream_status=outcome.status_code)
            raise ClientRejection(
                _CLIENT_ERROR_RESPONSES[outcome.status_class],
                outcome.message,
                status_class=outcome.status_class.value,
                upstream_status=outcome.status_code,
            )

        last_failure = _service_unavailable(outcome)
        self._events.warning(
            "document_check_retries_exhausted",
            attempts=state.attempts,
            status_class=last_failure.status_class,
            event_type="business",
        )
        raise TooManyRetryAttempts(
            state.attempts, status_class=last_failure.status_class
        ) from last_failure


def _last_result(retry_state: RetryCallState) -> VerificationOutcome:
    return retry_state.outcome.result()


def _service_unavailable(outcome: VerificationOutcome) -> ServiceUnavailable:
    if isinstance(outcome, ServerError):
        return ServiceUnavailable(
            ErrorResponse.DCS_ERROR_HTTP_50X,
            outcome.message,
            status_class=outcome.status_class.value,
            upstream_status=outcome.status_code,
        )
    if isinstance(outcome, TransportFailure):
        return ServiceUnavailable(
            ErrorResponse.ERROR_CONTACTING_DCS, outcome.cause, status_class="transport"
        )
    msg = f"Unexpected terminal outcome {type(outcome).__name__}"
    return ServiceUnavailable(ErrorResponse.ERROR_CONTACTING_DCS, msg)


__all__ = ["AttemptState", "RetryController", "RetryState"]
