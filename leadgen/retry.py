"""
Two retry layers around the generative-AI client.

``generate_content`` retries transient transport faults only.
``generate_json`` wraps it, retrying parse and shape failures as well, each
layer with its own budget and exponential backoff.
"""
import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Dict, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from leadgen.config import RetryPolicy
from leadgen.errors import (
    FormatTroubleError,
    LeadGenerationError,
    SchemaMismatch,
    ServiceRefusal,
    ServiceUnavailable,
    TransientFault,
    UnparsableResponse,
)
from leadgen.llm_client import GenerativeClient, ModelRequest, ModelResponse
from leadgen.parsing import parse_json_response

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]
RetryNotifier = Callable[[str], None]

TRANSIENT_STATUS_CODE = re.compile(r"\b(?:500|503)\b")
TRANSIENT_MARKERS = (
    "internal",
    "resource exhausted",
    "resource_exhausted",
    "server error",
    "backend error",
    "overloaded",
)
TRANSIENT_STATUSES = {"UNKNOWN", "INTERNAL", "UNAVAILABLE", "RESOURCE_EXHAUSTED"}
# 14 is gRPC UNAVAILABLE
TRANSIENT_CODES = {14, 500, 503}

REFUSAL_FINISH_REASONS = {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII"}


def is_transient_fault(exc: BaseException) -> bool:
    """Classify an error raised by a model call as transient or permanent."""
    if isinstance(exc, LeadGenerationError):
        return isinstance(exc, TransientFault)

    status = getattr(exc, "status", None)
    if isinstance(status, str) and status.upper() in TRANSIENT_STATUSES:
        return True

    code = getattr(exc, "code", None)
    if isinstance(code, int) and code in TRANSIENT_CODES:
        return True

    message = str(exc).lower()
    if TRANSIENT_STATUS_CODE.search(message):
        return True
    return any(marker in message for marker in TRANSIENT_MARKERS)


def raise_for_refusal(response: ModelResponse) -> None:
    """Raise ServiceRefusal if the prompt or the output was blocked by safety policy."""
    block_reason = response.block_reason
    if block_reason and block_reason != "BLOCK_REASON_UNSPECIFIED":
        raise ServiceRefusal(reason=block_reason)
    if response.finish_reason in REFUSAL_FINISH_REASONS:
        raise ServiceRefusal(reason=response.finish_reason)


def _is_retryable_attempt_error(exc: BaseException) -> bool:
    # cancellation and refusals end the loop immediately
    return isinstance(exc, Exception) and not isinstance(exc, ServiceRefusal)


def _check_shape(payload: Any, required_list_field: Optional[str]) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise SchemaMismatch(f"Expected a JSON object, got {type(payload).__name__}")
    if not payload:
        raise SchemaMismatch("The AI returned an empty JSON object")
    if required_list_field and not isinstance(payload.get(required_list_field), list):
        raise SchemaMismatch(f"Expected '{required_list_field}' to be a list")
    return payload


class ResilientGenerator:
    """Runs model requests through the transport and semantic retry layers."""

    def __init__(self, client: GenerativeClient, policy: Optional[RetryPolicy] = None, sleep: Sleep = asyncio.sleep):
        self._client = client
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def generate_content(
        self,
        request: ModelRequest,
        retries: Optional[int] = None,
        delay: Optional[float] = None,
    ) -> ModelResponse:
        """
        Execute one model request, retrying transient faults with exponential backoff.

        Raises:
            ServiceRefusal: the response was blocked by content policy.
            ServiceUnavailable: transient faults exhausted the retry budget.
        """
        retries = self._policy.transport_retries if retries is None else retries
        delay = self._policy.transport_initial_delay if delay is None else delay

        def log_retry(retry_state: RetryCallState) -> None:
            logger.warning(
                f"Request failed with transient error ({retry_state.outcome.exception()}), "
                f"retrying in {retry_state.next_action.sleep:.1f}s "
                f"({retries - retry_state.attempt_number + 1} retries left)"
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=delay, exp_base=2),
            retry=retry_if_exception(is_transient_fault),
            before_sleep=log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._client.complete(request)
        except Exception as exc:
            if is_transient_fault(exc):
                raise ServiceUnavailable() from exc
            raise

        raise_for_refusal(response)
        return response

    async def generate_json(
        self,
        request: ModelRequest,
        *,
        required_list_field: Optional[str] = None,
        retries: Optional[int] = None,
        on_retry: Optional[RetryNotifier] = None,
    ) -> Dict[str, Any]:
        """
        Produce a non-empty JSON object from one logical model request.

        Every attempt runs the transport layer with a smaller budget, parses the
        text and checks its shape. Any failure other than a refusal is retried.

        Raises:
            ServiceRefusal: re-raised verbatim, never retried.
            FormatTroubleError: the retry budget is exhausted.
        """
        retries = self._policy.semantic_retries if retries is None else retries

        def notify_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception()
            if isinstance(error, UnparsableResponse):
                logger.debug(f"Unparsable model output: {error.raw_text!r}")
            logger.warning(
                f"Attempt {retry_state.attempt_number}/{retries + 1} failed ({error}), "
                f"retrying in {retry_state.next_action.sleep:.1f}s"
            )
            if on_retry is not None:
                on_retry(
                    f"The AI response needs another try (attempt {retry_state.attempt_number + 1} "
                    f"of {retries + 1})..."
                )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=self._policy.semantic_initial_delay, exp_base=2),
            retry=retry_if_exception(_is_retryable_attempt_error),
            before_sleep=notify_retry,
            sleep=self._sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self.generate_content(request, retries=self._policy.inner_transport_retries)
                    payload = _check_shape(parse_json_response(response.text), required_list_field)
        except ServiceRefusal:
            raise
        except Exception as exc:
            logger.error(f"Giving up after {retries + 1} attempts: {exc}")
            raise FormatTroubleError() from exc

        return payload
