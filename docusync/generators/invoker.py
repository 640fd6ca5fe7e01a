"""Retrying request invoker with exponential backoff.

Drives up to ``retry_max_attempts`` sequential generateContent calls for
one prompt and records the outcome on an ``InvocationState``.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, Optional

import httpx

from docusync.generators.llm_client import GeminiClient, LLMError

logger = logging.getLogger(__name__)

StateListener = Callable[["InvocationState"], None]
SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class InvocationState:
    """State of one invocation.

    Attributes:
        attempt: Number of failed attempts so far.
        loading: True while the invocation is in flight.
        result: Generated text on success.
        error: Human-readable failure message.
        generation: Sequence number assigned by the owning slot.
    """

    attempt: int = 0
    loading: bool = False
    result: Optional[str] = None
    error: Optional[str] = None
    generation: int = 0

    def to_dict(self) -> dict:
        """Plain dict view for JSON responses."""
        return asdict(self)


class RetryingInvoker:
    """Sends a prompt and retries failed attempts with exponential backoff.

    Non-success statuses, transport errors and malformed bodies all count
    as failed attempts. After a failed attempt the invoker waits
    ``base_delay * 2 ** attempt`` seconds, where ``attempt`` is the number
    of failures so far, so the first retry waits twice the base delay.
    There is no jitter and no cancellation.
    """

    def __init__(
        self,
        client: GeminiClient,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize the invoker.

        Args:
            client: Client performing single generateContent requests.
            max_attempts: Attempt budget. Defaults to the client config.
            base_delay: Base backoff delay in seconds. Defaults to the
                client config.
            sleep: Coroutine used to wait between attempts.
        """
        self.client = client
        self.max_attempts = (
            max_attempts
            if max_attempts is not None
            else client.config.retry_max_attempts
        )
        self.base_delay = (
            base_delay if base_delay is not None else client.config.retry_base_delay
        )
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Delay before the retry that follows ``attempt`` failures."""
        return self.base_delay * (2**attempt)

    async def invoke(
        self,
        prompt: str,
        state: Optional[InvocationState] = None,
        on_change: Optional[StateListener] = None,
    ) -> InvocationState:
        """Run the prompt through the retry loop.

        Args:
            prompt: Non-empty prompt text.
            state: State object to mutate. A new one is created if omitted.
            on_change: Called with the state after every mutation.

        Returns:
            The terminal state, with exactly one of ``result`` or
            ``error`` set and ``loading`` False.
        """
        if state is None:
            state = InvocationState()
        notify = on_change or (lambda _state: None)

        state.attempt = 0
        state.result = None
        state.error = None
        state.loading = True
        notify(state)

        try:
            while state.attempt < self.max_attempts:
                try:
                    text = await self.client.generate_content(prompt)
                except (LLMError, httpx.HTTPError) as e:
                    state.attempt += 1
                    detail = str(e) or type(e).__name__
                    if state.attempt >= self.max_attempts:
                        state.error = (
                            f"Request failed after {self.max_attempts} attempts: "
                            f"{detail}"
                        )
                        logger.error(
                            "Attempt %d/%d failed, giving up: %s",
                            state.attempt,
                            self.max_attempts,
                            detail,
                        )
                        break

                    delay = self.backoff_delay(state.attempt)
                    logger.warning(
                        "Attempt %d/%d failed (%s), retrying in %.1f seconds",
                        state.attempt,
                        self.max_attempts,
                        detail,
                        delay,
                    )
                    notify(state)
                    await self._sleep(delay)
                else:
                    state.result = text
                    logger.info(
                        "Generated %d characters after %d failed attempts",
                        len(text),
                        state.attempt,
                    )
                    break
        finally:
            state.loading = False
            notify(state)

        return state
