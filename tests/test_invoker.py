"""Tests for the retrying invoker."""

from typing import Iterator

import httpx
import pytest
from conftest import RecordingSleep, error_body, gemini_body

from docusync.generators.invoker import InvocationState, RetryingInvoker


def scripted(responses: list[httpx.Response], calls: list[httpx.Request]):
    """Build a handler that replays ``responses`` in order."""
    replay: Iterator[httpx.Response] = iter(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return next(replay)

    return handler


def failure() -> httpx.Response:
    return httpx.Response(503, json=error_body())


def success(text: str = "Generated docs.") -> httpx.Response:
    return httpx.Response(200, json=gemini_body(text))


class TestInvocationState:
    """Tests for the InvocationState dataclass."""

    def test_defaults(self) -> None:
        state = InvocationState()
        assert state.attempt == 0
        assert state.loading is False
        assert state.result is None
        assert state.error is None

    def test_to_dict(self) -> None:
        state = InvocationState(attempt=2, result="ok", generation=3)
        assert state.to_dict() == {
            "attempt": 2,
            "loading": False,
            "result": "ok",
            "error": None,
            "generation": 3,
        }


class TestBackoff:
    """Tests for backoff delays."""

    def test_delay_doubles(self, make_client, recording_sleep: RecordingSleep) -> None:
        invoker = RetryingInvoker(make_client(lambda r: success()), sleep=recording_sleep)
        delays = [invoker.backoff_delay(k + 1) for k in range(4)]
        assert delays == [2.0, 4.0, 8.0, 16.0]

    def test_defaults_from_config(self, make_client) -> None:
        invoker = RetryingInvoker(make_client(lambda r: success()))
        assert invoker.max_attempts == 5
        assert invoker.base_delay == 1.0


class TestInvoke:
    """Tests for the retry loop."""

    @pytest.mark.asyncio
    async def test_first_attempt_success(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        calls: list[httpx.Request] = []
        client = make_client(scripted([success("# Docs")], calls))
        state = await RetryingInvoker(client, sleep=recording_sleep).invoke("p")

        assert state.result == "# Docs"
        assert state.error is None
        assert state.loading is False
        assert len(calls) == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_fence_stripped_in_result(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        calls: list[httpx.Request] = []
        client = make_client(
            scripted([success("```markdown\n## Overview\nText\n```")], calls)
        )
        state = await RetryingInvoker(client, sleep=recording_sleep).invoke("p")
        assert state.result == "## Overview\nText"

    @pytest.mark.asyncio
    async def test_four_failures_then_success(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        calls: list[httpx.Request] = []
        responses = [failure() for _ in range(4)] + [success()]
        client = make_client(scripted(responses, calls))
        state = await RetryingInvoker(client, sleep=recording_sleep).invoke("p")

        assert state.result == "Generated docs."
        assert state.error is None
        assert state.attempt == 4
        assert len(calls) == 5
        assert recording_sleep.delays == [2.0, 4.0, 8.0, 16.0]

    @pytest.mark.asyncio
    async def test_five_failures_exhaust_budget(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        calls: list[httpx.Request] = []
        client = make_client(scripted([failure() for _ in range(6)], calls))
        state = await RetryingInvoker(client, sleep=recording_sleep).invoke("p")

        assert state.result is None
        assert state.error.startswith("Request failed after 5 attempts: API Error: 503.")
        assert "The model is overloaded." in state.error
        assert state.loading is False
        assert len(calls) == 5
        assert len(recording_sleep.delays) == 4

    @pytest.mark.asyncio
    async def test_malformed_responses_are_retried(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        calls: list[httpx.Request] = []
        malformed = httpx.Response(200, json={"candidates": []})
        client = make_client(scripted([malformed, success()], calls))
        state = await RetryingInvoker(client, sleep=recording_sleep).invoke("p")

        assert state.result == "Generated docs."
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_last_failure_detail_reported(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        calls: list[httpx.Request] = []
        malformed = httpx.Response(200, json={})
        client = make_client(scripted([failure(), malformed], calls))
        invoker = RetryingInvoker(client, max_attempts=2, sleep=recording_sleep)
        state = await invoker.invoke("p")

        assert state.error == (
            "Request failed after 2 attempts: Invalid response structure from API."
        )

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectTimeout("timed out", request=request)
            return success()

        state = await RetryingInvoker(
            make_client(handler), sleep=recording_sleep
        ).invoke("p")

        assert state.result == "Generated docs."
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_single_attempt_budget_never_sleeps(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        calls: list[httpx.Request] = []
        client = make_client(scripted([failure()], calls))
        invoker = RetryingInvoker(client, max_attempts=1, sleep=recording_sleep)
        state = await invoker.invoke("p")

        assert "after 1 attempts" in state.error
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_clears_previous_outcome(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        calls: list[httpx.Request] = []
        client = make_client(scripted([success("fresh")], calls))
        state = InvocationState(attempt=5, result=None, error="old failure")
        await RetryingInvoker(client, sleep=recording_sleep).invoke("p", state=state)

        assert state.result == "fresh"
        assert state.error is None
        assert state.attempt == 0


class TestLoadingFlag:
    """Tests for the loading flag over the invocation lifetime."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failures", [0, 5])
    async def test_loading_true_only_while_in_flight(
        self, make_client, recording_sleep: RecordingSleep, failures: int
    ) -> None:
        state = InvocationState()
        replay = iter([failure() for _ in range(failures)] + [success()])
        observed: list[bool] = []

        def handler(request: httpx.Request) -> httpx.Response:
            observed.append(state.loading)
            return next(replay)

        await RetryingInvoker(make_client(handler), sleep=recording_sleep).invoke(
            "p", state=state
        )

        assert observed and all(observed)
        assert state.loading is False
        assert (state.result is None) != (state.error is None)

    @pytest.mark.asyncio
    async def test_on_change_sequence(
        self, make_client, recording_sleep: RecordingSleep
    ) -> None:
        calls: list[httpx.Request] = []
        client = make_client(scripted([failure(), success()], calls))
        snapshots: list[tuple] = []

        def on_change(state: InvocationState) -> None:
            snapshots.append((state.loading, state.attempt, state.result))

        await RetryingInvoker(client, sleep=recording_sleep).invoke(
            "p", on_change=on_change
        )

        assert snapshots == [
            (True, 0, None),
            (True, 1, None),
            (False, 1, "Generated docs."),
        ]
