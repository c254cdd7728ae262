"""Tests for the context aggregator."""

import asyncio
import time

import httpx

from exec_assistant.aggregator import AggregatedContext, aggregate
from exec_assistant.provider_client import (
    FAILURE,
    TIMEOUT,
    ProviderClient,
    ProviderConfig,
    ProviderResult,
)


def provider(name: str) -> ProviderConfig:
    return ProviderConfig(name=name, url=f"https://{name}.test", parse=lambda d: d)


class FakeClient:
    """Stands in for ProviderClient with scripted per-provider behavior."""

    def __init__(self, behaviors):
        self.behaviors = behaviors
        self.cancelled = []

    async def fetch(self, config: ProviderConfig) -> ProviderResult:
        delay, outcome = self.behaviors[config.name]
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(config.name)
            raise
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestAggregate:
    async def test_collects_all_fast_results(self) -> None:
        client = FakeClient({
            "a": (0, ProviderResult.success({"n": 1})),
            "b": (0, ProviderResult.success({"n": 2})),
        })

        context = await aggregate([provider("a"), provider("b")], deadline=1.0, client=client)

        assert context.get("a").payload == {"n": 1}
        assert context.get("b").payload == {"n": 2}
        assert context.available == ["a", "b"]

    async def test_slow_provider_times_out_without_blocking_fast_one(self) -> None:
        client = FakeClient({
            "fast": (0, ProviderResult.success({"ok": True})),
            "slow": (10, ProviderResult.success({"ok": True})),
        })

        started = time.monotonic()
        context = await aggregate(
            [provider("slow"), provider("fast")], deadline=0.1, client=client
        )
        elapsed = time.monotonic() - started

        assert elapsed < 1.0
        assert context.is_available("fast")
        assert context.get("slow").status == TIMEOUT
        assert client.cancelled == ["slow"]

    async def test_races_run_concurrently(self) -> None:
        client = FakeClient({
            "a": (0.2, ProviderResult.success({})),
            "b": (0.2, ProviderResult.success({})),
            "c": (0.2, ProviderResult.success({})),
        })

        started = time.monotonic()
        await aggregate([provider("a"), provider("b"), provider("c")], deadline=1.0, client=client)

        assert time.monotonic() - started < 0.5

    async def test_provider_exception_becomes_failure(self) -> None:
        client = FakeClient({
            "broken": (0, RuntimeError("kaboom")),
            "fine": (0, ProviderResult.success({"x": 1})),
        })

        context = await aggregate([provider("broken"), provider("fine")], deadline=1.0, client=client)

        assert context.get("broken").status == FAILURE
        assert context.get("broken").error == "kaboom"
        assert context.is_available("fine")

    async def test_failure_results_are_unavailable(self) -> None:
        client = FakeClient({"a": (0, ProviderResult.failure("HTTP 500"))})

        context = await aggregate([provider("a")], deadline=1.0, client=client)

        assert not context.is_available("a")
        assert context.available == []

    async def test_no_providers(self) -> None:
        context = await aggregate([], deadline=1.0)
        assert context.results == {}


class TestAggregatedContext:
    def test_unknown_provider_is_not_configured(self) -> None:
        result = AggregatedContext().get("github")
        assert result.status == FAILURE
        assert "not configured" in result.error


class TestAggregateWithHttpClient:
    async def test_deadline_cancels_in_flight_request(self) -> None:
        seen = []

        async def handler(request: httpx.Request) -> httpx.Response:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                seen.append("cancelled")
                raise
            return httpx.Response(200, json={})

        slow = ProviderConfig(name="slow", url="https://slow.test", parse=lambda d: d)

        async with ProviderClient(transport=httpx.MockTransport(handler)) as client:
            started = time.monotonic()
            context = await aggregate([slow], deadline=0.1, client=client)

        assert time.monotonic() - started < 1.0
        assert context.get("slow").status == TIMEOUT
        assert seen == ["cancelled"]
