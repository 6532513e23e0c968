import asyncio
from pathlib import Path
from typing import Callable, List, Sequence, Union

import pytest
from typer.testing import CliRunner

from tinyshrink.domain.interfaces.transport import Transport
from tinyshrink.domain.models.outcome import RequestOutcome, Success
from tinyshrink.domain.models.request import ApiRequest
from tinyshrink.infrastructure.config.settings import ClientConfig, RetryConfig, RateLimitConfig
from tinyshrink.infrastructure.resilience.rate_limiter import RateLimiter

TEST_API_KEY = "test-api-key-for-unit-tests"
LOCATOR = "https://api.tinify.com/output/abc123"

Responder = Callable[[ApiRequest], RequestOutcome]


class ScriptedTransport(Transport):
    """Transport fake that replays outcomes in order (or asks a responder)
    and records every request it receives."""

    def __init__(self, script: Union[Sequence[RequestOutcome], Responder]):
        self._script = script if callable(script) else list(script)
        self.requests: List[ApiRequest] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def execute(self, request: ApiRequest) -> RequestOutcome:
        self.requests.append(request)
        await asyncio.sleep(0)
        if callable(self._script):
            return self._script(request)
        if not self._script:
            raise AssertionError(f"Unexpected extra request: {request!r}")
        return self._script.pop(0)

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def upload_success(locator: str = LOCATOR, count: int = 12) -> Success:
    return Success(payload=b"", headers={"Location": locator, "Compression-Count": str(count)}, status=201)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorded_sleeps(fake_clock: FakeClock):
    """Async sleep replacement that records delays and advances the fake clock.

    Yields to the loop before advancing, so every task that started waiting
    at the same instant sees the same clock reading.
    """
    delays: List[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)
        await asyncio.sleep(0)
        fake_clock.advance(seconds)

    _sleep.delays = delays
    return _sleep


@pytest.fixture
def roomy_rate_limiter(fake_clock: FakeClock, recorded_sleeps) -> RateLimiter:
    """A bucket large enough that tests never wait on it."""
    return RateLimiter(capacity=1000, refill_rate=1000.0, clock=fake_clock, sleep=recorded_sleeps)


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(
        api_key=TEST_API_KEY,
        retry=RetryConfig(max_attempts=3, base_delay=0.2, max_delay=30.0, backoff_factor=2.0),
        rate_limit=RateLimitConfig(requests_per_minute=6000, burst_capacity=100),
    )


@pytest.fixture
def make_client(client_config, roomy_rate_limiter, recorded_sleeps):
    """Builds a ShrinkClient around a ScriptedTransport; returns (client, transport)."""
    from tinyshrink.core.client import ShrinkClient

    def _make(script, **kwargs):
        transport = ScriptedTransport(script)
        client = ShrinkClient(
            kwargs.pop("config", client_config),
            transport=transport,
            rate_limiter=roomy_rate_limiter,
            sleep=recorded_sleeps,
            **kwargs,
        )
        return client, transport

    return _make


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    path = tmp_path / "input.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64)
    return path
