from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

# Ensure the project root is importable when running `pytest` via its entrypoint
# (e.g., `uv run --extra test pytest`), where `sys.path[0]` may not be the repo root.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from fileexp.services.providers import TranslationProvider  # noqa: E402


class FakeProvider(TranslationProvider):
    """Scripted provider that records calls and peak concurrency.

    script maps text -> list of results consumed one per call. A result is a
    string to return or an exception instance to raise. Texts without a
    script are translated as "EN(<text>)".
    """

    name = "fake"

    def __init__(self, script: dict | None = None) -> None:
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0
        self.closed = False

    async def translate(self, text: str, target: str = "en") -> str:
        self.calls.append((text, target))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            queue = self.script.get(text)
            result = queue.pop(0) if queue else f"EN({text})"
            if isinstance(result, BaseException):
                raise result
            return result
        finally:
            self.active -= 1

    async def aclose(self) -> None:
        self.closed = True

    @property
    def texts(self) -> list[str]:
        return [text for text, _ in self.calls]


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def provider_factory() -> type[FakeProvider]:
    return FakeProvider
