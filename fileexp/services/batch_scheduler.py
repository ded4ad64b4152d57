# fileexp/services/batch_scheduler.py
"""
Request queue for interactive file name translation.

The browsing UI asks for one file name at a time. Requests are coalesced into
batches of at most batch_size provider calls that run concurrently; a batch
is a barrier, so nothing from the next batch starts before every call in the
current one has settled. Items that come back rate limited are put back at the
head of the queue and the scheduler waits rate_limit_delay before the next
batch, otherwise it waits batch_delay between batches.

All state (cache, pending queue, draining flag) belongs to one BatchScheduler
and is only touched from its event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from fileexp.config.settings import DEFAULT_TARGET_LANGUAGE, BatchConfig
from fileexp.models.types import FilenameTranslation, ProviderOutcome
from fileexp.services.file_browser import split_base_name
from fileexp.services.providers import TranslationProvider, resolve_outcome
from fileexp.services.script_detector import ScriptDetector, script_detector
from fileexp.services.translation_cache import NOT_TRANSLATABLE, TranslationCache

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class QueueItem:
    """One pending request. future is completed exactly once."""
    text: str
    future: asyncio.Future[ProviderOutcome]


class BatchScheduler:
    """
    Batches single-item translation requests for one provider.

    Example:
        async with GoogleTranslateProvider() as provider:
            scheduler = BatchScheduler(provider, BatchConfig.from_env())
            result = await scheduler.translate_filename("会議資料.pdf")
    """

    def __init__(
        self,
        provider: TranslationProvider,
        config: Optional[BatchConfig] = None,
        cache: Optional[TranslationCache] = None,
        detector: Optional[ScriptDetector] = None,
        target: str = DEFAULT_TARGET_LANGUAGE,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.config = config or BatchConfig()
        self.cache = cache if cache is not None else TranslationCache()
        self.detector = detector or script_detector
        self.target = target
        self._sleep = sleep

        self._queue: deque[QueueItem] = deque()
        self._inflight: dict[str, asyncio.Future[ProviderOutcome]] = {}
        self._draining = False
        self._drain_task: Optional[asyncio.Task[None]] = None

        self.rounds = 0
        self.rate_limited_count = 0

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def is_draining(self) -> bool:
        return self._draining

    async def translate_filename(self, filename: str) -> FilenameTranslation:
        """Translate one file name for display.

        The extension is split off, only the base name is translated, and the
        extension is put back on the result. Failures resolve with
        translated=None and an error message so the caller can show the
        original name.
        """
        base_name, extension = split_base_name(filename)
        if not self.detector.needs_translation(base_name):
            return FilenameTranslation(original=filename)

        cached = self.cache.get(base_name)
        if cached is NOT_TRANSLATABLE:
            return FilenameTranslation(original=filename)
        if cached is not None:
            return FilenameTranslation(original=filename, translated=f"{cached}{extension}")

        # Shielded so one cancelled caller does not cancel the shared future
        outcome = await asyncio.shield(self.submit(base_name))
        if outcome.translated is not None:
            return FilenameTranslation(original=filename, translated=f"{outcome.translated}{extension}")
        return FilenameTranslation(original=filename, error=outcome.error)

    def submit(self, text: str) -> asyncio.Future[ProviderOutcome]:
        """Queue text for translation and return a future for its outcome.

        A request for text that is already queued or in flight shares the
        existing future instead of issuing a second provider call.
        """
        existing = self._inflight.get(text)
        if existing is not None and not existing.done():
            return existing

        future: asyncio.Future[ProviderOutcome] = asyncio.get_running_loop().create_future()
        self._inflight[text] = future
        future.add_done_callback(lambda f, key=text: self._forget(key, f))
        self._queue.append(QueueItem(text=text, future=future))
        self._ensure_draining()
        return future

    def _forget(self, key: str, future: asyncio.Future[ProviderOutcome]) -> None:
        if self._inflight.get(key) is future:
            del self._inflight[key]

    def _ensure_draining(self) -> None:
        if self._draining:
            return
        self._draining = True
        self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def join(self) -> None:
        """Wait until the queue has been fully drained."""
        while self._drain_task is not None and not self._drain_task.done():
            await asyncio.shield(self._drain_task)

    async def _drain(self) -> None:
        try:
            while self._queue:
                batch_size = self.config.batch_size
                batch = [self._queue.popleft() for _ in range(min(batch_size, len(self._queue)))]
                limited = await self._run_batch(batch)

                if limited:
                    # Rate limited items go back ahead of everything not yet batched
                    self._queue.extendleft(reversed(limited))
                    logger.warning(
                        "Rate limit hit for %d item(s). Waiting %d ms before retry...",
                        len(limited), self.config.rate_limit_delay_ms,
                    )
                    await self._sleep(self.config.rate_limit_delay)
                elif self._queue:
                    await self._sleep(self.config.batch_delay)
        finally:
            self._draining = False
            self._drain_task = None

        if self._queue:
            self._ensure_draining()

    async def _run_batch(self, batch: list[QueueItem]) -> list[QueueItem]:
        """Dispatch one batch concurrently and resolve every item that is not rate limited.

        Returns:
            Items whose provider outcome was rate limited
        """
        self.rounds += 1
        logger.debug("Dispatching batch %d (%d item(s), %d queued)", self.rounds, len(batch), len(self._queue))

        outcomes = await asyncio.gather(
            *(resolve_outcome(self.provider, item.text, self.target) for item in batch)
        )

        limited: list[QueueItem] = []
        for item, outcome in zip(batch, outcomes):
            if outcome.rate_limited:
                self.rate_limited_count += 1
                limited.append(item)
                continue
            if outcome.error is None:
                self.cache.set(item.text, outcome.translated)
            if not item.future.done():
                item.future.set_result(outcome)
        return limited
