# fileexp/services/bulk_generator.py
"""
Offline generator for the translation database.

Walks every regular file under an input directory, merges with the database
already on disk and translates whatever is new or previously unsuccessful.
Files already translated under the same name are left alone, so an
interrupted or repeated run resumes where the last one stopped.

Unlike the interactive BatchScheduler, rate limited items are retried inline
within their own batch until they clear; the next batch starts only after
that.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from fileexp.config.settings import GeneratorSettings
from fileexp.models.types import GenerationSummary, ProviderOutcome, TranslationStatus
from fileexp.services.exceptions import CertificateError
from fileexp.services.file_browser import split_base_name, walk_files
from fileexp.services.providers import TranslationProvider, create_provider, resolve_outcome
from fileexp.services.script_detector import ScriptDetector, script_detector
from fileexp.services.translation_cache import NOT_TRANSLATABLE, TranslationCache
from fileexp.storage.translation_db import TranslationDatabase

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PendingFile:
    file_path: str
    file_name: str
    base_name: str
    extension: str


class BulkGenerator:
    """
    Drives one generator run.

    The provider is created from settings unless one is passed in; a provider
    created here is also closed here.
    """

    def __init__(
        self,
        settings: GeneratorSettings,
        provider: Optional[TranslationProvider] = None,
        cache: Optional[TranslationCache] = None,
        detector: Optional[ScriptDetector] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self._provider = provider
        self.cache = cache if cache is not None else TranslationCache()
        self.detector = detector or script_detector
        self._sleep = sleep
        self.provider_calls = 0

    def collect(self, db: TranslationDatabase, summary: GenerationSummary) -> list[PendingFile]:
        """Walk the input tree, record skipped files and return the ones to translate."""
        seen: list[str] = []
        to_translate: list[PendingFile] = []

        for path in walk_files(self.settings.input_dir):
            file_path = str(path)
            file_name = path.name
            seen.append(file_path)

            if db.is_up_to_date(file_path, file_name):
                summary.unchanged += 1
                continue

            base_name, extension = split_base_name(file_name)
            if not self.detector.needs_translation(base_name):
                db.update(
                    file_path,
                    file_name=file_name,
                    translated_name=None,
                    status=TranslationStatus.SKIPPED,
                    error_message=None,
                )
                summary.skipped += 1
                continue

            to_translate.append(PendingFile(file_path, file_name, base_name, extension))

        if self.settings.prune_missing:
            summary.pruned = db.prune(seen)
        return to_translate

    async def run(self) -> GenerationSummary:
        """Run the generator and save the database.

        Returns:
            Counts of translated, skipped, failed and unchanged files
        """
        settings = self.settings
        summary = GenerationSummary()
        db = TranslationDatabase.load(settings.output_file)
        to_translate = self.collect(db, summary)

        if not to_translate:
            db.save()
            logger.info("No files needed translation. Database updated.")
            return summary

        provider = self._provider
        owns_provider = provider is None
        if provider is None:
            try:
                provider = create_provider(settings)
            except (CertificateError, ValueError) as e:
                # Files still get an entry and the database is still written
                logger.error("Cannot create %s provider: %s", settings.provider, e)
                self._record(db, summary, to_translate, ProviderOutcome.failure(str(e)))
                db.save()
                return summary

        batch_size = settings.batch.batch_size
        try:
            for start in range(0, len(to_translate), batch_size):
                batch = to_translate[start:start + batch_size]
                await self._translate_batch(provider, batch, db, summary)
                if start + batch_size < len(to_translate) and settings.batch.batch_delay_ms > 0:
                    await self._sleep(settings.batch.batch_delay)
        finally:
            if owns_provider:
                await provider.aclose()

        db.save()
        logger.info(
            "Translation database saved to %s (translated=%d, skipped=%d, failed=%d, unchanged=%d)",
            settings.output_file, summary.translated, summary.skipped, summary.failed, summary.unchanged,
        )
        return summary

    async def _translate_batch(
        self,
        provider: TranslationProvider,
        batch: list[PendingFile],
        db: TranslationDatabase,
        summary: GenerationSummary,
    ) -> None:
        # Files sharing a base name share one provider call
        groups: OrderedDict[str, list[PendingFile]] = OrderedDict()
        for item in batch:
            groups.setdefault(item.base_name, []).append(item)

        pending: list[str] = []
        for base_name, items in groups.items():
            cached = self.cache.get(base_name)
            if cached is NOT_TRANSLATABLE:
                self._record(db, summary, items, ProviderOutcome.not_applicable())
            elif cached is not None:
                self._record(db, summary, items, ProviderOutcome.success(cached))
            else:
                pending.append(base_name)

        target = self.settings.target
        while pending:
            self.provider_calls += len(pending)
            outcomes = await asyncio.gather(
                *(resolve_outcome(provider, base_name, target) for base_name in pending)
            )
            limited: list[str] = []
            for base_name, outcome in zip(pending, outcomes):
                if outcome.rate_limited:
                    limited.append(base_name)
                    continue
                if outcome.error is None:
                    self.cache.set(base_name, outcome.translated)
                self._record(db, summary, groups[base_name], outcome)

            if limited:
                logger.warning(
                    "Rate limit hit for %d file name(s). Waiting %d ms before retry...",
                    len(limited), self.settings.batch.rate_limit_delay_ms,
                )
                await self._sleep(self.settings.batch.rate_limit_delay)
            pending = limited

    @staticmethod
    def _record(
        db: TranslationDatabase,
        summary: GenerationSummary,
        items: list[PendingFile],
        outcome: ProviderOutcome,
    ) -> None:
        for item in items:
            if outcome.translated is not None:
                db.update(
                    item.file_path,
                    file_name=item.file_name,
                    translated_name=f"{outcome.translated}{item.extension}",
                    status=TranslationStatus.TRANSLATED,
                    error_message=None,
                )
                summary.translated += 1
            elif outcome.error is not None:
                db.update(
                    item.file_path,
                    file_name=item.file_name,
                    translated_name=None,
                    status=TranslationStatus.FAILED,
                    error_message=outcome.error,
                )
                summary.failed += 1
            else:
                # Provider had nothing to offer for this name
                db.update(
                    item.file_path,
                    file_name=item.file_name,
                    translated_name=None,
                    status=TranslationStatus.SKIPPED,
                    error_message=None,
                )
                summary.skipped += 1


async def generate_translations(
    settings: GeneratorSettings,
    provider: Optional[TranslationProvider] = None,
) -> GenerationSummary:
    """Convenience wrapper: run one generator pass."""
    return await BulkGenerator(settings, provider=provider).run()

