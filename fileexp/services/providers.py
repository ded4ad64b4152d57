# fileexp/services/providers.py
"""
Translation providers.

Two interchangeable backends implement TranslationProvider:
- GoogleTranslateProvider: cloud translation through deep-translator
- OllamaProvider: the privately hosted model, either through the TLS gateway
  (endpoint ending in /translate) or talking to the generation backend directly

Providers raise the exceptions in fileexp.services.exceptions. resolve_outcome()
is the only place those are turned into a ProviderOutcome.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import requests
from deep_translator import GoogleTranslator
from deep_translator.exceptions import RequestError, TooManyRequests, TranslationNotFound

from fileexp.config.settings import (
    DEFAULT_MODEL,
    DEFAULT_TARGET_LANGUAGE,
    PROVIDER_OLLAMA,
    GeneratorSettings,
)
from fileexp.models.types import ProviderOutcome
from fileexp.services.exceptions import (
    CertificateError,
    HttpError,
    NetworkError,
    ParseError,
    RateLimitedError,
    TranslationProviderError,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429


def build_translation_prompt(text: str, target: str) -> str:
    """Instruction sent to the generation backend for one file name."""
    return (
        f"Translate the following filename into {target}. "
        "Respond with only the translated filename and no extra text.\n\n"
        f"{text}"
    )


def status_from_error(error: BaseException) -> Optional[int]:
    """Find an HTTP status code on an arbitrary error object.

    Looks at error.status, error.status_code, error.response.status_code and
    error.code, in that order. Numeric strings are accepted.
    """
    candidates: list[Any] = [
        getattr(error, "status", None),
        getattr(error, "status_code", None),
    ]
    response = getattr(error, "response", None)
    if response is not None:
        candidates.append(getattr(response, "status_code", None))
        candidates.append(getattr(response, "status", None))
    candidates.append(getattr(error, "code", None))

    for value in candidates:
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
    return None


class TranslationProvider(ABC):
    """Uniform contract over translation backends.

    translate() returns the translated text ("" when there is nothing to
    translate) or raises NetworkError, HttpError, ParseError or
    RateLimitedError.
    """

    name: str = "provider"

    @abstractmethod
    async def translate(self, text: str, target: str = DEFAULT_TARGET_LANGUAGE) -> str:
        ...

    async def aclose(self) -> None:
        return None

    async def __aenter__(self) -> "TranslationProvider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def resolve_outcome(
    provider: TranslationProvider,
    text: str,
    target: str = DEFAULT_TARGET_LANGUAGE,
) -> ProviderOutcome:
    """Run one provider attempt and normalize the result into a ProviderOutcome."""
    try:
        translated = await provider.translate(text, target)
    except RateLimitedError:
        logger.debug("%s rate limited for %r", provider.name, text)
        return ProviderOutcome.limited()
    except TranslationProviderError as e:
        if isinstance(e, HttpError) and e.status == RATE_LIMIT_STATUS:
            return ProviderOutcome.limited()
        logger.warning("%s failed for %r: %s", provider.name, text, e)
        return ProviderOutcome.failure(str(e))
    except Exception as e:
        # Every queued item must resolve, so unknown provider faults become failures
        logger.exception("Unexpected error from %s for %r", provider.name, text)
        return ProviderOutcome.failure(str(e) or type(e).__name__)

    if not translated:
        return ProviderOutcome.not_applicable()
    return ProviderOutcome.success(translated)


class GoogleTranslateProvider(TranslationProvider):
    """Cloud translation via deep-translator's GoogleTranslator.

    The library is blocking, so each call runs in a worker thread and only
    the calling task waits.
    """

    name = "google"

    def __init__(
        self,
        source: str = "auto",
        translator_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        self._source = source
        self._translator_factory = translator_factory or GoogleTranslator

    async def translate(self, text: str, target: str = DEFAULT_TARGET_LANGUAGE) -> str:
        return await asyncio.to_thread(self._translate_sync, text, target)

    def _translate_sync(self, text: str, target: str) -> str:
        translator = self._translator_factory(source=self._source, target=target)
        try:
            result = translator.translate(text)
        except TooManyRequests as e:
            raise RateLimitedError(str(e)) from e
        except TranslationNotFound:
            return ""
        except RequestError as e:
            status = status_from_error(e)
            if status == RATE_LIMIT_STATUS:
                raise RateLimitedError(str(e)) from e
            raise HttpError(str(e), status=status) from e
        except requests.exceptions.RequestException as e:
            status = status_from_error(e)
            if status == RATE_LIMIT_STATUS:
                raise RateLimitedError(str(e)) from e
            if status is not None:
                raise HttpError(str(e), status=status) from e
            raise NetworkError(f"Translation service unreachable: {e}") from e

        if result is None:
            return ""
        return str(result).strip()


def _build_ssl_context(ca_cert: Path) -> ssl.SSLContext:
    try:
        return ssl.create_default_context(cafile=str(ca_cert))
    except (OSError, ssl.SSLError) as e:
        raise CertificateError(f"Cannot load CA certificate {ca_cert}: {e}") from e


class OllamaProvider(TranslationProvider):
    """Model-backed translation over HTTP(S).

    Proxy mode (endpoint path ends with /translate) posts {text, target} to the
    gateway and reads "translated". Direct mode posts {model, prompt, stream}
    to the generation backend and reads "response".
    """

    name = "ollama"

    def __init__(
        self,
        endpoint: str,
        model: str = DEFAULT_MODEL,
        ca_cert: Optional[Path] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not endpoint:
            raise ValueError("Ollama endpoint is required.")
        self.endpoint = endpoint
        self.model = model
        url = httpx.URL(endpoint)
        self.is_proxy_endpoint = url.path.endswith("/translate")

        verify: ssl.SSLContext | bool = True
        if url.scheme == "https" and ca_cert is not None:
            verify = _build_ssl_context(ca_cert)

        self._client = httpx.AsyncClient(
            verify=verify,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def build_payload(self, text: str, target: str) -> dict[str, Any]:
        if self.is_proxy_endpoint:
            return {"text": text, "target": target}
        return {
            "model": self.model,
            "prompt": build_translation_prompt(text, target),
            "stream": False,
        }

    async def translate(self, text: str, target: str = DEFAULT_TARGET_LANGUAGE) -> str:
        payload = self.build_payload(text, target)
        logger.debug("Ollama request payload: %s", payload)
        try:
            response = await self._client.post(self.endpoint, json=payload)
        except httpx.HTTPError as e:
            raise NetworkError(f"Ollama request to {self.endpoint} failed: {e}") from e

        body = response.text
        if response.status_code == RATE_LIMIT_STATUS:
            raise RateLimitedError(body=body)
        if not response.is_success:
            raise HttpError(
                f"Ollama request failed with {response.status_code}",
                status=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError("Ollama response was not valid JSON.", status=response.status_code, body=body) from e
        if not isinstance(data, dict):
            raise ParseError("Ollama response was not a JSON object.", status=response.status_code, body=body)

        value = data.get("translated") if self.is_proxy_endpoint else data.get("response")
        return value.strip() if isinstance(value, str) else ""

    async def aclose(self) -> None:
        await self._client.aclose()


def create_provider(settings: GeneratorSettings) -> TranslationProvider:
    """Select the provider variant named in settings."""
    if settings.provider == PROVIDER_OLLAMA:
        return OllamaProvider(
            endpoint=settings.ollama_endpoint,
            model=settings.ollama_model,
            ca_cert=settings.ollama_cert,
        )
    return GoogleTranslateProvider()
