# fileexp/services/gateway.py
"""
TLS gateway in front of the local generation backend.

    GET  /health     -> 200 {"ok": true, "model": ...}
    POST /translate  {"text": ..., "target": "en"}
                     -> 200 {"ok": true, "translated": ...}
                     -> 400 {"ok": false, "message": "text is required"}
                     -> 4xx/5xx {"ok": false, "message", "status", "body"}

Every failure is answered with a JSON response; nothing a client sends and
nothing the backend does takes the listener down.
"""

from __future__ import annotations

import logging
import ssl
from contextlib import asynccontextmanager
from typing import Any, Mapping, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fileexp.config.settings import DEFAULT_TARGET_LANGUAGE, GatewaySettings
from fileexp.services.exceptions import (
    CertificateError,
    HttpError,
    NetworkError,
    ParseError,
    ValidationError,
)
from fileexp.services.providers import OllamaProvider
from fileexp.services.substitutions import apply_substitutions, load_substitutions

logger = logging.getLogger(__name__)

BAD_GATEWAY = 502


def parse_translate_request(payload: Any) -> tuple[str, str]:
    """Validate a /translate body.

    Returns:
        (text, target)

    Raises:
        ValidationError: if text is missing, empty or not a string
    """
    if not isinstance(payload, dict):
        raise ValidationError("text is required")
    text = payload.get("text")
    if not isinstance(text, str) or not text:
        raise ValidationError("text is required")
    target = payload.get("target")
    if not isinstance(target, str) or not target.strip():
        target = DEFAULT_TARGET_LANGUAGE
    return text, target.strip()


def _error_response(status_code: int, message: str, status: Optional[int] = None,
                    body: Optional[str] = None) -> JSONResponse:
    content: dict[str, Any] = {"ok": False, "message": message}
    if status is not None:
        content["status"] = status
    if body is not None:
        content["body"] = body
    return JSONResponse(status_code=status_code, content=content)


def create_app(
    settings: GatewaySettings,
    substitutions: Optional[Mapping[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the gateway application.

    Args:
        settings: Gateway settings (backend URL, model, timeout)
        substitutions: Literal substitution table applied to incoming text
        transport: Optional httpx transport for the backend client
    """
    table = dict(substitutions or {})

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        backend = OllamaProvider(
            f"{settings.backend_url}/api/generate",
            model=settings.model,
            timeout=settings.request_timeout,
            transport=transport,
        )
        async with backend:
            app.state.backend = backend
            yield

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.substitutions = table

    @app.get("/health")
    async def health():
        return {"ok": True, "model": settings.model}

    @app.post("/translate")
    async def translate(request: Request):
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        try:
            text, target = parse_translate_request(payload)
        except ValidationError as e:
            logger.warning("Translation request missing text")
            return _error_response(400, str(e))

        normalized = apply_substitutions(text, table)
        logger.debug("Backend request (model=%s, target=%s, text=%r)", settings.model, target, normalized)
        backend: OllamaProvider = request.app.state.backend

        try:
            translated = await backend.translate(normalized, target)
        except HttpError as e:
            logger.error("Translation failed (status=%s, body=%s): %s", e.status, e.body, e)
            return _error_response(e.status or 500, str(e), e.status, e.body)
        except ParseError as e:
            logger.error("Translation failed (status=%s, body=%s): %s", e.status, e.body, e)
            return _error_response(BAD_GATEWAY, str(e), e.status, e.body)
        except NetworkError as e:
            logger.error("Translation failed: %s", e)
            return _error_response(500, str(e))
        except Exception as e:
            logger.exception("Unexpected error while translating")
            return _error_response(500, str(e) or type(e).__name__)

        logger.info("Translation success (target=%s, length=%d)", target, len(translated))
        return {"ok": True, "translated": translated}

    return app


def load_certificate_pair(settings: GatewaySettings) -> ssl.SSLContext:
    """Check that the certificate/key pair can be loaded.

    Raises:
        CertificateError: if either file is missing or the pair is invalid
    """
    for label, path in (("certificate", settings.cert_path), ("key", settings.key_path)):
        if not path.is_file():
            raise CertificateError(f"TLS {label} file not found: {path}")
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(certfile=str(settings.cert_path), keyfile=str(settings.key_path))
    except (OSError, ssl.SSLError) as e:
        raise CertificateError(f"Cannot load TLS key pair ({settings.cert_path}, {settings.key_path}): {e}") from e
    return context


def run_gateway(settings: GatewaySettings) -> None:
    """Start the gateway and block until it stops.

    Raises:
        CertificateError: if the TLS key pair cannot be loaded
    """
    load_certificate_pair(settings)
    substitutions = load_substitutions(settings.substitutions_path)
    app = create_app(settings, substitutions)

    uvicorn_level = "warning" if settings.log_level == "warn" else settings.log_level
    logger.info(
        "Ollama HTTPS translation server listening on https://localhost:%d (backend=%s, model=%s)",
        settings.port, settings.backend_url, settings.model,
    )
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        ssl_certfile=str(settings.cert_path),
        ssl_keyfile=str(settings.key_path),
        log_level=uvicorn_level,
        log_config=None,
    )
