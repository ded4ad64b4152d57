# fileexp/cli.py
"""
Command line entry points.

    fileexp generate --input DIR --output FILE [options]
    fileexp gateway [--port N]
    fileexp translate NAME [NAME ...]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from fileexp import __version__
from fileexp.config.log_config import LOG_LEVELS, setup_logging
from fileexp.config.settings import (
    DEFAULT_MODEL,
    DEFAULT_OLLAMA_ENDPOINT,
    DEFAULT_TARGET_LANGUAGE,
    PROVIDER_GOOGLE,
    PROVIDERS,
    BatchConfig,
    GatewaySettings,
    GeneratorSettings,
)
from fileexp.services.exceptions import CertificateError

logger = logging.getLogger(__name__)


def _add_provider_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--provider",
        choices=PROVIDERS,
        default=PROVIDER_GOOGLE,
        help="Translate provider (default: google)",
    )
    parser.add_argument(
        "--ollama-endpoint",
        default=DEFAULT_OLLAMA_ENDPOINT,
        help=f"Ollama HTTPS endpoint (default: {DEFAULT_OLLAMA_ENDPOINT})",
    )
    parser.add_argument("--ollama-model", default=DEFAULT_MODEL, help=f"Ollama model (default: {DEFAULT_MODEL})")
    parser.add_argument("--ollama-cert", type=Path, default=None, help="CA cert to trust a self-signed gateway")
    parser.add_argument("--target", default=DEFAULT_TARGET_LANGUAGE, help="Target language (default: en)")
    parser.add_argument("--batch-size", default=None, help="Files per translation batch (default: 100)")
    parser.add_argument("--batch-delay", default=None, help="Delay between batches in ms (default: 1000)")
    parser.add_argument("--rate-limit-delay", default=None, help="Delay after 429 errors in ms (default: 5000)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileexp",
        description="Translate Japanese file names for display in a file browser.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        choices=tuple(LOG_LEVELS),
        default=None,
        help="Log verbosity (default: info, or OLLAMA_HTTPS_LOG_LEVEL for the gateway)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Build or resume a translation database for a directory tree")
    generate.add_argument("--input", type=Path, required=True, help="Directory to scan")
    generate.add_argument("--output", type=Path, required=True, help="Translation database JSON file")
    generate.add_argument(
        "--prune-missing",
        action="store_true",
        help="Drop entries for files that no longer exist under --input",
    )
    _add_provider_arguments(generate)

    gateway = sub.add_parser("gateway", help="Run the TLS translation gateway (configured via environment)")
    gateway.add_argument("--port", type=int, default=None, help="Override OLLAMA_HTTPS_PORT")

    translate = sub.add_parser("translate", help="Translate file names through the request queue")
    translate.add_argument("names", nargs="+", help="File names to translate")
    _add_provider_arguments(translate)

    return parser


def _batch_config(args: argparse.Namespace) -> BatchConfig:
    env = BatchConfig.from_env()
    return BatchConfig.coerce(
        args.batch_size if args.batch_size is not None else env.batch_size,
        args.batch_delay if args.batch_delay is not None else env.batch_delay_ms,
        args.rate_limit_delay if args.rate_limit_delay is not None else env.rate_limit_delay_ms,
    )


def _generator_settings(args: argparse.Namespace, input_dir: Path, output_file: Path) -> GeneratorSettings:
    return GeneratorSettings(
        input_dir=input_dir,
        output_file=output_file,
        provider=args.provider,
        ollama_endpoint=args.ollama_endpoint,
        ollama_model=args.ollama_model,
        ollama_cert=args.ollama_cert,
        target=args.target,
        batch=_batch_config(args),
        prune_missing=getattr(args, "prune_missing", False),
    )


def _run_generate(args: argparse.Namespace) -> int:
    from fileexp.services.bulk_generator import generate_translations

    if not args.input.is_dir():
        logger.error("Input directory not found: %s", args.input)
        return 1
    settings = _generator_settings(args, args.input, args.output)
    summary = asyncio.run(generate_translations(settings))
    print(
        f"translated={summary.translated} skipped={summary.skipped} "
        f"failed={summary.failed} unchanged={summary.unchanged}"
    )
    return 0


def _run_gateway(args: argparse.Namespace) -> int:
    from fileexp.services.gateway import run_gateway

    settings = GatewaySettings.from_env()
    if args.log_level:
        settings.log_level = args.log_level
    if args.port is not None:
        settings.port = args.port
        settings._validate()
    setup_logging(settings.log_level)
    try:
        run_gateway(settings)
    except CertificateError as e:
        logger.error("Failed to start HTTPS server: %s", e)
        return 1
    return 0


async def _translate_names(args: argparse.Namespace) -> list[dict]:
    from fileexp.services.batch_scheduler import BatchScheduler
    from fileexp.services.providers import create_provider

    settings = _generator_settings(args, Path("."), Path("."))
    async with create_provider(settings) as provider:
        scheduler = BatchScheduler(provider, settings.batch, target=settings.target)
        results = await asyncio.gather(*(scheduler.translate_filename(name) for name in args.names))
    return [result.to_dict() for result in results]


def _run_translate(args: argparse.Namespace) -> int:
    results = asyncio.run(_translate_names(args))
    print(json.dumps(results, ensure_ascii=False, indent=2))
    return 0 if all("error" not in r for r in results) else 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "gateway":
        return _run_gateway(args)

    setup_logging(args.log_level or "info")
    if args.command == "generate":
        return _run_generate(args)
    return _run_translate(args)


if __name__ == "__main__":
    sys.exit(main())
