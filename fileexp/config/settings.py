# fileexp/config/settings.py
"""
Settings management for FileExp.

設定は環境変数（またはCLI引数）から読み込む:
- BatchConfig: バッチサイズ・バッチ間隔・429後の待機時間
- GatewaySettings: TLSゲートウェイの待受ポート、証明書、バックエンド
- GeneratorSettings: 一括生成ツールの入出力とプロバイダ

不正な値は例外にせず、警告を出してデフォルト値に戻す。
"""

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

# Module logger
logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_BATCH_DELAY_MS = 1000
DEFAULT_RATE_LIMIT_DELAY_MS = 5000

DEFAULT_GATEWAY_PORT = 8443
DEFAULT_BACKEND_URL = "http://localhost:11434"
DEFAULT_MODEL = "shisa-v2.1-llama3.2-3b"
DEFAULT_TARGET_LANGUAGE = "en"
DEFAULT_OLLAMA_ENDPOINT = "https://localhost:8443/translate"

PROVIDER_GOOGLE = "google"
PROVIDER_OLLAMA = "ollama"
PROVIDERS = (PROVIDER_GOOGLE, PROVIDER_OLLAMA)


def _coerce_number(value: object, default: int, minimum: int, name: str) -> int:
    """Coerce value to an int >= minimum, falling back to default."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        logger.warning("%s must be a number (%r), using %d", name, value, default)
        return default
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.warning("%s is not a number (%r), using %d", name, value, default)
        return default
    if not math.isfinite(number):
        logger.warning("%s is not finite (%r), using %d", name, value, default)
        return default
    if number < minimum:
        logger.warning("%s below minimum %d (%r), using %d", name, minimum, value, default)
        return default
    return int(number)


@dataclass(frozen=True)
class BatchConfig:
    """Batching parameters shared by the interactive queue and the bulk generator"""

    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay_ms: int = DEFAULT_BATCH_DELAY_MS
    rate_limit_delay_ms: int = DEFAULT_RATE_LIMIT_DELAY_MS

    @classmethod
    def coerce(
        cls,
        batch_size: object = None,
        batch_delay_ms: object = None,
        rate_limit_delay_ms: object = None,
    ) -> "BatchConfig":
        """Build a config from untrusted input. Never raises."""
        return cls(
            batch_size=_coerce_number(batch_size, DEFAULT_BATCH_SIZE, 1, "batch_size"),
            batch_delay_ms=_coerce_number(batch_delay_ms, DEFAULT_BATCH_DELAY_MS, 0, "batch_delay_ms"),
            rate_limit_delay_ms=_coerce_number(
                rate_limit_delay_ms, DEFAULT_RATE_LIMIT_DELAY_MS, 0, "rate_limit_delay_ms"
            ),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BatchConfig":
        env = os.environ if environ is None else environ
        return cls.coerce(
            env.get("FILEEXP_BATCH_SIZE"),
            env.get("FILEEXP_BATCH_DELAY_MS"),
            env.get("FILEEXP_RATE_LIMIT_DELAY_MS"),
        )

    @property
    def batch_delay(self) -> float:
        """Inter-batch delay in seconds"""
        return self.batch_delay_ms / 1000.0

    @property
    def rate_limit_delay(self) -> float:
        """Post-429 delay in seconds"""
        return self.rate_limit_delay_ms / 1000.0


@dataclass
class GatewaySettings:
    """Settings of the TLS gateway that fronts the model server"""

    host: str = "0.0.0.0"
    port: int = DEFAULT_GATEWAY_PORT
    cert_path: Path = field(default_factory=lambda: get_default_cert_dir() / "cert.pem")
    key_path: Path = field(default_factory=lambda: get_default_cert_dir() / "key.pem")
    backend_url: str = DEFAULT_BACKEND_URL
    model: str = DEFAULT_MODEL
    substitutions_path: Optional[Path] = None
    log_level: str = "info"
    request_timeout: Optional[float] = None  # None = wait for the backend indefinitely

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GatewaySettings":
        """Load gateway settings from OLLAMA_* / CERT_* environment variables."""
        env = os.environ if environ is None else environ

        cert_dir = Path(env["CERT_DIR"]) if env.get("CERT_DIR") else get_default_cert_dir()
        cert_path = Path(env["CERT_PATH"]) if env.get("CERT_PATH") else cert_dir / "cert.pem"
        key_path = Path(env["KEY_PATH"]) if env.get("KEY_PATH") else cert_dir / "key.pem"
        substitutions = env.get("OLLAMA_SUBSTITUTIONS_PATH")

        timeout: Optional[float] = None
        raw_timeout = env.get("OLLAMA_REQUEST_TIMEOUT")
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                logger.warning("OLLAMA_REQUEST_TIMEOUT is not a number (%r), ignoring", raw_timeout)

        settings = cls(
            host=env.get("OLLAMA_HTTPS_HOST", "0.0.0.0"),
            port=_coerce_number(env.get("OLLAMA_HTTPS_PORT"), DEFAULT_GATEWAY_PORT, 0, "OLLAMA_HTTPS_PORT"),
            cert_path=cert_path,
            key_path=key_path,
            backend_url=env.get("OLLAMA_URL") or DEFAULT_BACKEND_URL,
            model=env.get("OLLAMA_MODEL") or DEFAULT_MODEL,
            substitutions_path=Path(substitutions) if substitutions else None,
            log_level=(env.get("OLLAMA_HTTPS_LOG_LEVEL") or "info").lower(),
            request_timeout=timeout,
        )
        settings._validate()
        return settings

    def _validate(self) -> None:
        """Normalize values. Invalid values are reset to defaults with warnings."""
        from fileexp.config.log_config import LOG_LEVELS

        self.backend_url = self.backend_url.rstrip("/")
        if self.log_level == "warning":
            self.log_level = "warn"
        if self.log_level not in LOG_LEVELS:
            logger.warning("Unknown log level (%s), using info", self.log_level)
            self.log_level = "info"
        if not 0 <= self.port <= 65535:
            logger.warning("Gateway port out of range (%d), resetting to %d", self.port, DEFAULT_GATEWAY_PORT)
            self.port = DEFAULT_GATEWAY_PORT
        if self.request_timeout is not None and self.request_timeout <= 0:
            self.request_timeout = None


@dataclass
class GeneratorSettings:
    """Settings of one bulk generator run"""

    input_dir: Path
    output_file: Path
    provider: str = PROVIDER_GOOGLE
    ollama_endpoint: str = DEFAULT_OLLAMA_ENDPOINT
    ollama_model: str = DEFAULT_MODEL
    ollama_cert: Optional[Path] = None
    target: str = DEFAULT_TARGET_LANGUAGE
    batch: BatchConfig = field(default_factory=BatchConfig)
    prune_missing: bool = False

    def __post_init__(self) -> None:
        self.provider = (self.provider or PROVIDER_GOOGLE).lower()
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown provider: {self.provider} (expected one of {', '.join(PROVIDERS)})")


def get_default_cert_dir() -> Path:
    """Get default certificate directory (<project root>/certs)"""
    return Path(__file__).parent.parent.parent / "certs"
