# tests/test_cli.py
"""
Tests for the command line entry points.
"""

from pathlib import Path

import pytest

from fileexp import cli
from fileexp.models.types import GenerationSummary
from fileexp.services import bulk_generator


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *_args, **_kwargs: None)


class TestGenerate:

    def test_missing_input_dir(self, tmp_path: Path):
        code = cli.main(["generate", "--input", str(tmp_path / "missing"), "--output", str(tmp_path / "db.json")])
        assert code == 1

    def test_passes_settings(self, tmp_path: Path, monkeypatch, capsys):
        captured = {}

        async def _fake_generate(settings, provider=None):
            captured["settings"] = settings
            return GenerationSummary(translated=2, skipped=1)

        monkeypatch.setattr(bulk_generator, "generate_translations", _fake_generate)
        monkeypatch.delenv("FILEEXP_BATCH_SIZE", raising=False)

        code = cli.main([
            "generate",
            "--input", str(tmp_path),
            "--output", str(tmp_path / "db.json"),
            "--provider", "ollama",
            "--batch-size", "5",
            "--rate-limit-delay", "oops",
            "--prune-missing",
        ])

        assert code == 0
        settings = captured["settings"]
        assert settings.provider == "ollama"
        assert settings.batch.batch_size == 5
        assert settings.batch.rate_limit_delay_ms == 5000
        assert settings.prune_missing is True
        assert "translated=2 skipped=1" in capsys.readouterr().out

    def test_unknown_provider_rejected(self, tmp_path: Path):
        with pytest.raises(SystemExit):
            cli.main(["generate", "--input", str(tmp_path), "--output", "db.json", "--provider", "deepl"])


class TestGateway:

    def test_missing_certificates(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("CERT_DIR", str(tmp_path))
        monkeypatch.delenv("CERT_PATH", raising=False)
        monkeypatch.delenv("KEY_PATH", raising=False)

        assert cli.main(["gateway"]) == 1
