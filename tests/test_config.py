"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from src.utils.config import (
    AppConfig,
    NotificationConfig,
    OCRConfig,
    OTPConfig,
    PreprocessingConfig,
    StorageConfig,
    load_config,
)

_ENV_NAMES = (
    "MONGODB_URI",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_PHONE_NUMBER",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


class TestPreprocessingConfig:
    """Tests for PreprocessingConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.grayscale is True
        assert cfg.upscale_min_width == 1000
        assert cfg.denoise_enabled is True
        assert cfg.binarize_enabled is False
        assert cfg.denoise_method == "bilateral"
        assert cfg.clahe_clip_limit == 2.0

    def test_override(self) -> None:
        cfg = PreprocessingConfig(binarize_enabled=True, clahe_clip_limit=3.5)
        assert cfg.binarize_enabled is True
        assert cfg.clahe_clip_limit == 3.5


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.default_lang == "eng"
        assert cfg.psm == 3
        assert cfg.pdf_dpi == 300
        assert cfg.tesseract_cmd is None

    def test_custom_lang(self) -> None:
        cfg = OCRConfig(default_lang="hin", psm=6)
        assert cfg.default_lang == "hin"
        assert cfg.psm == 6


class TestOTPConfig:
    """Tests for OTPConfig defaults."""

    def test_defaults(self) -> None:
        cfg = OTPConfig()
        assert cfg.expiry_minutes == 5
        assert (cfg.code_min, cfg.code_max) == (1000, 9999)


class TestStorageConfig:
    """Tests for StorageConfig."""

    def test_defaults(self) -> None:
        cfg = StorageConfig()
        assert cfg.backend == "memory"
        assert cfg.database == "skills_portal"

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StorageConfig(backend="redis")


class TestNotificationConfig:
    """Tests for NotificationConfig."""

    def test_defaults(self) -> None:
        cfg = NotificationConfig()
        assert cfg.backend == "auto"
        assert cfg.twilio_account_sid is None
        assert cfg.country_code == "+91"


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.preprocessing, PreprocessingConfig)
        assert isinstance(cfg.ocr, OCRConfig)
        assert isinstance(cfg.otp, OTPConfig)
        assert isinstance(cfg.storage, StorageConfig)
        assert isinstance(cfg.notifications, NotificationConfig)
        assert cfg.port == 5000
        assert cfg.log_level == "INFO"

    def test_nested_override(self) -> None:
        cfg = AppConfig(otp=OTPConfig(expiry_minutes=10), log_level="DEBUG")
        assert cfg.otp.expiry_minutes == 10
        assert cfg.log_level == "DEBUG"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_default_config(self, config_dir: Path) -> None:
        cfg = load_config(config_dir / "config.yaml")
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.default_lang == "eng"
        assert cfg.storage.backend == "memory"
        assert cfg.notifications.backend == "auto"

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"))
        assert isinstance(cfg, AppConfig)
        assert cfg.otp.expiry_minutes == 5

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "otp": {"expiry_minutes": 3},
            "storage": {"backend": "mongo", "database": "portal"},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file)
        assert cfg.otp.expiry_minutes == 3
        assert cfg.storage.backend == "mongo"
        assert cfg.storage.database == "portal"
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        cfg = load_config(config_file)
        assert isinstance(cfg, AppConfig)

    def test_env_overrides_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("storage:\n  mongodb_uri: mongodb://file-host:27017\n")
        monkeypatch.setenv("MONGODB_URI", "mongodb://env-host:27017")
        monkeypatch.setenv("TWILIO_ACCOUNT_SID", "AC123")
        monkeypatch.setenv("TWILIO_AUTH_TOKEN", "secret")
        monkeypatch.setenv("TWILIO_PHONE_NUMBER", "+15550001111")

        cfg = load_config(config_file)

        assert cfg.storage.mongodb_uri == "mongodb://env-host:27017"
        assert cfg.notifications.twilio_account_sid == "AC123"
        assert cfg.notifications.twilio_auth_token == "secret"
        assert cfg.notifications.twilio_from_number == "+15550001111"

    def test_env_override_into_empty_section(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("storage:\nnotifications:\nlog_level: INFO\n")
        monkeypatch.setenv("MONGODB_URI", "mongodb://env-host:27017")
        monkeypatch.setenv("TWILIO_ACCOUNT_SID", "AC123")

        cfg = load_config(config_file)

        assert cfg.storage.mongodb_uri == "mongodb://env-host:27017"
        assert cfg.notifications.twilio_account_sid == "AC123"
        assert cfg.notifications.country_code == "+91"

    def test_empty_env_value_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MONGODB_URI", "")
        cfg = load_config(Path("/nonexistent/config.yaml"))
        assert cfg.storage.mongodb_uri == "mongodb://localhost:27017"

    def test_load_none_defaults_to_standard_path(self) -> None:
        cfg = load_config()
        assert isinstance(cfg, AppConfig)
