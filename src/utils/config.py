"""Configuration management for the enrollment portal.

Loads and validates YAML configuration with defaults for OCR, image
preprocessing, OTP issuance, storage and SMS delivery. Credentials can be
supplied through environment variables, which take precedence over the file.
"""

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    pdf_dpi: int = 300


class PreprocessingConfig(BaseModel):
    """Configuration for identity-card image cleanup before OCR."""

    grayscale: bool = True
    upscale_min_width: int = 1000
    denoise_enabled: bool = True
    denoise_method: str = "bilateral"
    contrast_enabled: bool = True
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 8
    binarize_enabled: bool = False


class OTPConfig(BaseModel):
    """Configuration for one-time passcode issuance."""

    expiry_minutes: int = 5
    code_min: int = 1000
    code_max: int = 9999


class StorageConfig(BaseModel):
    """Configuration for the candidate and OTP repositories."""

    backend: Literal["memory", "mongo"] = "memory"
    mongodb_uri: str = "mongodb://localhost:27017"
    database: str = "skills_portal"


class NotificationConfig(BaseModel):
    """Configuration for out-of-band OTP delivery.

    ``auto`` sends SMS through Twilio once all three Twilio settings are
    present and logs codes to the console otherwise.
    """

    backend: Literal["auto", "console", "twilio"] = "auto"
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_from_number: str | None = None
    country_code: str = "+91"


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    otp: OTPConfig = Field(default_factory=OTPConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"


# Environment variable -> (section, field)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "MONGODB_URI": ("storage", "mongodb_uri"),
    "TWILIO_ACCOUNT_SID": ("notifications", "twilio_account_sid"),
    "TWILIO_AUTH_TOKEN": ("notifications", "twilio_auth_token"),
    "TWILIO_PHONE_NUMBER": ("notifications", "twilio_from_number"),
}


def _apply_env_overrides(raw: dict) -> dict:
    """Merge credential environment variables into raw config data.

    Args:
        raw: Parsed YAML mapping (modified in place).

    Returns:
        The same mapping with any set environment variables applied.
    """
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            # An empty YAML section loads as None.
            raw[section] = raw.get(section) or {}
            raw[section][key] = value
            logger.debug("Applied %s from environment", env_name)
    return raw


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    raw: dict = {}
    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    else:
        logger.info("No config file found at %s, using defaults", path)

    return AppConfig(**_apply_env_overrides(raw))
