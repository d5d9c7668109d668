"""
Runtime configuration for the analyzer.

Values come from ``config/settings.yaml`` with environment variables layered
on top; every field has a default, so the YAML file is optional.

Provides:
    - Settings: Valuation rates, simulation modes, logging and HTTP options
    - get_settings(): Singleton accessor for Settings
    - reset_settings(): Clear the cached singleton (tests, reloads)
    - validate_env(): Startup validation of required environment variables
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from brandscan.exceptions import ConfigurationError
from brandscan.logging.models import LogLevel
from brandscan.sources import DETECTION_MODES, METRICS_MODES
from brandscan.valuation import DEFAULT_CPE, DEFAULT_CPM

load_dotenv()

# Repository root; holds config/settings.yaml
PROJECT_ROOT = Path(__file__).resolve().parent.parent

logger = logging.getLogger(__name__)


# ===========================================================================
# SETTINGS
# ===========================================================================


@dataclass
class Settings:
    """
    Analyzer settings.

    Construct directly for tests and tools, or through :meth:`from_yaml`
    for the service. Invalid values raise ``ConfigurationError`` here, so a
    ``Settings`` instance is always usable.
    """

    # Valuation constants
    cpm: float = DEFAULT_CPM
    cpe: float = DEFAULT_CPE

    # Simulation wiring
    detection_mode: str = "random"
    detection_probability: float = 0.7
    metrics_mode: str = "simulated"
    processing_delay_seconds: float = 2.0

    # History
    history_limit: int = 10

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    # HTTP
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self) -> None:
        if self.cpm < 0 or self.cpe < 0:
            raise ConfigurationError(
                f"cpm and cpe must be non-negative, got cpm={self.cpm}, cpe={self.cpe}"
            )
        if self.detection_mode not in DETECTION_MODES:
            raise ConfigurationError(
                f"detection_mode must be one of {DETECTION_MODES}, "
                f"got {self.detection_mode!r}"
            )
        if self.metrics_mode not in METRICS_MODES:
            raise ConfigurationError(
                f"metrics_mode must be one of {METRICS_MODES}, "
                f"got {self.metrics_mode!r}"
            )
        if not 0.0 <= self.detection_probability <= 1.0:
            raise ConfigurationError(
                "detection_probability must be within [0, 1], "
                f"got {self.detection_probability}"
            )
        if self.processing_delay_seconds < 0:
            raise ConfigurationError(
                "processing_delay_seconds must be non-negative, "
                f"got {self.processing_delay_seconds}"
            )
        if self.history_limit <= 0:
            raise ConfigurationError(
                f"history_limit must be positive, got {self.history_limit}"
            )
        try:
            LogLevel.from_name(str(self.log_level))
        except ValueError as exc:
            raise ConfigurationError(
                f"log_level must be one of {[lvl.name for lvl in LogLevel]}, "
                f"got {self.log_level!r}"
            ) from exc

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None) -> "Settings":
        """
        Build settings from *path* plus environment overrides.

        A missing file means "all defaults". Unknown YAML keys are logged and
        ignored.

        Args:
            path: YAML file; ``<PROJECT_ROOT>/config/settings.yaml`` when
                omitted.

        Raises:
            ConfigurationError: If the YAML file exists but cannot be parsed,
                or a value (from YAML or environment) is invalid.
        """
        path = path or PROJECT_ROOT / "config" / "settings.yaml"

        data: Dict[str, Any] = {}
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    data = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    f"Failed to parse settings YAML at {path}: {exc}"
                ) from exc
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Settings YAML at {path} must be a mapping, got {type(data).__name__}"
            )

        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {k: v for k, v in data.items() if k in known}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown settings keys: %s", unknown)

        # -----------------------------------------------------------------
        # Environment variable overrides
        # -----------------------------------------------------------------
        env_map: Dict[str, tuple] = {
            "MEDIA_VALUE_CPM": ("cpm", float),
            "MEDIA_VALUE_CPE": ("cpe", float),
            "DETECTION_MODE": ("detection_mode", str),
            "DETECTION_PROBABILITY": ("detection_probability", float),
            "METRICS_MODE": ("metrics_mode", str),
            "PROCESSING_DELAY_SECONDS": ("processing_delay_seconds", float),
            "HISTORY_LIMIT": ("history_limit", int),
            "LOG_LEVEL": ("log_level", str),
            "LOG_DIR": ("log_dir", str),
            "HOST": ("host", str),
            "PORT": ("port", int),
            "CORS_ORIGINS": ("cors_origins", _split_csv),
        }
        for env_key, (setting, convert) in env_map.items():
            env_val = os.environ.get(env_key)
            if env_val is None:
                continue
            try:
                kwargs[setting] = convert(env_val)
            except (ValueError, TypeError) as exc:
                raise ConfigurationError(
                    f"Invalid value for {env_key}={env_val!r}: {exc}"
                ) from exc

        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid settings in {path}: {exc}") from exc


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# ===========================================================================
# SINGLETON SETTINGS ACCESSOR
# ===========================================================================

_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings.from_yaml()
    return _settings_instance


def reset_settings() -> None:
    """Forget the cached settings so the next ``get_settings()`` reloads."""
    global _settings_instance
    _settings_instance = None


# ===========================================================================
# ENVIRONMENT VARIABLE VALIDATION
# ===========================================================================

# Required environment variables; each entry is satisfied by any of its names
REQUIRED_ENV_VARS: Dict[str, List[str]] = {
    "SUPABASE_URL": ["SUPABASE_URL"],
    "SUPABASE_SERVICE_KEY": ["SUPABASE_SERVICE_KEY", "SUPABASE_ANON_KEY"],
}


def validate_env(
    strict: bool = True, getenv: Callable[[str], Optional[str]] = os.environ.get
) -> Dict[str, bool]:
    """
    Check that the Supabase credentials are present.

    Args:
        strict: Raise on missing variables instead of only reporting them.
        getenv: Lookup function, ``os.environ.get`` by default.

    Returns:
        Variable name -> whether it (or an accepted alternative) is set.

    Raises:
        ConfigurationError: If ``strict`` and anything is missing.
    """
    status: Dict[str, bool] = {}
    missing: List[str] = []

    for var, candidates in REQUIRED_ENV_VARS.items():
        present = any(getenv(name) for name in candidates)
        status[var] = present
        if not present:
            missing.append(var)

    if strict and missing:
        raise ConfigurationError(
            f"Missing required environment variables: {missing}. "
            f"Copy .env.example to .env and fill in the values."
        )

    return status
