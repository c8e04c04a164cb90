"""Configuration helpers for the PromptMaster Studio project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    gemini_api_key: Optional[str] = None
    text_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    retry_attempts: int = 3
    retry_initial_delay: float = 1.0
    discovery_cooldown_seconds: int = 30
    probe_cooldown_seconds: int = 15
    prompt_count: int = 5
    history_capacity: int = 25
    max_exports: int = 100
    output_dir: Path = Path("outputs")
    log_dir: Path = Path("logs")
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def has_credential(self) -> bool:
        """Return True when a usable API key is configured."""
        return bool((self.gemini_api_key or "").strip())


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip().strip('"').strip("'")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _resolve_api_key() -> Optional[str]:
    """Pick the first non-blank credential among the supported variables."""
    for env_name in ("GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY"):
        value = (os.getenv(env_name) or "").strip()
        if value:
            return value
    return None


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    defaults = AppConfig()
    retry_delay_ms = _env_int("STUDIO_RETRY_DELAY_MS", int(defaults.retry_initial_delay * 1000))

    metadata: dict[str, Any] = {"env_file": str(env_path)}
    return AppConfig(
        gemini_api_key=_resolve_api_key(),
        text_model=os.getenv("GEMINI_TEXT_MODEL") or defaults.text_model,
        image_model=os.getenv("GEMINI_IMAGE_MODEL") or defaults.image_model,
        retry_attempts=max(0, _env_int("STUDIO_RETRY_ATTEMPTS", defaults.retry_attempts)),
        retry_initial_delay=max(0, retry_delay_ms) / 1000.0,
        discovery_cooldown_seconds=max(0, _env_int("STUDIO_DISCOVERY_COOLDOWN", defaults.discovery_cooldown_seconds)),
        probe_cooldown_seconds=max(0, _env_int("STUDIO_PROBE_COOLDOWN", defaults.probe_cooldown_seconds)),
        max_exports=max(1, _env_int("STUDIO_MAX_EXPORTS", defaults.max_exports)),
        output_dir=Path(os.getenv("STUDIO_OUTPUT_DIR", str(defaults.output_dir))).expanduser(),
        log_dir=Path(os.getenv("STUDIO_LOG_DIR", str(defaults.log_dir))).expanduser(),
        metadata=metadata,
    )
