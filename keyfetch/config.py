"""Configuration loader. Reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CoordinatorConfig:
    debounce_ms: int = 300
    cancel_stale_tasks: bool = False

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class AppConfig:
    coordinator: CoordinatorConfig = field(default_factory=CoordinatorConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def _as_bool(value: Any) -> bool:
    # Interpolated env values arrive as strings.
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_coordinator(raw: dict[str, Any]) -> CoordinatorConfig:
    return CoordinatorConfig(
        debounce_ms=int(raw.get("debounce_ms", 300)),
        cancel_stale_tasks=_as_bool(raw.get("cancel_stale_tasks", False)),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        # Unset ${VAR} endpoints interpolate to "".
        rpc_endpoints=tuple(url for url in raw.get("rpc_endpoints", []) if url),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        coordinator=_build_coordinator(raw.get("coordinator") or {}),
        chain=_build_chain(raw.get("chain") or {}),
        log_level=str(raw.get("log_level", "INFO")).upper(),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.coordinator.debounce_ms < 0:
        raise ValueError("coordinator.debounce_ms must be >= 0")

    if cfg.chain.rpc_timeout <= 0:
        raise ValueError("chain.rpc_timeout must be > 0")

    for url in cfg.chain.rpc_endpoints:
        if not url.lower().startswith(("http://", "https://")):
            raise ValueError(f"RPC endpoint must be HTTP/HTTPS: {url}")

    if cfg.log_level not in _LOG_LEVELS:
        raise ValueError(
            f"log_level must be one of {list(_LOG_LEVELS)}, got '{cfg.log_level}'"
        )
