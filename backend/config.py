"""Runtime configuration for the autolinker backend.

All settings can be overridden via environment variables or by passing
values directly to ``load_config``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

_STORAGE_DIR = Path(__file__).resolve().parent / "storage"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass
class AutolinkerConfig:
    """Where notes and settings live, and how the server is exposed."""

    vault_dir: Path = field(default_factory=lambda: _STORAGE_DIR / "vault")
    settings_path: Path = field(default_factory=lambda: _STORAGE_DIR / "settings.json")
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"


def load_config(**overrides) -> AutolinkerConfig:
    """Build an AutolinkerConfig with env-var and keyword overrides.

    Resolution order (later wins):
      1. Dataclass defaults
      2. Environment variables (``AUTOLINKER_VAULT_DIR``, etc.)
      3. Explicit keyword arguments

    Supported env vars:
      - AUTOLINKER_VAULT_DIR / AUTOLINKER_SETTINGS_PATH
      - AUTOLINKER_HOST / AUTOLINKER_PORT
      - AUTOLINKER_LOG_LEVEL
    """
    cfg = AutolinkerConfig()

    vault_dir = os.getenv("AUTOLINKER_VAULT_DIR")
    if vault_dir:
        cfg.vault_dir = Path(vault_dir).expanduser()

    settings_path = os.getenv("AUTOLINKER_SETTINGS_PATH")
    if settings_path:
        cfg.settings_path = Path(settings_path).expanduser()

    host = os.getenv("AUTOLINKER_HOST")
    if host:
        cfg.host = host

    port = os.getenv("AUTOLINKER_PORT")
    if port:
        cfg.port = int(port)

    log_level = os.getenv("AUTOLINKER_LOG_LEVEL")
    if log_level:
        cfg.log_level = log_level.upper()

    for key, value in overrides.items():
        if hasattr(cfg, key):
            setattr(cfg, key, value)
        else:
            raise TypeError(f"Unknown config key: {key!r}")

    return cfg


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)
