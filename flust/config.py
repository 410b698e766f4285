"""
Runtime settings for the CLI and the HTTP service.

Values come from the environment; a ``.env`` file in the working directory
(or any parent) is loaded first so local overrides need no manual ``export``.

    FLUST_HOST          bind address of the HTTP service   (127.0.0.1)
    FLUST_PORT          port of the HTTP service            (3000)
    FLUST_LOG_LEVEL     logging level name                  (INFO)
    FLUST_CORS_ORIGINS  comma-separated allowed origins     (*)
    FLUST_STRICT        reject unknown plugin types at parse time (false)
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _as_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    strict: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``env`` (defaults to ``os.environ`` after loading ``.env``)."""
        if env is None:
            load_dotenv(find_dotenv(usecwd=True))
            env = os.environ

        origins = [o.strip() for o in env.get("FLUST_CORS_ORIGINS", "*").split(",") if o.strip()]
        try:
            port = int(env.get("FLUST_PORT", "3000"))
        except ValueError:
            raise ValueError(f"FLUST_PORT must be an integer, got {env.get('FLUST_PORT')!r}") from None

        return cls(
            host=env.get("FLUST_HOST", "127.0.0.1"),
            port=port,
            log_level=env.get("FLUST_LOG_LEVEL", "INFO").upper(),
            cors_origins=origins or ["*"],
            strict=_as_bool(env.get("FLUST_STRICT"), False),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


__all__ = ["LOG_FORMAT", "Settings", "configure_logging"]
