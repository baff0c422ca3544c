"""Configuration helpers for the Ventry backend."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Mapping, Tuple

from dotenv import load_dotenv

ENV_PREFIX = "VENTRY_"

DEFAULT_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4000
DEFAULT_MAX_GENERATIONS = 2
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_ALLOWED_ORIGINS: Tuple[str, ...] = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3001",
)

load_dotenv(override=False)


@dataclass(frozen=True)
class Settings:
    """Settings container for the OpenAI client and the API surface.

    Without an OpenAI key the planner drafts plans heuristically instead of
    calling the model.
    """

    openai_api_key: str | None = None
    openai_model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    # Plans a single session may generate; further requests are rejected.
    max_generations: int = DEFAULT_MAX_GENERATIONS
    allowed_origins: Tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def has_llm(self) -> bool:
        """True when an OpenAI key is configured."""

        return bool(self.openai_api_key)


def _env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _split_origins(raw: str | None) -> Tuple[str, ...]:
    """Return allowed origins from a comma separated override."""

    if not raw:
        return DEFAULT_ALLOWED_ORIGINS
    origins: List[str] = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return tuple(origins) or DEFAULT_ALLOWED_ORIGINS


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read environment variables and return cached settings."""

    environ = os.environ
    return Settings(
        openai_api_key=environ.get("OPENAI_API_KEY") or None,
        openai_model=environ.get(f"{ENV_PREFIX}OPENAI_MODEL") or DEFAULT_MODEL,
        temperature=_env_float(environ, f"{ENV_PREFIX}OPENAI_TEMPERATURE", DEFAULT_TEMPERATURE),
        max_tokens=_env_int(environ, f"{ENV_PREFIX}OPENAI_MAX_TOKENS", DEFAULT_MAX_TOKENS),
        max_generations=_env_int(environ, f"{ENV_PREFIX}MAX_GENERATIONS", DEFAULT_MAX_GENERATIONS),
        allowed_origins=_split_origins(environ.get(f"{ENV_PREFIX}ALLOWED_ORIGINS")),
        log_level=(environ.get(f"{ENV_PREFIX}LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
