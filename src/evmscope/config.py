"""
Runtime settings for evmscope.

Values come from the process environment, optionally seeded from a `.env`
file in the working directory. CLI flags override them.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from evmscope.utils.exceptions import ConfigurationError

DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_METADATA_TIMEOUT = 10.0
DEFAULT_RPC_TIMEOUT = 30.0
DEFAULT_TRACE_TIMEOUT = "30s"
DEFAULT_TRACE_MAX_LINES = 300

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}", setting=key)
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {raw!r}", setting=key)
    return value


def _get_int(env: Mapping[str, str], key: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}", setting=key)
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {raw!r}", setting=key)
    return value


def _get_bool(env: Mapping[str, str], key: str, default: bool = False) -> bool:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one server or CLI session."""
    rpc_url: str = DEFAULT_RPC_URL
    api_url: Optional[str] = None
    debug: bool = False
    metadata_timeout: float = DEFAULT_METADATA_TIMEOUT
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    trace_timeout: str = DEFAULT_TRACE_TIMEOUT
    cache_capacity: Optional[int] = None  # None = unbounded
    trace_max_lines: int = DEFAULT_TRACE_MAX_LINES
    remote_signatures: bool = False
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        Recognized variables: RPC_URL, API_URL, DEBUG,
        EVMSCOPE_METADATA_TIMEOUT, EVMSCOPE_RPC_TIMEOUT, EVMSCOPE_TRACE_TIMEOUT,
        EVMSCOPE_CACHE_CAPACITY, EVMSCOPE_TRACE_MAX_LINES,
        EVMSCOPE_REMOTE_SIGNATURES, EVMSCOPE_LOG_FILE.
        """
        if env is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            env = os.environ

        return cls(
            rpc_url=env.get("RPC_URL") or DEFAULT_RPC_URL,
            api_url=env.get("API_URL") or None,
            debug=_get_bool(env, "DEBUG"),
            metadata_timeout=_get_float(env, "EVMSCOPE_METADATA_TIMEOUT", DEFAULT_METADATA_TIMEOUT),
            rpc_timeout=_get_float(env, "EVMSCOPE_RPC_TIMEOUT", DEFAULT_RPC_TIMEOUT),
            trace_timeout=env.get("EVMSCOPE_TRACE_TIMEOUT") or DEFAULT_TRACE_TIMEOUT,
            cache_capacity=_get_int(env, "EVMSCOPE_CACHE_CAPACITY", None),
            trace_max_lines=_get_int(env, "EVMSCOPE_TRACE_MAX_LINES", DEFAULT_TRACE_MAX_LINES),
            remote_signatures=_get_bool(env, "EVMSCOPE_REMOTE_SIGNATURES"),
            log_file=env.get("EVMSCOPE_LOG_FILE") or None,
        )

    def override(self, **changes) -> "Settings":
        """Return a copy with the non-None keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
