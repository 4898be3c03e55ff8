from __future__ import annotations
import os
from typing import Optional


_CONTINUATIONS_VAR = 'SOFTMACS_CONTINUATIONS'
_RESOLVE_TIMEOUT_VAR = 'SOFTMACS_RESOLVE_TIMEOUT'
_STORE_STRIPES_VAR = 'SOFTMACS_STORE_STRIPES'

# Defaults
_DEFAULT_STORE_STRIPES = 64
_CONTINUATION_MODES = ('multi', 'one-shot')


def value_from_env(var: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.environ.get(var)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def get_continuation_mode() -> str:
    mode = value_from_env(_CONTINUATIONS_VAR, 'multi').lower()
    if mode not in _CONTINUATION_MODES:
        raise ValueError(f"{_CONTINUATIONS_VAR} must be one of {_CONTINUATION_MODES}, got {mode!r}")
    return mode


def one_shot_continuations() -> bool:
    return get_continuation_mode() == 'one-shot'


def get_resolve_timeout() -> Optional[float]:
    # unset means the host is willing to wait for the resolver indefinitely
    raw = value_from_env(_RESOLVE_TIMEOUT_VAR)
    if raw is None:
        return None
    timeout = float(raw)
    if timeout <= 0:
        raise ValueError(f"{_RESOLVE_TIMEOUT_VAR} must be positive, got {raw!r}")
    return timeout


def get_store_stripes() -> int:
    stripes = int(value_from_env(_STORE_STRIPES_VAR, str(_DEFAULT_STORE_STRIPES)))
    if stripes < 1:
        raise ValueError(f"{_STORE_STRIPES_VAR} must be at least 1, got {stripes}")
    return stripes
