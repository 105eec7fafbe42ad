"""Helpers for safe debug logging.

livewatch handles an application client secret and bearer tokens. Request
parameters, headers and token replies pass through :func:`redact_for_log`
before they reach DEBUG logs.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "client_secret",
        "access_token",
        "refresh_token",
        "token",
        "authorization",
    }
)

_BEARER_RE = re.compile(r"(?i)\b(bearer|oauth)\s+[^\s\"',]+")

_REDACTED = "<redacted>"


def _is_sensitive(key: Any) -> bool:
    return str(key).lower() in _SENSITIVE_KEYS


def _scrub_text(text: str, max_string: int) -> str:
    text = _BEARER_RE.sub(lambda m: f"{m.group(1)} {_REDACTED}", text)
    if len(text) > max_string:
        return f"{text[:max_string]}...<truncated>"
    return text


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of *value* with credentials masked.

    Mapping values under a sensitive key are replaced, as is the value of a
    ``(name, value)`` query pair whose name is sensitive. Bearer tokens
    embedded in free text (header values, error bodies) are masked in place,
    and long strings are truncated.
    """
    if isinstance(value, str):
        return _scrub_text(value, max_string)

    if isinstance(value, Mapping):
        return {
            str(key): _REDACTED if _is_sensitive(key) else redact_for_log(item, max_string=max_string)
            for key, item in value.items()
        }

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        if len(value) == 2 and isinstance(value[0], str) and _is_sensitive(value[0]):
            return [value[0], _REDACTED]
        return [redact_for_log(item, max_string=max_string) for item in value]

    if value is None or isinstance(value, (bool, int, float)):
        return value

    return repr(value)
