"""Persisted ``login -> was live`` mapping.

This is the only component allowed to write the state file.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from livewatch._storage import JsonBackend

_logger = logging.getLogger(__name__)

LiveState = dict[str, bool]


def _coerce_state(data: Any) -> LiveState:
    """Keep only ``str -> bool`` entries, lowercasing keys."""
    if not isinstance(data, dict):
        if data is not None:
            _logger.warning("State file does not hold an object; starting empty")
        return {}
    state: LiveState = {}
    for key, value in data.items():
        if isinstance(key, str) and isinstance(value, bool):
            state[key.strip().lower()] = value
        else:
            _logger.debug("Dropping invalid state entry %r=%r", key, value)
    return state


class StateStore:
    """Single-writer store for :data:`LiveState`.

    ``load`` never fails: a missing or corrupt file yields an empty state.
    ``save`` replaces the backing file atomically (see ``JsonFile``).
    """

    def __init__(self, backend: JsonBackend) -> None:
        self._backend = backend
        self._state: LiveState = {}

    @property
    def state(self) -> LiveState:
        """Copy of the last loaded or saved state."""
        return dict(self._state)

    def load(self) -> LiveState:
        self._state = _coerce_state(self._backend.read())
        _logger.debug("Loaded live state for %d channels", len(self._state))
        return dict(self._state)

    def save(self, state: Mapping[str, bool]) -> None:
        normalized = {key.lower(): bool(value) for key, value in state.items()}
        self._backend.write(normalized)
        self._state = normalized

    def update(self, partial: Mapping[str, bool]) -> LiveState:
        """Merge *partial* into the current state and save the result."""
        merged = dict(self._state)
        merged.update({key.lower(): bool(value) for key, value in partial.items()})
        self.save(merged)
        return dict(merged)
