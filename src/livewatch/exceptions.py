"""Custom exception hierarchy for livewatch."""

from __future__ import annotations

from collections.abc import Mapping


class LiveWatchError(Exception):
    """Base exception for all livewatch errors."""


class ConfigError(LiveWatchError):
    """Invalid or missing configuration."""


class TransportError(LiveWatchError):
    """HTTP-level failure (network, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class AuthError(LiveWatchError):
    """App access token could not be obtained."""


class TokenRejectedError(AuthError):
    """Provider rejected the bearer token (HTTP 401).

    The provider client catches this internally to drop the cached
    credential and retry the request once with a fresh token.
    """


class ProviderApiError(LiveWatchError):
    """Provider API returned a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class TemplateError(LiveWatchError):
    """Template did not render to a non-empty structured payload."""


class DispatchError(LiveWatchError):
    """Webhook sink rejected the payload or was unreachable."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class CycleInterruptedError(LiveWatchError):
    """A reconciliation cycle failed part-way through the entity loop.

    ``partial_state`` holds the state of every entity processed before
    ``entity`` failed; the original error is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, entity: str, partial_state: Mapping[str, bool]) -> None:
        self.entity = entity
        self.partial_state = dict(partial_state)
        super().__init__(message)
