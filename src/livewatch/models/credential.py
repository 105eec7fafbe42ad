"""App access token model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Credential(BaseModel):
    """Bearer token plus its absolute expiry.

    Parameters
    ----------
    access_token : str or None
        The app access token, ``None`` until the first grant.
    expires_at : int
        Expiry as epoch milliseconds.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str | None = None
    expires_at: int = 0

    def is_valid(self, now_ms: int, skew_ms: int) -> bool:
        """Whether the token may be used at *now_ms* with a *skew_ms* margin."""
        return bool(self.access_token) and now_ms < self.expires_at - skew_ms

    @classmethod
    def from_file_data(cls, data: Any) -> Credential:
        """Build from the persisted JSON, treating anything unexpected as empty."""
        if not isinstance(data, dict):
            return cls()
        token = data.get("access_token")
        expires_at = data.get("expires_at")
        if not isinstance(token, str) or not token:
            return cls()
        if not isinstance(expires_at, (int, float)) or isinstance(expires_at, bool):
            return cls()
        return cls(access_token=token, expires_at=int(expires_at))

    def to_file_data(self) -> dict[str, Any]:
        return {"access_token": self.access_token, "expires_at": self.expires_at}


EMPTY_CREDENTIAL = Credential(access_token=None, expires_at=0)
"""Credential that is never valid."""
