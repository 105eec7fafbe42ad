"""Monitored channel model."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from livewatch.models._base import HelixModel


class MonitoredEntity(HelixModel):
    """A configured channel resolved through ``GET /helix/users``.

    Rebuilt every cycle and never persisted.
    """

    name: str = Field(validation_alias=AliasChoices("login", "name"))
    """Lowercase login, the key used in the persisted state."""
    provider_id: str = Field(validation_alias=AliasChoices("id", "provider_id"))
    """Helix user id."""
    display_name: str = ""
    avatar_url: str = Field(default="", validation_alias=AliasChoices("profile_image_url", "avatar_url"))

    @field_validator("name")
    @classmethod
    def _normalize_login(cls, value: str) -> str:
        login = value.strip().lower()
        if not login:
            raise ValueError("login must be non-empty")
        return login

    @field_validator("provider_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)
