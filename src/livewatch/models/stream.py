"""Live stream snapshot model."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from livewatch._constants import THUMBNAIL_HEIGHT, THUMBNAIL_WIDTH
from livewatch.models._base import HelixModel


def sized_thumbnail_url(template_url: str, now_ms: int) -> str:
    """Fill the ``{width}``/``{height}`` placeholders and add a cache buster.

    The ``t`` query parameter changes on every call so link-preview caches
    never reuse an image from an earlier notification.
    """
    if not template_url:
        return ""
    url = template_url.replace("{width}", str(THUMBNAIL_WIDTH)).replace("{height}", str(THUMBNAIL_HEIGHT))
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}t={now_ms}"


class LiveSnapshot(HelixModel):
    """One currently-live channel from ``GET /helix/streams``.

    Offline channels are never represented; absence means offline.
    """

    provider_id: str = Field(validation_alias=AliasChoices("user_id", "provider_id"))
    login: str = Field(default="", validation_alias=AliasChoices("user_login", "login"))
    title: str = ""
    category_name: str = Field(default="", validation_alias=AliasChoices("game_name", "category_name"))
    started_at: str = ""
    thumbnail_url: str = ""

    @field_validator("provider_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)

    @field_validator("login")
    @classmethod
    def _lower_login(cls, value: str) -> str:
        return value.strip().lower()
