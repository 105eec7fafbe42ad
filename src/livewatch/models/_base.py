"""Base model for Twitch Helix response items.

Every Helix item model inherits from :class:`HelixModel` which provides:

* frozen, ``extra="ignore"`` parsing so new upstream fields never break us
* ``None`` values stripped before validation so field defaults apply
* a ``raw`` dict that captures the original payload
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class HelixModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
    """Original API item."""

    @model_validator(mode="before")
    @classmethod
    def _strip_nulls(cls, values: Any) -> Any:
        """Drop ``None`` values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if value is not None}
        # Keep an explicit raw= from keyword construction.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
