"""Data models for Twitch Helix responses and persisted credentials."""

from livewatch.models._base import HelixModel
from livewatch.models.credential import EMPTY_CREDENTIAL, Credential
from livewatch.models.entity import MonitoredEntity
from livewatch.models.stream import LiveSnapshot, sized_thumbnail_url

__all__ = [
    "Credential",
    "EMPTY_CREDENTIAL",
    "HelixModel",
    "LiveSnapshot",
    "MonitoredEntity",
    "sized_thumbnail_url",
]
