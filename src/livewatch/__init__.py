"""livewatch - Twitch go-live notifications for Discord-style webhooks."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("livewatch")
except PackageNotFoundError:
    __version__ = "0+local"
from livewatch.app import LiveWatchApp
from livewatch.client import TwitchClient
from livewatch.config import WatchConfig
from livewatch.credentials import CredentialCache
from livewatch.dispatcher import NotificationDispatcher
from livewatch.engine import NotificationContext, ReconciliationEngine
from livewatch.exceptions import (
    AuthError,
    ConfigError,
    CycleInterruptedError,
    DispatchError,
    LiveWatchError,
    ProviderApiError,
    TemplateError,
    TokenRejectedError,
    TransportError,
)
from livewatch.models import Credential, LiveSnapshot, MonitoredEntity
from livewatch.scheduler import SchedulerLoop, SchedulerState
from livewatch.state.store import StateStore
from livewatch.template import TemplateRenderer, render, render_payload

__all__ = [
    "__version__",
    "AuthError",
    "ConfigError",
    "Credential",
    "CredentialCache",
    "CycleInterruptedError",
    "DispatchError",
    "LiveSnapshot",
    "LiveWatchApp",
    "LiveWatchError",
    "MonitoredEntity",
    "NotificationContext",
    "NotificationDispatcher",
    "ProviderApiError",
    "ReconciliationEngine",
    "SchedulerLoop",
    "SchedulerState",
    "StateStore",
    "TemplateError",
    "TemplateRenderer",
    "TokenRejectedError",
    "TransportError",
    "TwitchClient",
    "WatchConfig",
    "render",
    "render_payload",
]
