"""Process configuration for livewatch."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from livewatch._constants import OAUTH_FILENAME, STATE_FILENAME
from livewatch.exceptions import ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def parse_streamers(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated login list.

    Entries are trimmed and lowercased; blanks and duplicates are dropped
    while the first-seen order is kept.
    """
    if not value:
        return ()
    seen: dict[str, None] = {}
    for part in value.split(","):
        login = part.strip().lower()
        if login:
            seen.setdefault(login, None)
    return tuple(seen)


@dataclasses.dataclass(frozen=True)
class WatchConfig:
    """Watcher configuration.

    Parameters
    ----------
    webhook_url : str
        Discord-style webhook the rendered payload is POSTed to.
    client_id : str
        Twitch application client id.
    client_secret : str
        Twitch application client secret.
    streamers : tuple[str, ...]
        Lowercase channel logins, in notification order.
    mention_everyone : bool
        Prefix notifications with ``@everyone``.
    mention_role_id : str
        Role id mentioned when ``mention_everyone`` is off.
    check_interval_ms : int
        Delay between successful cycles.
    data_dir : Path
        Directory holding the credential and state files.
    template_path : Path
        JSON message template, re-read on every notification.
    log_level : str
        ``debug``, ``info``, ``warning`` or ``error``.
    http_timeout : float
        Total timeout in seconds for each HTTP request.
    persist_partial_progress : bool
        Persist the entities a failed cycle had already processed.
    """

    webhook_url: str = ""
    client_id: str = ""
    client_secret: str = ""
    streamers: tuple[str, ...] = ()
    mention_everyone: bool = False
    mention_role_id: str = ""
    check_interval_ms: int = 90_000
    data_dir: Path = Path("./data")
    template_path: Path = Path("./templates/message_template.json")
    log_level: str = "info"
    http_timeout: float = 12.0
    persist_partial_progress: bool = True

    @property
    def oauth_file(self) -> Path:
        return Path(self.data_dir) / OAUTH_FILENAME

    @property
    def state_file(self) -> Path:
        return Path(self.data_dir) / STATE_FILENAME

    def mention_prefix(self) -> str:
        """Mention text placed in front of every notification."""
        if self.mention_everyone:
            return "@everyone"
        if self.mention_role_id:
            return f"<@&{self.mention_role_id}>"
        return ""

    def validate(self) -> WatchConfig:
        """Raise :class:`ConfigError` when a required value is missing."""
        missing = [
            env_key
            for env_key, value in (
                ("DISCORD_WEBHOOK_URL", self.webhook_url),
                ("TWITCH_CLIENT_ID", self.client_id),
                ("TWITCH_CLIENT_SECRET", self.client_secret),
                ("STREAMERS", self.streamers),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required.")
        if self.check_interval_ms <= 0:
            raise ConfigError(f"CHECK_INTERVAL_MS must be positive, got {self.check_interval_ms}")
        if self.http_timeout <= 0:
            raise ConfigError(f"HTTP_TIMEOUT must be positive, got {self.http_timeout}")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> WatchConfig:
        """Create configuration from environment variables.

        Explicit keyword arguments override environment values. The
        result is not validated; call :meth:`validate` before use.

        Raises
        ------
        ConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "DISCORD_WEBHOOK_URL": "webhook_url",
            "TWITCH_CLIENT_ID": "client_id",
            "TWITCH_CLIENT_SECRET": "client_secret",
            "MENTION_ROLE_ID": "mention_role_id",
            "LOG_LEVEL": "log_level",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        config_kwargs["streamers"] = parse_streamers(env.get("STREAMERS"))
        config_kwargs["mention_everyone"] = _env_bool(env.get("MENTION_EVERYONE"), False)
        config_kwargs["persist_partial_progress"] = _env_bool(env.get("PERSIST_PARTIAL_PROGRESS"), True)

        for env_key, field_name in (("DATA_DIR", "data_dir"), ("TEMPLATE_PATH", "template_path")):
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = Path(val)

        interval_env = env.get("CHECK_INTERVAL_MS")
        if interval_env is not None and "check_interval_ms" not in overrides:
            try:
                config_kwargs["check_interval_ms"] = int(interval_env)
            except ValueError as exc:
                raise ConfigError(f"CHECK_INTERVAL_MS must be an integer, got {interval_env!r}") from exc

        timeout_env = env.get("HTTP_TIMEOUT")
        if timeout_env is not None and "http_timeout" not in overrides:
            try:
                config_kwargs["http_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise ConfigError(f"HTTP_TIMEOUT must be a number, got {timeout_env!r}") from exc

        streamers_override = overrides.pop("streamers", None)
        if isinstance(streamers_override, str):
            config_kwargs["streamers"] = parse_streamers(streamers_override)
        elif streamers_override is not None:
            config_kwargs["streamers"] = parse_streamers(",".join(streamers_override))

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
