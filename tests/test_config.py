from __future__ import annotations

from pathlib import Path

import pytest

from livewatch.config import WatchConfig, parse_streamers
from livewatch.exceptions import ConfigError

_REQUIRED = {
    "DISCORD_WEBHOOK_URL": "https://discord.example/api/webhooks/1/abc",
    "TWITCH_CLIENT_ID": "cid",
    "TWITCH_CLIENT_SECRET": "secret",
    "STREAMERS": "Alpha, beta,,ALPHA , gamma",
}

_ALL_KEYS = (
    *_REQUIRED,
    "MENTION_EVERYONE",
    "MENTION_ROLE_ID",
    "CHECK_INTERVAL_MS",
    "DATA_DIR",
    "TEMPLATE_PATH",
    "LOG_LEVEL",
    "HTTP_TIMEOUT",
    "PERSIST_PARTIAL_PROGRESS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ALL_KEYS:
        monkeypatch.delenv(key, raising=False)


def _set_required(monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in _REQUIRED.items():
        monkeypatch.setenv(key, value)


def test_parse_streamers_trims_lowercases_and_dedupes() -> None:
    assert parse_streamers(" Alpha, beta,,ALPHA , gamma") == ("alpha", "beta", "gamma")
    assert parse_streamers("") == ()
    assert parse_streamers(None) == ()


def test_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)

    config = WatchConfig.from_env().validate()

    assert config.streamers == ("alpha", "beta", "gamma")
    assert config.check_interval_ms == 90_000
    assert config.mention_everyone is False
    assert config.persist_partial_progress is True
    assert config.state_file == Path("./data") / "live_state.json"
    assert config.oauth_file == Path("./data") / "twitch_oauth.json"
    assert config.template_path == Path("./templates/message_template.json")


def test_from_env_reads_optional_values(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("CHECK_INTERVAL_MS", "30000")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("MENTION_ROLE_ID", "1234")
    monkeypatch.setenv("HTTP_TIMEOUT", "5.5")
    monkeypatch.setenv("PERSIST_PARTIAL_PROGRESS", "false")

    config = WatchConfig.from_env()

    assert config.check_interval_ms == 30_000
    assert config.state_file == tmp_path / "live_state.json"
    assert config.http_timeout == 5.5
    assert config.persist_partial_progress is False
    assert config.mention_prefix() == "<@&1234>"


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("CHECK_INTERVAL_MS", "30000")

    config = WatchConfig.from_env(check_interval_ms=1_000, streamers=["Zed"])

    assert config.check_interval_ms == 1_000
    assert config.streamers == ("zed",)


@pytest.mark.parametrize(
    ("everyone", "role", "expected"),
    [(True, "1234", "@everyone"), (False, "1234", "<@&1234>"), (False, "", "")],
)
def test_mention_prefix(everyone: bool, role: str, expected: str) -> None:
    assert WatchConfig(mention_everyone=everyone, mention_role_id=role).mention_prefix() == expected


def test_validate_lists_every_missing_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TWITCH_CLIENT_ID", "cid")

    with pytest.raises(ConfigError) as exc_info:
        WatchConfig.from_env().validate()

    message = str(exc_info.value)
    assert "DISCORD_WEBHOOK_URL" in message
    assert "TWITCH_CLIENT_SECRET" in message
    assert "STREAMERS" in message
    assert "TWITCH_CLIENT_ID" not in message


def test_blank_streamer_list_is_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("STREAMERS", " , ,")

    with pytest.raises(ConfigError, match="STREAMERS"):
        WatchConfig.from_env().validate()


def test_non_numeric_interval_is_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("CHECK_INTERVAL_MS", "soon")

    with pytest.raises(ConfigError, match="CHECK_INTERVAL_MS"):
        WatchConfig.from_env()


def test_non_positive_interval_rejected() -> None:
    config = WatchConfig(webhook_url="u", client_id="c", client_secret="s", streamers=("a",), check_interval_ms=0)

    with pytest.raises(ConfigError):
        config.validate()
