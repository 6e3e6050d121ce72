"""Environment and YAML configuration parsing."""

import pytest

from config.config_loader import ConfigLoader
from config.settings import (
    DEFAULT_JOIN_URL,
    BotSettings,
    ScheduleSettings,
    parse_id_list,
    parse_snowflake,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), ("", None), ("  ", None), ("123", 123), (" 456 ", 456), ("abc", None), (789, 789)],
)
def test_parse_snowflake(raw, expected) -> None:
    assert parse_snowflake(raw) == expected


def test_parse_id_list_skips_junk_and_duplicates() -> None:
    assert parse_id_list("1, 2,,x, 2 ,3") == (1, 2, 3)
    assert parse_id_list(None) == ()
    assert parse_id_list([4, "5"]) == (4, 5)


def test_from_env_full() -> None:
    env = {
        "DISCORD_TOKEN": " tok ",
        "GUILD_ID": "123",
        "DISCORD_WEBHOOK_URL": "https://discord.com/api/webhooks/1/abc",
        "DAILY_CHANNEL_ID": "55",
        "MEMBER_ROLE_ID": "66",
        "RESTRICTED_CHANNEL_IDS": "77,88",
        "SUPER_ADMIN_IDS": "1000,2000",
        "BOT_ENV": "Production",
        "NASA_API_KEY": "KEY",
    }
    config = {
        "schedule": {"hour": 21, "minute": 15, "timezone": "Asia/Kolkata"},
        "links": {"join_url": "https://example.org/join"},
        "directory": {"path": "var/dir.db"},
    }

    settings = BotSettings.from_env(env, config)

    assert settings.discord_token == "tok"
    assert settings.interactive is True
    assert settings.is_production is True
    assert settings.guild_id == 123
    assert settings.daily_channel_id == 55
    assert settings.member_role_id == 66
    assert settings.restricted_channel_ids == (77, 88)
    assert settings.super_admin_ids == frozenset({1000, 2000})
    assert settings.nasa_api_key == "KEY"
    assert settings.join_url == "https://example.org/join"
    assert settings.directory_path == "var/dir.db"
    assert (settings.schedule.hour, settings.schedule.minute) == (21, 15)


def test_from_env_empty_is_webhook_less_and_non_interactive() -> None:
    settings = BotSettings.from_env({}, {})
    assert settings.interactive is False
    assert settings.is_production is False
    assert settings.webhook_url is None
    assert settings.nasa_api_key == "DEMO_KEY"
    assert settings.join_url == DEFAULT_JOIN_URL
    assert settings.super_admin_ids == frozenset()


def test_directory_path_env_overrides_config() -> None:
    settings = BotSettings.from_env({"DIRECTORY_PATH": "/tmp/x.db"}, {"directory": {"path": "y.db"}})
    assert settings.directory_path == "/tmp/x.db"


def test_invalid_schedule_falls_back_to_defaults() -> None:
    schedule = ScheduleSettings.from_config({"hour": 30, "minute": -1})
    assert (schedule.hour, schedule.minute) == (8, 0)
    assert schedule.min_interval_minutes == 5.0


@pytest.fixture
def fresh_loader():
    ConfigLoader.reset()
    yield ConfigLoader
    ConfigLoader.reset()


def test_config_loader_reads_yaml(fresh_loader, tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("logging:\n  level: verbose\nschedule:\n  hour: 21\n", encoding="utf-8")

    config = fresh_loader.load_config(str(path))

    assert config["schedule"]["hour"] == 21
    assert config["logging"]["level"] == "INFO"
    assert fresh_loader.get_config_status()["config_status"] == "ok"


def test_config_loader_missing_file_is_degraded(fresh_loader, tmp_path) -> None:
    config = fresh_loader.load_config(str(tmp_path / "absent.yaml"))

    assert config == {}
    status = fresh_loader.get_config_status()
    assert status["config_status"] == "degraded"
    assert status["config_loaded"] is False
