"""Tests for src.bitbucket.config ensuring env overrides, CLI flags and required settings.

Run with coverage to validate configuration handling:
    pytest tests/test_config.py --maxfail=1 -v --cov=src.bitbucket.config --cov-report=term-missing
"""

from importlib import reload
from pathlib import Path

import pytest

import src.bitbucket.config as config

ENV = {
    "BITBUCKET_USERNAME": "user",
    "BITBUCKET_APP_PASSWORD": "secret",
    "BITBUCKET_WORKSPACE": "acme",
    "BITBUCKET_REPO": "widgets",
}


def test_config_defaults_are_present():
    assert config.PAGE_LEN == 50
    assert config.LOOKBACK_DAYS == 90
    assert config.PR_STATES == ("OPEN", "MERGED")
    assert config.SHEET_NAME == "Pull Requests"
    assert config.BASE_URL.startswith("https://")


def test_env_override_for_page_len(monkeypatch):
    monkeypatch.setenv("PAGE_LEN", "25")
    reloaded = reload(config)
    try:
        assert reloaded.PAGE_LEN == 25
    finally:
        monkeypatch.delenv("PAGE_LEN", raising=False)
        reload(config)


def test_resolve_settings_from_env():
    settings = config.resolve_settings(config.parse_args([]), env=ENV, secrets={})
    assert settings.username == "user"
    assert settings.app_password == "secret"
    assert settings.workspace == "acme"
    assert settings.repo == "widgets"
    assert settings.lookback_days == config.LOOKBACK_DAYS
    assert settings.include_contributors is True
    assert settings.sheet_name == "Pull Requests"
    assert settings.output_path == Path(config.OUTPUT_DIR) / "bitbucket_prs_widgets.xlsx"


def test_cli_flags_override_env():
    args = config.parse_args([
        "--workspace", "other",
        "--repo", "gadgets",
        "--output-dir", "./out",
        "--lookback-days", "30",
        "--sheet-name", "PRs",
        "--no-contributors",
    ])
    settings = config.resolve_settings(args, env=ENV, secrets={})
    assert settings.workspace == "other"
    assert settings.repo == "gadgets"
    assert settings.output_path == Path("./out/bitbucket_prs_gadgets.xlsx")
    assert settings.lookback_days == 30
    assert settings.sheet_name == "PRs"
    assert settings.include_contributors is False


def test_local_secrets_fill_gaps():
    secrets = {"username": "file-user", "app_password": "file-pw", "workspace": "ws", "repo": "r"}
    settings = config.resolve_settings(config.parse_args([]), env={"BITBUCKET_REPO": "env-repo"}, secrets=secrets)
    assert settings.username == "file-user"
    assert settings.repo == "env-repo"


def test_missing_settings_raise_configuration_error():
    env = {"BITBUCKET_USERNAME": "user", "BITBUCKET_WORKSPACE": "  "}
    with pytest.raises(config.ConfigurationError) as excinfo:
        config.resolve_settings(config.parse_args([]), env=env, secrets={})
    assert excinfo.value.missing == ["BITBUCKET_APP_PASSWORD", "BITBUCKET_WORKSPACE", "BITBUCKET_REPO"]
    assert "BITBUCKET_REPO" in str(excinfo.value)


@pytest.mark.parametrize("name", [
    "Pull Requests: last 90 days [team]",
    "x" * 32,
    "PRs/2024",
    "what?",
    "'quoted'",
])
def test_invalid_sheet_name_is_a_configuration_error(name):
    args = config.parse_args(["--sheet-name", name])
    with pytest.raises(config.ConfigurationError) as excinfo:
        config.resolve_settings(args, env=ENV, secrets={})
    assert excinfo.value.missing == ["--sheet-name"]


def test_sheet_name_at_excel_limit_is_accepted():
    args = config.parse_args(["--sheet-name", "x" * 31])
    assert config.resolve_settings(args, env=ENV, secrets={}).sheet_name == "x" * 31


def test_negative_lookback_days_rejected_by_parser(capsys):
    with pytest.raises(SystemExit) as excinfo:
        config.parse_args(["--lookback-days", "-5"])
    assert excinfo.value.code == 2
    assert "must be zero or positive" in capsys.readouterr().err


def test_negative_lookback_from_env_default_is_a_configuration_error():
    args = config.parse_args([])
    args.lookback_days = -1
    with pytest.raises(config.ConfigurationError):
        config.resolve_settings(args, env=ENV, secrets={})
