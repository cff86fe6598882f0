"""Tests for src.secrets covering the JSON secrets file and .env loading.

Run with coverage:
    pytest tests/test_secrets.py --maxfail=1 -v --cov=src.secrets --cov-report=term-missing
"""

import json
import os

from src import secrets


def test_load_local_secrets_reads_bitbucket_section(tmp_path):
    path = tmp_path / "local_secrets.json"
    path.write_text(json.dumps({"bitbucket": {"username": "u", "repo": "r"}}), encoding="utf-8")
    assert secrets.load_local_secrets(path) == {"username": "u", "repo": "r"}


def test_load_local_secrets_missing_file(tmp_path):
    assert secrets.load_local_secrets(tmp_path / "absent.json") == {}


def test_load_local_secrets_ignores_bad_content(tmp_path, capsys):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert secrets.load_local_secrets(broken) == {}
    assert "[warn]" in capsys.readouterr().out

    wrong_shape = tmp_path / "list.json"
    wrong_shape.write_text("[1, 2]", encoding="utf-8")
    assert secrets.load_local_secrets(wrong_shape) == {}


def test_load_local_secrets_honors_env_path(tmp_path, monkeypatch):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"bitbucket": {"workspace": "ws"}}), encoding="utf-8")
    monkeypatch.setenv("LOCAL_SECRETS_FILE", str(path))
    assert secrets.load_local_secrets() == {"workspace": "ws"}


def test_load_env_file_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("BITBUCKET_REPO=from-file\nBITBUCKET_WORKSPACE=ws-file\n", encoding="utf-8")
    monkeypatch.setenv("BITBUCKET_REPO", "from-env")
    monkeypatch.delenv("BITBUCKET_WORKSPACE", raising=False)
    try:
        assert secrets.load_env_file(env_file) is True
        assert os.environ["BITBUCKET_REPO"] == "from-env"
        assert os.environ["BITBUCKET_WORKSPACE"] == "ws-file"
    finally:
        os.environ.pop("BITBUCKET_WORKSPACE", None)


def test_load_env_file_missing(tmp_path):
    assert secrets.load_env_file(tmp_path / ".env") is False
