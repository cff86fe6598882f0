"""Utilities for loading local (gitignored) Bitbucket credentials."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

DEFAULT_SECRETS_FILENAME = "local_secrets.json"
DEFAULT_ENV_FILENAME = ".env"


def _default_secrets_path() -> Path:
    root = Path(__file__).resolve().parents[1]
    return root / DEFAULT_SECRETS_FILENAME


def load_local_secrets(path: Optional[str | Path] = None) -> Dict[str, Any]:
    """Load the ``bitbucket`` section of a JSON secrets file; return {} when unavailable."""

    candidate = path or os.getenv("LOCAL_SECRETS_FILE") or _default_secrets_path()
    secrets_path = Path(candidate).expanduser()
    if not secrets_path.exists():
        return {}
    try:
        with secrets_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        print(f"[warn] ignoring unreadable secrets file {secrets_path}: {exc}")
        return {}
    if not isinstance(data, dict):
        return {}
    section = data.get("bitbucket")
    return section if isinstance(section, dict) else {}


def load_env_file(path: Optional[str | Path] = None) -> bool:
    """Populate os.environ from a .env file without overriding existing variables."""

    env_path = Path(path or DEFAULT_ENV_FILENAME).expanduser()
    if not env_path.exists():
        return False
    return load_dotenv(env_path, override=False)


__all__ = [
    "load_local_secrets",
    "load_env_file",
    "DEFAULT_SECRETS_FILENAME",
    "DEFAULT_ENV_FILENAME",
]
