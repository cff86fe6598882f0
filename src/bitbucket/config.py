"""Central configuration for the Bitbucket pull-request export."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from src.secrets import load_local_secrets

USER_AGENT = "bitbucket-pr-export/1.0"
BASE_URL = os.getenv("BITBUCKET_API_URL", "https://api.bitbucket.org/2.0").rstrip("/")
PAGE_LEN = int(os.getenv("PAGE_LEN", "50"))
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "60"))
LOOKBACK_DAYS = int(os.getenv("LOOKBACK_DAYS", "90"))
MAX_WORKERS = max(1, int(os.getenv("MAX_WORKERS", "8")))
OUTPUT_DIR = os.getenv("OUTPUT_DIR", ".")
SHEET_NAME = "Pull Requests"
SHEET_NAME_MAX_LEN = 31
SHEET_NAME_INVALID_CHARS = set("[]:*?/\\")
PR_STATES = ("OPEN", "MERGED")

# env var -> key inside the "bitbucket" section of local_secrets.json
REQUIRED_SETTINGS: Dict[str, str] = {
    "BITBUCKET_USERNAME": "username",
    "BITBUCKET_APP_PASSWORD": "app_password",
    "BITBUCKET_WORKSPACE": "workspace",
    "BITBUCKET_REPO": "repo",
}


class ConfigurationError(RuntimeError):
    """Raised when a setting is absent or unusable; fatal before any network activity."""

    def __init__(self, missing: List[str], message: Optional[str] = None) -> None:
        self.missing = list(missing)
        super().__init__(message or f"Missing required settings: {', '.join(self.missing)}")


@dataclass(frozen=True)
class ExportSettings:
    """Resolved runtime settings for one export run."""

    username: str
    app_password: str
    workspace: str
    repo: str
    output_dir: Path
    lookback_days: int
    include_contributors: bool
    sheet_name: str

    @property
    def output_path(self) -> Path:
        return self.output_dir / f"bitbucket_prs_{self.repo}.xlsx"


def _non_negative_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {raw!r}")
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be zero or positive, got {value}")
    return value


def sheet_name_problem(name: str) -> Optional[str]:
    """Describe why Excel would reject ``name`` as a worksheet title, or None if it is valid."""
    if not name:
        return "sheet name must not be empty"
    if len(name) > SHEET_NAME_MAX_LEN:
        return f"sheet name {name!r} is longer than {SHEET_NAME_MAX_LEN} characters"
    bad = sorted(set(name) & SHEET_NAME_INVALID_CHARS)
    if bad:
        return f"sheet name {name!r} contains invalid characters {''.join(bad)!r}"
    if name.startswith("'") or name.endswith("'"):
        return f"sheet name {name!r} must not start or end with an apostrophe"
    return None


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the export entry point."""

    parser = argparse.ArgumentParser(
        description="Export open and merged Bitbucket pull requests to an Excel workbook.",
    )
    parser.add_argument("--workspace", default=None, help="overrides BITBUCKET_WORKSPACE")
    parser.add_argument("--repo", default=None, help="overrides BITBUCKET_REPO")
    parser.add_argument("--output-dir", default=OUTPUT_DIR)
    parser.add_argument("--lookback-days", type=_non_negative_int, default=LOOKBACK_DAYS)
    parser.add_argument("--sheet-name", default=SHEET_NAME)
    parser.add_argument(
        "--no-contributors",
        dest="include_contributors",
        action="store_false",
        help="skip per-PR commit author lookups",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    parser = build_arg_parser()
    return parser.parse_args(argv)


def _lookup(env_name: str,
            env: Mapping[str, str],
            secrets: Mapping[str, object],
            override: Optional[str] = None) -> str:
    if override:
        return override
    value = env.get(env_name) or secrets.get(REQUIRED_SETTINGS[env_name]) or ""
    return str(value).strip()


def resolve_settings(args: Optional[argparse.Namespace] = None,
                     env: Optional[Mapping[str, str]] = None,
                     secrets: Optional[Mapping[str, object]] = None) -> ExportSettings:
    """Merge CLI flags, environment and local secrets; raise ConfigurationError on gaps."""

    args = args or parse_args([])
    env = os.environ if env is None else env
    secrets = load_local_secrets() if secrets is None else secrets

    overrides = {
        "BITBUCKET_WORKSPACE": args.workspace,
        "BITBUCKET_REPO": args.repo,
    }
    values = {
        name: _lookup(name, env, secrets, overrides.get(name))
        for name in REQUIRED_SETTINGS
    }
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(missing)

    sheet_name = args.sheet_name or SHEET_NAME
    problem = sheet_name_problem(sheet_name)
    if problem:
        raise ConfigurationError(["--sheet-name"], problem)
    if args.lookback_days < 0:
        raise ConfigurationError(["--lookback-days"], "--lookback-days must be zero or positive")

    return ExportSettings(
        username=values["BITBUCKET_USERNAME"],
        app_password=values["BITBUCKET_APP_PASSWORD"],
        workspace=values["BITBUCKET_WORKSPACE"],
        repo=values["BITBUCKET_REPO"],
        output_dir=Path(args.output_dir),
        lookback_days=int(args.lookback_days),
        include_contributors=bool(args.include_contributors),
        sheet_name=sheet_name,
    )


__all__ = [
    "USER_AGENT",
    "BASE_URL",
    "PAGE_LEN",
    "REQUEST_TIMEOUT",
    "LOOKBACK_DAYS",
    "MAX_WORKERS",
    "OUTPUT_DIR",
    "SHEET_NAME",
    "SHEET_NAME_MAX_LEN",
    "PR_STATES",
    "REQUIRED_SETTINGS",
    "ConfigurationError",
    "ExportSettings",
    "build_arg_parser",
    "parse_args",
    "resolve_settings",
    "sheet_name_problem",
]
