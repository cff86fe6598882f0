"""Entry point for the Bitbucket pull-request export."""

from __future__ import annotations

import sys
from typing import List, Optional

from src.bitbucket import config
from src.secrets import load_env_file

from .exporter import export_pull_requests


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; exits with status 1 only when configuration is missing or invalid."""
    load_env_file()
    args = config.parse_args(argv)
    try:
        settings = config.resolve_settings(args)
    except config.ConfigurationError as exc:
        print(f"[error] {exc}")
        sys.exit(1)

    export_pull_requests(settings)


if __name__ == "__main__":
    main(sys.argv[1:])
