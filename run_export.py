"""Convenience shim to run the Bitbucket pull-request export."""

from __future__ import annotations

import sys

from src.export.runner import main as export_main


if __name__ == "__main__":
    export_main(sys.argv[1:])
