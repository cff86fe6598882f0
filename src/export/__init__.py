"""Bitbucket pull-request export to Excel."""

from .exporter import export_pull_requests
from .runner import main

__all__ = ["main", "export_pull_requests"]
