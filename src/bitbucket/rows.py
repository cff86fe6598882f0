"""Flatten pull requests and their contributors into export rows."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, Iterable, List

from .models import PullRequest


def parse_timestamp(raw: str) -> dt.datetime:
    """Parse a Bitbucket ISO-8601 timestamp into an aware UTC datetime."""
    if not raw:
        raise ValueError("empty timestamp")
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    value = dt.datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def format_timestamp(raw: str) -> str:
    """Render a timestamp as ``YYYY-MM-DD HH:MM:SS`` in UTC."""
    return parse_timestamp(raw).strftime("%Y-%m-%d %H:%M:%S")


def unique_names(names: Iterable[str]) -> List[str]:
    """Drop blanks and duplicates, keeping the first occurrence of each name."""
    return list(dict.fromkeys(name.strip() for name in names if name and name.strip()))


def join_contributors(author: str, contributors: Iterable[str]) -> str:
    """Comma-join the PR author and commit authors, author first, no duplicates."""
    return ", ".join(unique_names([author, *contributors]))


def build_row(pr: PullRequest, contributors: Iterable[str]) -> Dict[str, Any]:
    """Combine one pull request with its resolved contributors into an output row."""
    return {
        "ID": pr.id,
        "Title": pr.title,
        "State": pr.state,
        "Developer": pr.author,
        "Created_On": format_timestamp(pr.created_on),
        "Updated_On": format_timestamp(pr.updated_on),
        "Source_Branch": pr.source_branch,
        "Destination_Branch": pr.destination_branch,
        "PR_Link": pr.link,
        "Comment_Count": pr.comment_count,
        "Closed_By": pr.closed_by,
        "Contributors": join_contributors(pr.author, contributors),
    }


__all__ = [
    "parse_timestamp",
    "format_timestamp",
    "unique_names",
    "join_contributors",
    "build_row",
]
