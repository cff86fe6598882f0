"""Typed records for pull requests, fetch outcomes and the exported column layout."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")

UNKNOWN_BRANCH = "Unknown"
NOT_AVAILABLE = "N/A"

OUTPUT_COLUMNS = [
    "ID",
    "Title",
    "State",
    "Developer",
    "Created_On",
    "Updated_On",
    "Source_Branch",
    "Destination_Branch",
    "PR_Link",
    "Comment_Count",
    "Closed_By",
    "Contributors",
]


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one fetch unit: the items gathered, or an error and no items."""

    items: List[T] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, error: str) -> "FetchResult[T]":
        return cls(items=[], error=error)


def _nested(record: Dict[str, Any], *keys: str) -> Any:
    value: Any = record
    for key in keys:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


@dataclass(frozen=True)
class PullRequest:
    """A pull request as returned by the API, with optional fields already defaulted."""

    id: int
    title: str
    state: str
    author: str
    created_on: str
    updated_on: str
    source_branch: str = UNKNOWN_BRANCH
    destination_branch: str = UNKNOWN_BRANCH
    link: str = NOT_AVAILABLE
    comment_count: int = 0
    closed_by: str = NOT_AVAILABLE

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "PullRequest":
        """Build from a raw ``values`` entry; KeyError when a required field is absent."""
        author = _nested(raw, "author", "display_name")
        if not author:
            raise KeyError(f"pull request {raw.get('id')} has no author display_name")
        return cls(
            id=int(raw["id"]),
            title=raw["title"],
            state=raw["state"],
            author=author,
            created_on=raw["created_on"],
            updated_on=raw["updated_on"],
            source_branch=_nested(raw, "source", "branch", "name") or UNKNOWN_BRANCH,
            destination_branch=_nested(raw, "destination", "branch", "name") or UNKNOWN_BRANCH,
            link=_nested(raw, "links", "html", "href") or NOT_AVAILABLE,
            comment_count=int(raw.get("comment_count") or raw.get("comments_count") or 0),
            closed_by=_nested(raw, "closed_by", "display_name") or NOT_AVAILABLE,
        )


__all__ = [
    "UNKNOWN_BRANCH",
    "NOT_AVAILABLE",
    "OUTPUT_COLUMNS",
    "FetchResult",
    "PullRequest",
]
