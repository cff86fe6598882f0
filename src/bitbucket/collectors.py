"""Pull-request and commit-author collection against the Bitbucket REST API."""

from __future__ import annotations

import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .config import BASE_URL, MAX_WORKERS, PAGE_LEN
from .http_client import log_http_error, paged_values
from .models import FetchResult, PullRequest
from .rows import build_row, parse_timestamp, unique_names


def pull_requests_url(workspace: str, repo: str) -> str:
    return f"{BASE_URL}/repositories/{quote(workspace, safe='')}/{quote(repo, safe='')}/pullrequests"


def pr_commits_url(workspace: str, repo: str, pr_id: int) -> str:
    return f"{pull_requests_url(workspace, repo)}/{pr_id}/commits"


def _report_failure(what: str, url: str, exc: Exception) -> str:
    if isinstance(exc, requests.RequestException):
        log_http_error(exc, url)
    else:
        print(f"[error] {what} -> {type(exc).__name__}: {exc}")
    return f"{type(exc).__name__}: {exc}"


def contributor_name(commit: Dict[str, Any]) -> Optional[str]:
    """Return the commit author's display name, else the name part of the raw author."""
    author = commit.get("author") or {}
    user = author.get("user") or {}
    display_name = (user.get("display_name") or "").strip()
    if display_name:
        return display_name
    raw = author.get("raw") or ""
    name = raw.split("<", 1)[0].strip()
    return name or None


def get_pr_contributors(workspace: str,
                        repo: str,
                        pr_id: int,
                        session: Optional[requests.Session] = None) -> FetchResult[str]:
    """Collect distinct commit author names for one pull request; never raises."""
    url = pr_commits_url(workspace, repo, pr_id)
    names: List[str] = []
    try:
        for commits in paged_values(url, params={"pagelen": PAGE_LEN}, session=session):
            for commit in commits:
                name = contributor_name(commit)
                if name:
                    names.append(name)
    except Exception as exc:
        error = _report_failure(f"commit authors for PR #{pr_id}", url, exc)
        return FetchResult.failed(error)
    return FetchResult(items=unique_names(names))


def fetch_pull_requests(state: str,
                        cutoff: dt.datetime,
                        workspace: str,
                        repo: str,
                        *,
                        include_contributors: bool = True,
                        session: Optional[requests.Session] = None,
                        max_workers: int = MAX_WORKERS) -> FetchResult[Dict[str, Any]]:
    """Return export rows for every ``state`` pull request created on or after ``cutoff``.

    Pages are walked in order. When ``include_contributors`` is set, commit authors for
    the pull requests retained from a page are looked up in parallel, and all of those
    lookups finish before the next page is requested. Any failure is logged and the
    whole state degrades to an empty result; nothing is retried.
    """
    url = pull_requests_url(workspace, repo)
    rows: List[Dict[str, Any]] = []
    try:
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            pages = paged_values(url, params={"state": state, "pagelen": PAGE_LEN}, session=session)
            for values in pages:
                prs = [PullRequest.from_api(raw) for raw in values]
                recent = [pr for pr in prs if parse_timestamp(pr.created_on) >= cutoff]
                if include_contributors:
                    lookups = list(executor.map(
                        lambda pr: get_pr_contributors(workspace, repo, pr.id, session=session),
                        recent,
                    ))
                else:
                    lookups = [FetchResult() for _ in recent]
                rows.extend(build_row(pr, found.items) for pr, found in zip(recent, lookups))
    except Exception as exc:
        error = _report_failure(f"fetching {state} pull requests", url, exc)
        return FetchResult.failed(error)

    print(f"[info] total {state} PRs since {cutoff:%Y-%m-%d}: {len(rows)}")
    return FetchResult(items=rows)


__all__ = [
    "pull_requests_url",
    "pr_commits_url",
    "contributor_name",
    "get_pr_contributors",
    "fetch_pull_requests",
]
