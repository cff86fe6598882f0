"""HTTP helpers for the Bitbucket Cloud REST API: auth, JSON GETs and cursor pagination."""

from __future__ import annotations

import base64
from typing import Any, Dict, Iterator, List, Optional

import requests
from requests.adapters import HTTPAdapter

from .config import MAX_WORKERS, PR_STATES, REQUEST_TIMEOUT, USER_AGENT

# one connection per concurrent state fetch plus one per contributor lookup thread
POOL_MAXSIZE = len(PR_STATES) * (MAX_WORKERS + 1)


def build_session() -> requests.Session:
    """Return a session whose connection pool fits every concurrent request of a run."""
    session = requests.Session()
    session.headers.update(
        {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
    )
    adapter = HTTPAdapter(pool_connections=len(PR_STATES), pool_maxsize=POOL_MAXSIZE)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


SESSION = build_session()


def build_auth_header(username: str, app_password: str) -> str:
    """Return a Basic authorization header value for the account credentials."""
    token = base64.b64encode(f"{username}:{app_password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def set_auth_header(username: str, app_password: str,
                    session: Optional[requests.Session] = None) -> None:
    """Attach the Basic authorization header to the shared (or given) session."""
    session = session or SESSION
    session.headers["Authorization"] = build_auth_header(username, app_password)


def error_detail(resp: Optional[requests.Response]) -> Optional[str]:
    """Extract Bitbucket's error message from a response body, if there is one."""
    if resp is None:
        return None
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "")[:300] or None
    if not isinstance(body, dict):
        return str(body)[:300]
    err = body.get("error")
    if isinstance(err, dict):
        return err.get("message") or err.get("detail") or str(err)
    return body.get("message") or (str(body)[:300] if body else None)


def log_http_error(exc: Exception, url: str) -> None:
    """Print a short, human-readable message for a failed request."""
    resp = getattr(exc, "response", None)
    detail = error_detail(resp) or str(exc)
    if resp is not None:
        print(f"[error] HTTP {resp.status_code} for {url}\n  -> {detail}")
    else:
        print(f"[error] request to {url} failed\n  -> {detail}")


def get_json(url: str,
             params: Optional[Dict[str, Any]] = None,
             session: Optional[requests.Session] = None) -> Dict[str, Any]:
    """Perform one GET and return the decoded JSON object; raises on any failure."""
    session = session or SESSION
    resp = session.get(url, params=params, timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()
    payload = resp.json()
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object from {url}, got {type(payload).__name__}")
    return payload


def paged_values(url: str,
                 params: Optional[Dict[str, Any]] = None,
                 session: Optional[requests.Session] = None) -> Iterator[List[Dict[str, Any]]]:
    """Yield the ``values`` list of each page, following ``next`` links until none remain.

    ``params`` apply to the first request only; Bitbucket's ``next`` links already
    carry the full query string. The next page is requested only once the caller
    resumes the generator, so work done per page finishes before the cursor advances.
    """
    next_url: Optional[str] = url
    page_params = params
    while next_url:
        payload = get_json(next_url, params=page_params, session=session)
        values = payload.get("values") or []
        if not isinstance(values, list):
            raise ValueError(f"unexpected 'values' payload from {next_url}")
        yield values
        next_url = payload.get("next") or None
        page_params = None


__all__ = [
    "SESSION",
    "POOL_MAXSIZE",
    "build_session",
    "build_auth_header",
    "set_auth_header",
    "error_detail",
    "log_http_error",
    "get_json",
    "paged_values",
]
