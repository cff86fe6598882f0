"""Run both state fetches and write the combined rows to a single-sheet workbook."""

from __future__ import annotations

import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import requests

from src.bitbucket.collectors import fetch_pull_requests
from src.bitbucket.config import MAX_WORKERS, PR_STATES, SHEET_NAME, ExportSettings
from src.bitbucket.http_client import SESSION, set_auth_header
from src.bitbucket.models import OUTPUT_COLUMNS


def compute_cutoff(lookback_days: int, now: Optional[dt.datetime] = None) -> dt.datetime:
    """Snapshot the lookback boundary once; every state query shares it."""
    now = now or dt.datetime.now(dt.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt.timezone.utc)
    return now - dt.timedelta(days=lookback_days)


def collect_rows(settings: ExportSettings,
                 cutoff: dt.datetime,
                 session: Optional[requests.Session] = None) -> List[Dict[str, Any]]:
    """Fetch every state concurrently; return OPEN rows followed by MERGED rows."""
    with ThreadPoolExecutor(max_workers=len(PR_STATES)) as executor:
        futures = [
            executor.submit(
                fetch_pull_requests,
                state,
                cutoff,
                settings.workspace,
                settings.repo,
                include_contributors=settings.include_contributors,
                session=session,
                max_workers=MAX_WORKERS,
            )
            for state in PR_STATES
        ]
        results = [future.result() for future in futures]

    rows: List[Dict[str, Any]] = []
    for state, result in zip(PR_STATES, results):
        if not result.ok:
            print(f"[warn] {state} pull requests skipped: {result.error}")
        rows.extend(result.items)
    return rows


def rows_to_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)


def write_workbook(rows: List[Dict[str, Any]], path: Path, sheet_name: str = SHEET_NAME) -> Path:
    """Write rows into one sheet of a new .xlsx file, replacing any previous file.

    Every API string is stored as literal text; a leading ``=`` never becomes a formula.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = rows_to_frame(rows)
    with pd.ExcelWriter(
        path,
        engine="xlsxwriter",
        engine_kwargs={"options": {"strings_to_urls": False, "strings_to_formulas": False}},
    ) as writer:
        frame.to_excel(writer, index=False, sheet_name=sheet_name)
    return path


def export_pull_requests(settings: ExportSettings,
                         now: Optional[dt.datetime] = None,
                         session: Optional[requests.Session] = None) -> Optional[Path]:
    """Export recent open and merged pull requests; return the file path or None."""
    session = session or SESSION
    set_auth_header(settings.username, settings.app_password, session=session)
    cutoff = compute_cutoff(settings.lookback_days, now)

    print(f"\n=== {settings.workspace}/{settings.repo} ===")
    print(f"  fetching pull requests created since {cutoff:%Y-%m-%d %H:%M:%S} UTC...")
    rows = collect_rows(settings, cutoff, session=session)

    if not rows:
        print("[info] No PRs found. No Excel file generated.")
        return None

    path = write_workbook(rows, settings.output_path, settings.sheet_name)
    print(f"[info] Excel file successfully saved as {path} ({len(rows)} rows)")
    return path


__all__ = [
    "compute_cutoff",
    "collect_rows",
    "rows_to_frame",
    "write_workbook",
    "export_pull_requests",
]
