"""Run report helpers for parse and search diagnostics."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any

DEFAULT_REPORT_DIR = "output/run_reports"


def report_path(run_id: str, kind: str, output_dir: str = DEFAULT_REPORT_DIR) -> str:
    """Return the path a ``kind`` report for ``run_id`` is written to."""
    return os.path.join(output_dir, f"{kind}-{run_id}.json")


def write_run_report(
    report: dict[str, Any],
    run_id: str,
    kind: str = "parse",
    output_dir: str = DEFAULT_REPORT_DIR,
) -> str:
    """Write ``report`` as JSON and return the path.

    ``run_id``, ``report_kind`` and a UTC timestamp are added unless already
    present. Values JSON cannot encode natively (datetimes, paths) are
    written as strings.
    """
    os.makedirs(output_dir, exist_ok=True)
    payload = dict(report)
    payload.setdefault("run_id", run_id)
    payload.setdefault("report_kind", kind)
    payload.setdefault("timestamp_utc", datetime.now(timezone.utc).isoformat())
    path = report_path(run_id, kind, output_dir)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True, default=str)
    return path
