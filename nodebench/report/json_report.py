from __future__ import annotations
import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from .report import Report

FILE_PREFIX = "nodebench"


def format_json(report: Report) -> str:
    return json.dumps(report.to_dict(), indent=2)


def report_filename(now: Optional[datetime] = None) -> str:
    """``nodebench-YYYY-MM-DD_HH-MM-SS.json`` for the given (or current) time."""
    return f"{FILE_PREFIX}-{(now or datetime.now()).strftime('%Y-%m-%d_%H-%M-%S')}.json"


def save_json(report: Report, output_dir: str | Path, now: Optional[datetime] = None) -> Path:
    """Write the report under ``output_dir`` (created if needed) and return the file path."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / report_filename(now)
    with open(path, "w", encoding="utf-8") as f:
        f.write(format_json(report))
    return path
