"""Batch import files (JSON or CSV) and generated fill-in templates."""

import csv
import json
import os

from dates import is_weekend
from errors import BatchFileError, EntryValidationError
from models import TimeEntry

DEFAULT_SERVICE_TYPE = "1435"


def _row_to_entry(row: dict, number: int) -> TimeEntry:
    service_type = row.get("serviceType") or row.get("leistungsart") or DEFAULT_SERVICE_TYPE
    try:
        hours = float(str(row.get("hours") or 0).replace(",", "."))
        return TimeEntry(
            project=str(row.get("project") or "").strip(),
            service_type=str(service_type).strip(),
            hours=hours,
            date=str(row.get("date") or "").strip(),
            description=str(row.get("text") or row.get("description") or "").strip(),
        )
    except (ValueError, EntryValidationError) as e:
        raise BatchFileError(f"Invalid entry in row {number}: {e}")


def _read_rows(path: str) -> list[dict]:
    ext = os.path.splitext(path)[1].lower()
    if ext == ".json":
        with open(path, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise BatchFileError(f"{path} is not valid JSON: line {e.lineno}, column {e.colno}: {e.msg}")
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise BatchFileError("Invalid file format. Expected a JSON array of objects", path=path)
        return data
    if ext == ".csv":
        with open(path, encoding="utf-8", newline="") as f:
            rows = [{(k or "").strip(): (v or "").strip() for k, v in r.items()} for r in csv.DictReader(f)]
        if not rows:
            raise BatchFileError("Invalid file format. CSV needs a header row and at least one entry", path=path)
        return rows
    raise BatchFileError("Invalid file format. Expected: .json or .csv", path=path)


def parse_batch_file(path: str, include_weekends: bool = False) -> tuple[list[TimeEntry], list[str]]:
    """Parse a batch file.

    Returns:
        (entries, skipped_weekend_dates). Weekend rows are dropped unless
        include_weekends is set.
    """
    if not os.path.exists(path):
        raise BatchFileError(f"File not found: {path}")

    entries = [_row_to_entry(row, i) for i, row in enumerate(_read_rows(path), start=1)]
    if include_weekends:
        return entries, []

    kept, skipped = [], []
    for entry in entries:
        if is_weekend(entry.date):
            skipped.append(entry.date)
        else:
            kept.append(entry)
    return kept, skipped


def write_batch_template(path: str, rows: list[dict]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(rows, f, indent=2, ensure_ascii=False)
        f.write("\n")
