"""Reading and writing the records file.

The format follows the file suffix: ``.csv`` files carry a PascalCase header
row, anything else is JSON. JSON files are written as an object with a
``records`` list; a bare list of records is still read for older files.
"""

import csv
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .records import ParseError, Record, Status

CSV_FIELDS = {
    "last_action_date": "LastActionDate",
    "name": "Name",
    "subname": "Subname",
    "stage": "Stage",
    "additional_info": "AdditionalInfo",
    "status": "Status",
    "place": "Place",
}
REQUIRED_FIELDS = ("last_action_date", "name", "status")


def is_csv(path: Path) -> bool:
    return path.suffix.lower() == ".csv"


def record_from_dict(item: Dict[str, Any]) -> Record:
    """Build a record from a dict keyed by attribute name."""
    missing = [key for key in REQUIRED_FIELDS if item.get(key) is None]
    if missing:
        raise ParseError(f"Missing field(s): {', '.join(missing)}")
    return Record(
        last_action_date=str(item["last_action_date"]),
        name=str(item["name"]),
        subname=str(item.get("subname") or ""),
        stage=str(item.get("stage") or ""),
        additional_info=str(item.get("additional_info") or ""),
        status=Status.parse(str(item["status"])),
        place=str(item.get("place") or ""),
    )


def record_to_dict(record: Record) -> Dict[str, str]:
    return {
        "last_action_date": record.last_action_date,
        "name": record.name,
        "subname": record.subname,
        "stage": record.stage,
        "additional_info": record.additional_info,
        "status": record.status.value,
        "place": record.place,
    }


def _read_csv(path: Path) -> List[Record]:
    headers = {header: attr for attr, header in CSV_FIELDS.items()}
    records = []
    with open(path, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        try:
            for line, row in enumerate(reader, start=2):
                item = {headers[key]: value for key, value in row.items() if key in headers}
                try:
                    records.append(record_from_dict(item))
                except ParseError as e:
                    raise ParseError(f"{path}:{line}: {e}") from None
        except UnicodeDecodeError as e:
            raise ParseError(f"{path}: not valid UTF-8: {e}") from None
    return records


def _read_json(path: Path) -> List[Record]:
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except UnicodeDecodeError as e:
            raise ParseError(f"{path}: not valid UTF-8: {e}") from None
        except json.JSONDecodeError as e:
            raise ParseError(f"{path}: invalid JSON: {e}") from None

    if isinstance(data, dict) and "records" in data:
        items = data["records"]
    else:
        # Legacy format - just a list of records
        items = data
    if not isinstance(items, list):
        raise ParseError(f"{path}: expected a list of records")

    records = []
    for number, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ParseError(f"{path}: record {number} is not an object")
        try:
            records.append(record_from_dict(item))
        except ParseError as e:
            raise ParseError(f"{path}: record {number}: {e}") from None
    return records


def read_records(path: Path) -> List[Record]:
    """Read every record from ``path``.

    Raises OSError when the file cannot be read and ParseError when a row
    is malformed or the file is not UTF-8.
    """
    if is_csv(path):
        return _read_csv(path)
    return _read_json(path)


def write_records(path: Path, records: Iterable[Record]) -> None:
    """Replace ``path`` with the given records.

    The data goes to a sibling temporary file first, so a failed write
    leaves the previous file untouched.
    """
    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "w", newline="", encoding="utf-8") as f:
            if is_csv(path):
                writer = csv.DictWriter(f, fieldnames=list(CSV_FIELDS.values()))
                writer.writeheader()
                for record in records:
                    writer.writerow(
                        {CSV_FIELDS[key]: value for key, value in record_to_dict(record).items()}
                    )
            else:
                data = {"records": [record_to_dict(record) for record in records]}
                json.dump(data, f, indent=2)
        os.replace(tmp, path)
    except OSError:
        if tmp.exists():
            tmp.unlink()
        raise
