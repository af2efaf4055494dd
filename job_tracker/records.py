"""Job application records and the ordered collection that holds them."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d-%m-%Y"
STALE_AFTER = timedelta(days=14)


class TrackerError(Exception):
    """Base class for job tracker errors."""


class ParseError(TrackerError):
    """A persisted row or date could not be understood."""


class SelectionError(TrackerError, IndexError):
    """A visible-row position does not exist in the current view."""


class Status(Enum):
    """Application status, persisted by name."""

    TODO = "Todo"
    PENDING = "Pending"
    REJECTED = "Rejected"
    DECLINED = "Declined"

    def next(self) -> "Status":
        """Get the status that follows this one when cycling.

        Declined is only ever set by hand; cycling from it starts over.
        """
        return _NEXT_STATUS[self]

    @classmethod
    def parse(cls, value: str) -> "Status":
        """Parse a persisted status name."""
        try:
            return cls(value.strip())
        except ValueError:
            raise ParseError(f"Unknown status {value!r}") from None

    def __str__(self) -> str:
        return self.value


_NEXT_STATUS = {
    Status.TODO: Status.PENDING,
    Status.PENDING: Status.REJECTED,
    Status.REJECTED: Status.TODO,
    Status.DECLINED: Status.TODO,
}


def parse_date(value: str) -> date:
    """Parse a date in the canonical DD-MM-YYYY format."""
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ParseError(f"Malformed date {value!r}, expected DD-MM-YYYY") from None


@dataclass(frozen=True)
class Today:
    """The current date, constructed once and handed to whoever needs it."""

    day: date

    @classmethod
    def now(cls) -> "Today":
        return cls(date.today())

    @property
    def text(self) -> str:
        return self.day.strftime(DATE_FORMAT)


@dataclass
class Record:
    """One job application."""

    last_action_date: str
    name: str
    subname: str = ""
    stage: str = ""
    additional_info: str = ""
    status: Status = Status.TODO
    place: str = ""

    @classmethod
    def new(cls, company: str, job_name: str, place: str, today: Today) -> "Record":
        """Create a fresh Todo entry dated today."""
        return cls(
            last_action_date=today.text,
            name=company,
            subname=job_name,
            place=place,
        )

    @property
    def date(self) -> date:
        return parse_date(self.last_action_date)

    def _touch(self, today: Today) -> None:
        self.last_action_date = today.text

    def set_status(self, status: Status, today: Today) -> None:
        self.status = status
        self._touch(today)

    def set_stage(self, stage: str, today: Today) -> None:
        self.stage = stage
        self._touch(today)

    def set_additional_info(self, info: str, today: Today) -> None:
        self.additional_info = info
        self._touch(today)

    def advance_status(self, today: Today) -> None:
        """Move to the next status in the Todo -> Pending -> Rejected cycle."""
        self.set_status(self.status.next(), today)

    def is_stale(self, today: Today) -> bool:
        """Check if a non-Todo application has been untouched for two weeks."""
        return self.status != Status.TODO and today.day - self.date >= STALE_AFTER


def _sort_key(record: Record):
    # Todo first, newest first inside each group
    return (record.status != Status.TODO, -record.date.toordinal())


class Records:
    """Ordered collection of job applications."""

    def __init__(self, records: Optional[List[Record]] = None, path: Optional[Path] = None):
        self._records: List[Record] = list(records or [])
        self.path = path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Records":
        """Load records from a CSV or JSON file and validate every date."""
        from .storage import read_records

        path = Path(path)
        rows = read_records(path)
        for number, record in enumerate(rows, start=1):
            try:
                record.date
            except ParseError as e:
                raise ParseError(f"{path}: record {number}: {e}") from None
        logger.info("Loaded %d records from %s", len(rows), path)
        return cls(rows, path=path)

    def write(self, path: Union[str, Path, None] = None) -> None:
        """Write the whole collection, replacing the file."""
        from .storage import write_records

        target = Path(path) if path is not None else self.path
        if target is None:
            raise TrackerError("No path to write records to")
        write_records(target, self._records)
        logger.info("Wrote %d records to %s", len(self._records), target)

    def sort(self) -> None:
        """Apply the canonical order: all Todo first, then most recently touched."""
        self._records.sort(key=_sort_key)

    def get(self, index: int) -> Record:
        return self._records[index]

    def add(self, record: Record) -> int:
        """Append a record and return its index."""
        self._records.append(record)
        return len(self._records) - 1

    def replace(self, index: int, record: Record) -> None:
        self._records[index] = record

    def remove_at(self, index: int) -> Record:
        return self._records.pop(index)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]
