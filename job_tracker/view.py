"""Which records the table shows, and where they sit in the collection.

The table only ever shows a filtered subset of the records. Positions in
that subset ("visible positions") are turned back into positions in the
collection ("real indices") by re-running the filter, never by caching a
mapping, so the answer stays right after adds, deletes and filter changes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Iterable, List, Optional

from .records import Record, SelectionError, Status, Today


class ViewMode(Enum):
    """How aggressively finished applications are hidden."""

    NORMAL = "Normal"
    OLD = "Old"
    ALL = "All"

    def next(self) -> "ViewMode":
        modes = list(ViewMode)
        return modes[(modes.index(self) + 1) % len(modes)]


def matches_search(record: Record, search_text: str) -> bool:
    """Case-sensitive substring match against the company name only."""
    return search_text in record.name


def is_visible(
    record: Record,
    real_index: int,
    view: ViewMode,
    search_text: Optional[str],
    changed: AbstractSet[int],
    today: Today,
) -> bool:
    """Decide whether a record belongs in the table."""
    if search_text:
        return matches_search(record, search_text)
    if record.status == Status.TODO or real_index in changed:
        return True
    if view == ViewMode.NORMAL:
        return record.status == Status.PENDING and not record.is_stale(today)
    if view == ViewMode.OLD:
        return record.status in (Status.TODO, Status.PENDING)
    return True


def visible_indices(
    records: Iterable[Record],
    view: ViewMode,
    search_text: Optional[str],
    changed: AbstractSet[int],
    today: Today,
) -> List[int]:
    """Real indices of the visible records, in collection order."""
    return [
        index
        for index, record in enumerate(records)
        if is_visible(record, index, view, search_text, changed, today)
    ]


def real_index_of(
    position: int,
    records: Iterable[Record],
    view: ViewMode,
    search_text: Optional[str],
    changed: AbstractSet[int],
    today: Today,
) -> int:
    """Resolve a visible position to the record's index in the collection.

    Raises SelectionError if the view has no row at ``position``.
    """
    if position >= 0:
        seen = 0
        for index, record in enumerate(records):
            if not is_visible(record, index, view, search_text, changed, today):
                continue
            if seen == position:
                return index
            seen += 1
    raise SelectionError(f"No visible row at position {position}")


@dataclass
class Summary:
    """Counts shown in the summary bar."""

    total: int
    todo: int
    pending: int
    pending_stale: int
    rejected: int
    declined: int
    last_edit: Optional[str]
    today: str

    @property
    def pending_fresh(self) -> int:
        return self.pending - self.pending_stale


def summarize(records: Iterable[Record], today: Today) -> Summary:
    """Collect status counts and the most recent action date."""
    records = list(records)
    pending = [r for r in records if r.status == Status.PENDING]
    latest = max(records, key=lambda r: r.date, default=None)
    return Summary(
        total=len(records),
        todo=sum(1 for r in records if r.status == Status.TODO),
        pending=len(pending),
        pending_stale=sum(1 for r in pending if r.is_stale(today)),
        rejected=sum(1 for r in records if r.status == Status.REJECTED),
        declined=sum(1 for r in records if r.status == Status.DECLINED),
        last_edit=latest.last_action_date if latest else None,
        today=today.text,
    )


def percent(count: int, total: int) -> float:
    return count / total * 100 if total else 0.0


def summary_parts(summary: Summary):
    """Label/count pairs in display order, with the status each one colours."""
    return [
        ("Todo", summary.todo, Status.TODO),
        ("Pnd", summary.pending_fresh, Status.PENDING),
        ("Pnd+", summary.pending, Status.PENDING),
        ("Rej", summary.rejected, Status.REJECTED),
        ("Decl", summary.declined, Status.DECLINED),
    ]
