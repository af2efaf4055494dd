"""Command line for quick, scripted edits and for starting the TUI.

Entry numbers are the ones printed in the listing, i.e. positions in the
sorted collection.
"""

import argparse
import logging
import os
import sys
import webbrowser
from pathlib import Path
from typing import AbstractSet, Iterable, List, Optional, Tuple

from . import __version__, config
from .log import setup_logging
from .records import ParseError, Record, Records, Status, Today
from .view import ViewMode, percent, summarize, summary_parts, visible_indices

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    Status.TODO: "31",
    Status.PENDING: "33",
    Status.REJECTED: "32",
    Status.DECLINED: "32",
}
DIM = "2"
BOLD = "1"


def color_enabled(no_color: bool) -> bool:
    """Colour only real terminals, and never when NO_COLOR is set."""
    return not no_color and sys.stdout.isatty() and os.environ.get("NO_COLOR") is None


def paint(text: str, code: str, enabled: bool) -> str:
    return f"\033[{code}m{text}\033[0m" if enabled else text


def format_record(index: int, record: Record, today: Today, color: bool = False) -> str:
    """One listing line; stale entries are dimmed."""
    stale = record.is_stale(today)
    status = paint(f"{record.status.value:^9}", STATUS_COLORS[record.status], color)
    name = paint(f"{record.name:<20}", BOLD, color)
    line = (
        f"{index:3} | {status} | {record.last_action_date:^10} | {name} | "
        f"{record.subname:<30} | {record.stage:<20} | {record.place}"
    )
    if stale:
        line = paint(line, DIM, color)
    return line


def select(
    records: Iterable[Record],
    today: Today,
    view: ViewMode = ViewMode.NORMAL,
    search: Optional[str] = None,
    changed: AbstractSet[int] = frozenset(),
) -> List[Tuple[int, Record]]:
    """Records the listing shows, with their entry numbers."""
    records = list(records)
    visible = visible_indices(records, view, search, changed, today)
    return [(index, records[index]) for index in visible]


def print_records(rows: List[Tuple[int, Record]], today: Today, color: bool) -> None:
    if not rows:
        print("No entries to show.")
        return
    for index, record in rows:
        print(format_record(index, record, today, color))


def format_summary(records: Records, today: Today) -> str:
    summary = summarize(records, today)
    parts = [
        f"{label}: {count}/{summary.total} ({percent(count, summary.total):.1f}%)"
        for label, count, _status in summary_parts(summary)
    ]
    parts.append(f"#: {summary.total}")
    parts.append(f"Edit: {summary.last_edit or '-'}")
    parts.append(f"Today: {summary.today}")
    return " | ".join(parts)


def open_file(path: Path) -> bool:
    """Open the records file with whatever the platform associates with it."""
    return webbrowser.open(path.resolve().as_uri())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="job-tracker", description="Keep track of job applications"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-f",
        "--file",
        type=Path,
        default=None,
        help="records file (.csv or .json); defaults to $JOB_TRACKER_FILE or "
        f"{config.DEFAULT_RECORDS_PATH}",
    )
    parser.add_argument("--no-color", action="store_true", help="plain output")

    actions = parser.add_mutually_exclusive_group()
    for status in Status:
        actions.add_argument(
            f"--{status.value.lower()}",
            type=int,
            metavar="N",
            help=f"set entry N to {status.value}",
        )
    actions.add_argument("--stage", nargs=2, metavar=("N", "TEXT"), help="set the stage of entry N")
    actions.add_argument(
        "--info", nargs=2, metavar=("N", "TEXT"), help="set the additional info of entry N"
    )
    actions.add_argument(
        "-a", "--add", nargs=3, metavar=("COMPANY", "JOB", "PLACE"), help="add a new entry"
    )
    actions.add_argument("-s", "--search", metavar="TEXT", help="show entries whose company contains TEXT")
    actions.add_argument("--all", action="store_true", help="show every entry")
    actions.add_argument("--summary", action="store_true", help="show status counts")
    actions.add_argument("-o", "--open", action="store_true", help="open the records file")
    actions.add_argument("-g", "--gui", action="store_true", help="start the interactive table")
    actions.add_argument("--init", action="store_true", help="create an empty records file")
    return parser


def _entry(parser: argparse.ArgumentParser, records: Records, value) -> int:
    try:
        index = int(value)
    except ValueError:
        parser.error(f"entry number must be an integer, got {value!r}")
    if not 0 <= index < len(records):
        parser.error(f"no entry {index}; there are {len(records)} entries")
    return index


def _save(records: Records, path: Path) -> bool:
    try:
        records.write(path)
    except OSError as e:
        logger.error("Could not write %s: %s", path, e)
        print(f"Error: could not write {path}, nothing was saved: {e}", file=sys.stderr)
        return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(console=not args.gui)

    path = args.file if args.file is not None else config.records_path()
    path = path.expanduser()
    color = color_enabled(args.no_color)
    today = Today.now()

    if args.init:
        if path.exists():
            print(f"{path} already exists.")
            return 0
        return 0 if _save(Records(path=path), path) else 1

    if args.open:
        if not path.exists():
            print(f"Error: {path} does not exist", file=sys.stderr)
            return 1
        if not open_file(path):
            print(f"Error: could not open {path}", file=sys.stderr)
            return 1
        return 0

    try:
        records = Records.load(path)
    except (OSError, ParseError) as e:
        logger.error("Could not load %s: %s", path, e)
        print(f"Error: could not load {path}: {e}", file=sys.stderr)
        return 1
    records.sort()

    if args.gui:
        from .state import Exit
        from .tui import run_tui

        if run_tui(records, today) == Exit.SAVE:
            return 0 if _save(records, path) else 1
        return 0

    if args.search is not None:
        print_records(select(records, today, search=args.search), today, color)
        return 0
    if args.all:
        print_records(select(records, today, view=ViewMode.ALL), today, color)
        return 0
    if args.summary:
        print(format_summary(records, today))
        return 0

    changed = set()
    for status in Status:
        value = getattr(args, status.value.lower())
        if value is not None:
            index = _entry(parser, records, value)
            records.get(index).set_status(status, today)
            changed.add(index)
    if args.stage is not None:
        index = _entry(parser, records, args.stage[0])
        records.get(index).set_stage(args.stage[1], today)
        changed.add(index)
    elif args.info is not None:
        index = _entry(parser, records, args.info[0])
        records.get(index).set_additional_info(args.info[1], today)
        changed.add(index)
    elif args.add is not None:
        company, job_name, place = args.add
        changed.add(records.add(Record.new(company, job_name, place, today)))

    if changed:
        if not _save(records, path):
            return 1
        logger.info("Updated entries %s in %s", sorted(changed), path)

    print_records(select(records, today, changed=changed), today, color)
    return 0


if __name__ == "__main__":
    sys.exit(main())
