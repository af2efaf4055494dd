"""Interactive job application table built with urwid.

Every key goes through ``state.dispatch``; after each key (and on a short
timer) the whole screen is rebuilt from the session state. Urwid widgets
are only used for display, never to hold state of their own.
"""

import logging
from typing import Callable, List, Optional

import urwid

from . import config
from .records import Record, Records, Status, Today
from .state import (
    Add,
    AddField,
    AddForm,
    Exit,
    GuiState,
    Help,
    Info,
    Search,
    StageEdit,
    Table,
    dispatch,
)
from .view import percent, summarize, summary_parts

logger = logging.getLogger(__name__)

PALETTE = [
    ("header", "white", "dark blue", "bold"),
    ("footer", "white", "dark red"),
    ("body", "light gray", "black"),
    ("column_header", "white,bold", "black"),
    ("todo", "light red", "black"),
    ("pending", "yellow", "black"),
    ("done", "light green", "black"),
    ("stale", "dark gray", "black"),
    ("focus_todo", "light red", "dark gray", "bold"),
    ("focus_pending", "yellow", "dark gray", "bold"),
    ("focus_done", "light green", "dark gray", "bold"),
    ("focus_stale", "light gray", "dark gray", "bold"),
    ("summary_todo", "light red", "dark blue"),
    ("summary_pending", "yellow", "dark blue"),
    ("summary_done", "light green", "dark blue"),
    ("search", "light green", "black"),
    ("key", "light green", "black", "bold"),
    ("field", "light gray", "black"),
    ("field_focus", "light green", "black", "bold"),
    ("message", "yellow", "dark red", "bold"),
]

STATUS_ATTRS = {
    Status.TODO: "todo",
    Status.PENDING: "pending",
    Status.REJECTED: "done",
    Status.DECLINED: "done",
}

HELP_KEYS = [
    ("Esc", "exit without saving"),
    ("q", "exit with saving"),
    ("Up/Down", "move the selection"),
    ("PgUp/PgDn", "jump to the first/last row"),
    ("Enter", "cycle the status"),
    ("Del", "delete the entry"),
    ("v", "change what is visible"),
    ("s", "edit the stage"),
    ("a", "add an entry"),
    ("e", "edit the entry"),
    ("i", "show entry info"),
    ("/", "search by company"),
    ("?", "this help"),
]

FORM_TITLES = {
    AddField.COMPANY: "Company",
    AddField.JOB_NAME: "JobName",
    AddField.PLACE: "Place",
}


def row_attr(record: Record, today: Today) -> str:
    if record.status == Status.PENDING and record.is_stale(today):
        return "stale"
    return STATUS_ATTRS[record.status]


def _columns(cells: List[str]) -> urwid.Columns:
    index, status, date, name, subname, stage = cells
    return urwid.Columns(
        [
            (4, urwid.Text(index, align="right", wrap="clip")),
            (9, urwid.Text(status, wrap="clip")),
            (11, urwid.Text(date, wrap="clip")),
            ("weight", 3, urwid.Text(name, wrap="clip")),
            ("weight", 3, urwid.Text(subname, wrap="clip")),
            ("weight", 2, urwid.Text(stage, wrap="clip")),
        ],
        dividechars=1,
    )


def build_summary(state: GuiState) -> urwid.Widget:
    """Status counts, last edit and today's date."""
    summary = summarize(state.records, state.today)
    markup = [" "]
    for label, count, status in summary_parts(summary):
        attr = "summary_" + STATUS_ATTRS[status]
        markup.append(
            (attr, f"{label}: {count}/{summary.total} ({percent(count, summary.total):.1f}%)")
        )
        markup.append(" | ")
    markup.append(f"#: {summary.total} | Edit: {summary.last_edit or '-'}")
    markup.append(f" | Today: {summary.today} | View: {state.view.value}")
    return urwid.AttrMap(urwid.Text(markup, wrap="clip"), "header")


def build_table(state: GuiState) -> urwid.Widget:
    """The bordered table of visible records with the selection highlighted."""
    rows = []
    for position, index in enumerate(state.visible()):
        record = state.records.get(index)
        attr = row_attr(record, state.today)
        if position == state.selected:
            attr = "focus_" + attr
        cells = [
            str(index),
            str(record.status),
            record.last_action_date,
            record.name,
            record.subname,
            record.stage,
        ]
        rows.append(urwid.AttrMap(_columns(cells), attr))

    if not rows:
        if len(state.records) == 0:
            message = "No job applications yet. Press [a] to add one."
        else:
            message = "Nothing to show here. Press [v] to change the view."
        rows.append(urwid.Text(("body", message), align="center"))

    walker = urwid.SimpleFocusListWalker(rows)
    listbox = urwid.ListBox(walker)
    if state.selected is not None and state.selected < len(rows):
        listbox.focus_position = state.selected

    column_header = urwid.AttrMap(
        _columns(["#", "Status", "LastDate", "Name", "Subname", "Stage"]), "column_header"
    )
    body = urwid.Frame(body=listbox, header=column_header)
    return urwid.LineBox(urwid.AttrMap(body, "body"), title="Applications")


def build_footer(state: GuiState) -> urwid.Widget:
    """Search bar, key hints and the last status message."""
    if isinstance(state.focus, Search):
        search = urwid.AttrMap(urwid.Text(f" Search: {state.focus.text or ''}"), "search")
    else:
        search = urwid.AttrMap(urwid.Text(" [/] search"), "body")
    hints = urwid.AttrMap(
        urwid.Text(
            " [?]help [q]save+quit [Esc]quit [Enter]status [s]tage [a]dd [e]dit [i]nfo "
            "[v]iew [Del]ete",
            wrap="clip",
        ),
        "footer",
    )
    widgets = [search, hints]
    if state.message:
        widgets.append(urwid.AttrMap(urwid.Text(f" {state.message}"), "message"))
    return urwid.Pile(widgets)


def _dialog(
    content: List[urwid.Widget], title: str, bottom: urwid.Widget, width=60, height=12
) -> urwid.Widget:
    dialog = urwid.Filler(
        urwid.AttrMap(
            urwid.LineBox(urwid.Padding(urwid.Pile(content), left=2, right=2), title=title),
            "body",
        )
    )
    return urwid.Overlay(
        dialog, bottom, align="center", width=width, valign="middle", height=height
    )


def build_help(bottom: urwid.Widget) -> urwid.Widget:
    lines = [urwid.Text(["- ", ("key", key), f": {text}"]) for key, text in HELP_KEYS]
    lines.extend([urwid.Divider(), urwid.Text("Press Esc or q to close", align="center")])
    return _dialog(lines, "Help", bottom, width=50, height=len(HELP_KEYS) + 6)


def build_info(record: Record, today: Today, bottom: urwid.Widget) -> urwid.Widget:
    """Every field of one record."""
    details = [
        ("Name", record.name),
        ("Subname", record.subname),
        ("Date", record.last_action_date),
        ("Stage", record.stage),
        ("AddInfo", record.additional_info),
        ("Status", str(record.status)),
        ("Place", record.place),
    ]
    lines = [urwid.Text([("key", f"{label}: "), value]) for label, value in details]
    if record.is_stale(today):
        lines.append(urwid.Text(("stale", "Untouched for two weeks or more")))
    lines.extend([urwid.Divider(), urwid.Text("Press Esc or q to close", align="center")])
    return _dialog(lines, "Info", bottom, width=("relative", 60), height=len(lines) + 4)


def build_stage_edit(text: str, bottom: urwid.Widget) -> urwid.Widget:
    edit = urwid.Edit("", text)
    content = [
        urwid.AttrMap(edit, "field_focus"),
        urwid.Divider(),
        urwid.Text("Enter to save, Esc to cancel", align="center"),
    ]
    return _dialog(content, "Stage Info", bottom, width=50, height=7)


def build_add(form: AddForm) -> urwid.Widget:
    """The three-field add/edit form, drawn on its own."""
    boxes = []
    for which in AddField:
        attr = "field_focus" if which == form.focus else "field"
        edit = urwid.Edit("", form.value(which))
        boxes.append(urwid.AttrMap(urwid.LineBox(edit, title=FORM_TITLES[which]), attr))
    fields = urwid.Pile(boxes)
    fields.focus_position = list(AddField).index(form.focus)

    title = "Add Entry" if form.modify is None else "Edit Entry"
    content = [
        fields,
        urwid.Divider(),
        urwid.Text("Tab/Down next, Shift+Tab/Up back, Enter save, Esc cancel", align="center"),
    ]
    return _dialog(content, title, urwid.SolidFill(" "), width=64, height=17)


def build_screen(state: GuiState) -> urwid.Widget:
    """Compose the screen for whichever window has the focus."""
    focus = state.focus
    if isinstance(focus, Add):
        return build_add(focus.form)

    screen = urwid.Frame(
        body=build_table(state), header=build_summary(state), footer=build_footer(state)
    )
    if isinstance(focus, (Table, Search)):
        return screen
    elif isinstance(focus, Help):
        return build_help(screen)
    elif isinstance(focus, Info):
        return build_info(state.records.get(focus.target), state.today, screen)
    elif isinstance(focus, StageEdit):
        return build_stage_edit(focus.text, screen)
    raise TypeError(f"Unknown focus {focus!r}")


class TrackerWidget(urwid.WidgetWrap):
    """Top-level widget that hands every key to the session."""

    def __init__(self, state: GuiState, on_key: Callable[[str], None]):
        self.state = state
        self.on_key = on_key
        super().__init__(build_screen(state))

    def selectable(self) -> bool:
        return True

    def keypress(self, size, key):
        self.on_key(key)
        return None

    def refresh(self) -> None:
        self._w = build_screen(self.state)


class JobTrackerApp:
    """Interactive job application table."""

    def __init__(
        self,
        records: Records,
        today: Optional[Today] = None,
        persist: Optional[Callable[[], None]] = None,
    ):
        self.state = GuiState(records, today or Today.now(), persist)
        self.widget = TrackerWidget(self.state, self.handle_key)
        self.main_loop: Optional[urwid.MainLoop] = None
        self.exit: Optional[Exit] = None

    def handle_key(self, key: str) -> None:
        """Dispatch one key, then redraw or leave the main loop."""
        result = dispatch(self.state, key)
        if result is not None:
            self.exit = result
            raise urwid.ExitMainLoop()
        self.widget.refresh()

    def _tick(self, loop, _data=None) -> None:
        # Redraw at a steady pace, picking up a date change at midnight
        today = Today.now()
        if today != self.state.today:
            self.state.today = today
            self.state.clamp_selection()
        self.widget.refresh()
        loop.set_alarm_in(config.REFRESH_INTERVAL, self._tick)

    def run(self) -> Exit:
        """Start the application and report how it ended."""
        self.main_loop = urwid.MainLoop(self.widget, palette=PALETTE, handle_mouse=False)
        self.main_loop.set_alarm_in(config.REFRESH_INTERVAL, self._tick)

        try:
            self.main_loop.run()
        except KeyboardInterrupt:
            logger.info("Interrupted, leaving without saving")
            self.exit = Exit.DISCARD

        result = self.exit or Exit.DISCARD
        logger.info("Session ended: %s", result.value)
        return result


def run_tui(records: Records, today: Optional[Today] = None) -> Exit:
    """Run the interactive table; the caller saves if the result is SAVE."""
    records.sort()
    return JobTrackerApp(records, today).run()
