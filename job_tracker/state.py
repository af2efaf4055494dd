"""Interactive session state and the key handling for each window.

Exactly one window has the focus at a time. Each focus variant is a small
dataclass carrying only the data that window edits; ``dispatch`` routes a
key to the handler of whichever variant is active.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Set, Union

from .records import Record, Records, SelectionError, Today, TrackerError
from .view import ViewMode, real_index_of, visible_indices

logger = logging.getLogger(__name__)


class Exit(Enum):
    """How an interactive session ended."""

    SAVE = "save"
    DISCARD = "discard"


class AddField(Enum):
    """Input fields of the add/edit form, in tab order."""

    COMPANY = "Company"
    JOB_NAME = "JobName"
    PLACE = "Place"

    def next(self) -> "AddField":
        fields = list(AddField)
        return fields[(fields.index(self) + 1) % len(fields)]

    def prev(self) -> "AddField":
        fields = list(AddField)
        return fields[(fields.index(self) - 1) % len(fields)]


@dataclass
class AddForm:
    """Text typed into the add/edit form.

    ``modify`` is the real index of the record being edited, or None when
    the form creates a new record.
    """

    company: str = ""
    job_name: str = ""
    place: str = ""
    focus: AddField = AddField.COMPANY
    modify: Optional[int] = None

    @classmethod
    def from_record(cls, record: Record, index: int) -> "AddForm":
        return cls(
            company=record.name,
            job_name=record.subname,
            place=record.place,
            modify=index,
        )

    def value(self, which: AddField) -> str:
        if which == AddField.COMPANY:
            return self.company
        if which == AddField.JOB_NAME:
            return self.job_name
        return self.place

    def _set(self, text: str) -> None:
        if self.focus == AddField.COMPANY:
            self.company = text
        elif self.focus == AddField.JOB_NAME:
            self.job_name = text
        else:
            self.place = text

    def append(self, char: str) -> None:
        self._set(self.value(self.focus) + char)

    def backspace(self) -> None:
        self._set(self.value(self.focus)[:-1])


@dataclass
class Table:
    pass


@dataclass
class StageEdit:
    text: str
    target: int


@dataclass
class Help:
    pass


@dataclass
class Info:
    target: int


@dataclass
class Search:
    text: Optional[str] = None


@dataclass
class Add:
    form: AddForm = field(default_factory=AddForm)


Focus = Union[Table, StageEdit, Help, Info, Search, Add]


def is_char(key) -> bool:
    """Check if an urwid key is a single printable character."""
    return isinstance(key, str) and len(key) == 1 and key.isprintable()


class GuiState:
    """Everything the interactive session knows about."""

    def __init__(
        self,
        records: Records,
        today: Today,
        persist: Optional[Callable[[], None]] = None,
    ):
        self.records = records
        self.today = today
        self.view = ViewMode.NORMAL
        self.changed: Set[int] = set()
        self.focus: Focus = Table()
        self.persist = persist if persist is not None else records.write
        self.message = ""
        self.selected: Optional[int] = None
        self.clamp_selection()

    @property
    def search_text(self) -> Optional[str]:
        if isinstance(self.focus, Search):
            return self.focus.text
        return None

    def visible(self) -> List[int]:
        """Real indices of the rows currently in the table."""
        return visible_indices(
            self.records, self.view, self.search_text, self.changed, self.today
        )

    def real_index(self) -> int:
        """Resolve the selected row to its index in the collection."""
        if self.selected is None:
            raise SelectionError("Nothing is selected")
        return real_index_of(
            self.selected, self.records, self.view, self.search_text, self.changed, self.today
        )

    def selected_record(self) -> Optional[Record]:
        if self.selected is None:
            return None
        return self.records.get(self.real_index())

    def clamp_selection(self) -> None:
        """Keep the selection inside the visible rows after the view changed."""
        count = len(self.visible())
        if count == 0:
            self.selected = None
        elif self.selected is None:
            self.selected = 0
        else:
            self.selected = max(0, min(self.selected, count - 1))

    def move_selection(self, delta: int) -> None:
        if self.selected is None:
            return
        self.selected += delta
        self.clamp_selection()

    def select_first(self) -> None:
        self.selected = 0
        self.clamp_selection()

    def select_last(self) -> None:
        self.selected = len(self.visible()) - 1
        self.clamp_selection()

    def select_real(self, index: int) -> None:
        """Put the selection on a record if it is visible."""
        visible = self.visible()
        if index in visible:
            self.selected = visible.index(index)
        else:
            self.clamp_selection()

    def forget(self, index: int) -> None:
        """Shift the changed set after the record at ``index`` was removed."""
        self.changed = {i if i < index else i - 1 for i in self.changed if i != index}

    def save(self) -> bool:
        """Persist now; failures end up in the status message."""
        try:
            self.persist()
        except (OSError, TrackerError) as e:
            logger.error("Saving records failed: %s", e)
            self.message = f"Save failed: {e}"
            return False
        self.message = "Saved"
        return True


def handle_table(state: GuiState, key: str) -> Optional[Exit]:
    """Handle input for the table."""
    if key == "esc":
        return Exit.DISCARD
    if key == "q":
        return Exit.SAVE

    if key == "up":
        state.move_selection(-1)
    elif key == "down":
        state.move_selection(1)
    elif key == "page up":
        state.select_first()
    elif key == "page down":
        state.select_last()
    elif key == "v":
        state.view = state.view.next()
        state.clamp_selection()
    elif key == "?":
        state.focus = Help()
    elif key == "/":
        state.focus = Search(state.search_text)
    elif key == "a":
        state.focus = Add(AddForm())
    elif key in ("enter", "delete", "s", "e", "i"):
        if state.selected is None:
            return None
        index = state.real_index()
        record = state.records.get(index)
        if key == "enter":
            record.advance_status(state.today)
            state.changed.add(index)
        elif key == "delete":
            state.records.remove_at(index)
            state.forget(index)
            state.clamp_selection()
            logger.info("Deleted %s - %s", record.name, record.subname)
        elif key == "s":
            # keep the row on screen however the stage edit ends
            state.changed.add(index)
            state.focus = StageEdit(record.stage, index)
        elif key == "e":
            state.focus = Add(AddForm.from_record(record, index))
        else:
            state.focus = Info(index)
    return None


def handle_stage_edit(state: GuiState, key: str) -> None:
    focus = state.focus
    if key == "esc":
        state.focus = Table()
    elif key == "enter":
        state.records.get(focus.target).set_stage(focus.text, state.today)
        state.focus = Table()
    elif key == "backspace":
        focus.text = focus.text[:-1]
    elif is_char(key):
        focus.text += key


def handle_overlay(state: GuiState, key: str) -> None:
    """Help and info windows only know how to close."""
    if key in ("esc", "q"):
        state.focus = Table()


def handle_search(state: GuiState, key: str) -> Optional[Exit]:
    """Handle search input and defer to the table for everything else."""
    focus = state.focus
    if key == "esc":
        state.focus = Table()
        state.clamp_selection()
    elif is_char(key):
        focus.text = (focus.text or "") + key
        state.clamp_selection()
    else:
        return handle_table(state, key)
    return None


def submit_form(state: GuiState, form: AddForm) -> None:
    """Turn the form into a record, then save straight away."""
    if form.modify is None:
        record = Record.new(form.company, form.job_name, form.place, state.today)
        index = state.records.add(record)
        logger.info("Added %s - %s", record.name, record.subname)
    else:
        index = form.modify
        old = state.records.get(index)
        record = replace(
            old,
            name=form.company,
            subname=form.job_name,
            place=form.place,
            last_action_date=state.today.text,
        )
        state.records.replace(index, record)
        state.changed.add(index)
        logger.info("Edited %s - %s", record.name, record.subname)
    state.focus = Table()
    state.select_real(index)
    state.save()


def handle_add(state: GuiState, key: str) -> None:
    form = state.focus.form
    if key == "esc":
        state.focus = Table()
    elif key in ("up", "shift tab"):
        form.focus = form.focus.prev()
    elif key in ("down", "tab"):
        form.focus = form.focus.next()
    elif key == "backspace":
        form.backspace()
    elif key == "enter":
        submit_form(state, form)
    elif is_char(key):
        form.append(key)


def dispatch(state: GuiState, key: str) -> Optional[Exit]:
    """Route one key to the focused window.

    Returns an Exit once the session should end. A selection that points
    outside the table is logged and the key dropped rather than ending the
    session with unsaved changes.
    """
    state.message = ""
    focus = state.focus
    try:
        if isinstance(focus, Table):
            return handle_table(state, key)
        elif isinstance(focus, StageEdit):
            handle_stage_edit(state, key)
        elif isinstance(focus, (Help, Info)):
            handle_overlay(state, key)
        elif isinstance(focus, Search):
            return handle_search(state, key)
        elif isinstance(focus, Add):
            handle_add(state, key)
        else:
            raise TypeError(f"Unknown focus {focus!r}")
    except SelectionError as e:
        logger.warning("Ignoring key %r: %s", key, e)
    return None
