from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import TODAY
from job_tracker import cli
from job_tracker.records import Records, Status, Today
from job_tracker.state import Exit


@pytest.fixture(autouse=True)
def _fixed_today(monkeypatch) -> None:
    monkeypatch.setattr(Today, "now", classmethod(lambda cls: TODAY))


@pytest.fixture
def records_file(tmp_path: Path, mixed_records) -> Path:
    path = tmp_path / "jobs.json"
    mixed_records.write(path)
    return path


def run(path: Path, *args: str) -> int:
    return cli.main(["--file", str(path), *args])


def load_names(path: Path):
    return [r.name for r in Records.load(path)]


def test_default_listing_hides_stale_and_finished(records_file, capsys) -> None:
    assert run(records_file) == 0
    out = capsys.readouterr().out
    assert "Acme" in out
    assert "Initech" in out
    assert "Umbrella" not in out
    assert "Hooli" not in out
    assert "\033[" not in out


def test_all_listing_uses_sorted_order(records_file, capsys) -> None:
    assert run(records_file, "--all") == 0
    lines = capsys.readouterr().out.splitlines()
    names = [line.split("|")[3].strip() for line in lines]
    assert names == ["Acme", "Globex", "Initech", "Hooli", "Umbrella", "Vandelay"]
    assert lines[0].startswith("  0 |")


def test_set_status_writes_file(records_file, capsys) -> None:
    # entry 3 is Hooli in sorted order
    assert run(records_file, "--pending", "3") == 0
    record = next(r for r in Records.load(records_file) if r.name == "Hooli")
    assert record.status == Status.PENDING
    assert record.last_action_date == TODAY.text
    assert "Hooli" in capsys.readouterr().out


def test_changed_entry_is_listed_even_if_hidden(records_file, capsys) -> None:
    assert run(records_file, "--declined", "0") == 0
    assert "Acme" in capsys.readouterr().out


def test_set_stage_and_info(records_file) -> None:
    assert run(records_file, "--stage", "2", "Offer call") == 0
    assert run(records_file, "--info", "2", "ask about remote") == 0
    record = next(r for r in Records.load(records_file) if r.name == "Initech")
    assert record.stage == "Offer call"
    assert record.additional_info == "ask about remote"


def test_add_entry(records_file) -> None:
    assert run(records_file, "--add", "Foo Inc", "Dev", "Bern") == 0
    records = list(Records.load(records_file))
    assert len(records) == 7
    added = records[-1]
    assert (added.name, added.subname, added.place, added.status) == (
        "Foo Inc",
        "Dev",
        "Bern",
        Status.TODO,
    )


def test_search_lists_matching_names(records_file, capsys) -> None:
    assert run(records_file, "--search", "Hoo") == 0
    out = capsys.readouterr().out
    assert "Hooli" in out
    assert "Acme" not in out


def test_summary(records_file, capsys) -> None:
    assert run(records_file, "--summary") == 0
    out = capsys.readouterr().out
    assert "Todo: 2/6 (33.3%)" in out
    assert "Pnd: 1/6" in out
    assert "Today: 19-10-2026" in out


@pytest.mark.parametrize("args", [["--pending", "6"], ["--stage", "x", "text"], ["--info", "-1", "t"]])
def test_bad_entry_number_is_a_usage_error(records_file, args) -> None:
    before = records_file.read_text(encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        run(records_file, *args)
    assert excinfo.value.code == 2
    assert records_file.read_text(encoding="utf-8") == before


def test_actions_are_mutually_exclusive(records_file) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run(records_file, "--all", "--summary")
    assert excinfo.value.code == 2


def test_missing_file_exits_with_error(tmp_path: Path, capsys) -> None:
    assert run(tmp_path / "missing.json") == 1
    assert "could not load" in capsys.readouterr().err


def test_malformed_file_exits_with_error(tmp_path: Path, capsys) -> None:
    path = tmp_path / "jobs.json"
    path.write_text(json.dumps([{"last_action_date": "bad", "name": "A", "status": "Todo"}]))
    assert run(path) == 1
    assert "Malformed date" in capsys.readouterr().err


@pytest.mark.parametrize("name", ["jobs.csv", "jobs.json"])
def test_non_utf8_file_exits_with_error(tmp_path: Path, name: str, capsys) -> None:
    path = tmp_path / name
    path.write_bytes(b'{"records": [{"name": "Caf\xe9"}]}')
    assert run(path) == 1
    assert "not valid UTF-8" in capsys.readouterr().err


def test_failed_write_reports_nothing_saved(records_file, monkeypatch, capsys) -> None:
    def fail(self, path=None):
        raise PermissionError("read-only")

    monkeypatch.setattr(Records, "write", fail)
    assert run(records_file, "--rejected", "0") == 1
    assert "nothing was saved" in capsys.readouterr().err


def test_init_creates_empty_file(tmp_path: Path, capsys) -> None:
    path = tmp_path / "jobs.csv"
    assert run(path, "--init") == 0
    assert path.exists()
    assert run(path) == 0
    assert "No entries to show." in capsys.readouterr().out


def test_file_defaults_to_environment(tmp_path: Path, monkeypatch, mixed_records, capsys) -> None:
    path = tmp_path / "from-env.json"
    mixed_records.write(path)
    monkeypatch.setenv("JOB_TRACKER_FILE", str(path))
    assert cli.main(["--all"]) == 0
    assert "Vandelay" in capsys.readouterr().out


def test_open_uses_platform_handler(records_file, monkeypatch) -> None:
    opened = []
    monkeypatch.setattr(cli.webbrowser, "open", lambda uri: opened.append(uri) or True)
    assert run(records_file, "--open") == 0
    assert opened == [records_file.resolve().as_uri()]


@pytest.mark.parametrize("result, saved", [(Exit.SAVE, True), (Exit.DISCARD, False)])
def test_gui_saves_only_on_request(records_file, monkeypatch, result, saved) -> None:
    def fake_tui(records, today=None):
        records.get(0).set_status(Status.PENDING, TODAY)
        return result

    monkeypatch.setattr("job_tracker.tui.run_tui", fake_tui)
    assert run(records_file, "--gui") == 0
    acme = next(r for r in Records.load(records_file) if r.name == "Acme")
    assert (acme.status == Status.PENDING) is saved


def test_format_record_colours_when_enabled() -> None:
    from conftest import make_record

    line = cli.format_record(0, make_record("Acme"), TODAY, color=True)
    assert "\033[31m" in line
    stale = cli.format_record(1, make_record("Old", Status.PENDING, age=30), TODAY, color=True)
    assert stale.startswith("\033[2m")


def test_select_follows_the_table_filter(mixed_records) -> None:
    from job_tracker.view import ViewMode, visible_indices

    rows = cli.select(mixed_records, TODAY, view=ViewMode.OLD, changed={5})
    assert [index for index, _ in rows] == visible_indices(
        mixed_records, ViewMode.OLD, None, {5}, TODAY
    )
    assert [record.name for _, record in rows] == [
        "Acme", "Globex", "Initech", "Umbrella", "Vandelay"
    ]
