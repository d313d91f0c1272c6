"""Tests for the recent-file ledger."""

import json
from pathlib import Path

from mdshelf.recent import RecentEntry, RecentLedger, sidebar_recent_entries


def test_ledger_keeps_twenty_most_recent_first() -> None:
    """Touching 25 distinct files keeps the last 20, newest first."""
    ledger = RecentLedger()
    paths = [f"/notes/{n}.md" for n in range(25)]

    for path in paths:
        ledger.touch(path)

    assert len(ledger) == 20
    assert ledger.identifiers() == list(reversed(paths))[:20]


def test_touch_existing_moves_to_front_without_growing() -> None:
    ledger = RecentLedger()
    for path in ("/n/a.md", "/n/b.md", "/n/c.md"):
        ledger.touch(path)

    ledger.touch("/n/a.md")

    assert ledger.identifiers() == ["/n/a.md", "/n/c.md", "/n/b.md"]


def test_clear_empties_ledger() -> None:
    ledger = RecentLedger()
    ledger.touch("/n/a.md")

    ledger.clear()

    assert ledger.list() == []


def test_entries_derive_display_fields() -> None:
    entry = RecentEntry.for_path("/home/user/notes/todo.md")

    assert entry == RecentEntry("/home/user/notes/todo.md", "todo.md", "notes")


def test_save_and_load_filters_missing_files(tmp_path: Path) -> None:
    """Entries whose file disappeared are dropped silently on load."""
    existing = {"/n/a.md", "/n/c.md"}
    record = tmp_path / "recent-files.json"
    ledger = RecentLedger(record, existing.__contains__)
    for path in ("/n/a.md", "/n/b.md", "/n/c.md"):
        ledger.touch(path)

    assert ledger.save() is True
    assert json.loads(record.read_text()) == {"files": ["/n/c.md", "/n/b.md", "/n/a.md"]}

    reloaded = RecentLedger(record, existing.__contains__)
    reloaded.load()

    assert reloaded.identifiers() == ["/n/c.md", "/n/a.md"]


def test_load_malformed_record_yields_empty_ledger(tmp_path: Path) -> None:
    record = tmp_path / "recent-files.json"
    record.write_text("{not json")
    ledger = RecentLedger(record)

    ledger.load()

    assert ledger.identifiers() == []


def test_load_ignores_non_string_entries(tmp_path: Path) -> None:
    record = tmp_path / "recent-files.json"
    record.write_text(json.dumps({"files": ["/n/a.md", 7, None, "/n/a.md", "/n/b.md"]}))
    ledger = RecentLedger(record)

    ledger.load()

    assert ledger.identifiers() == ["/n/a.md", "/n/b.md"]


def test_save_failure_is_reported_not_raised(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")
    ledger = RecentLedger(blocker / "recent-files.json")
    ledger.touch("/n/a.md")

    assert ledger.save() is False


def test_sidebar_entries_hide_open_files_and_limit() -> None:
    entries = [RecentEntry.for_path(f"/n/{n}.md") for n in range(15)]

    visible = sidebar_recent_entries(entries, {"/n/0.md", "/n/2.md"}, limit=10)

    assert len(visible) == 10
    assert "/n/0.md" not in [entry.identifier for entry in visible]
    assert visible[0].identifier == "/n/1.md"
