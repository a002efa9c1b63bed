"""Tests for the typer CLI."""

from datetime import UTC, datetime, timedelta

from typer.testing import CliRunner

from attendance.polls.repository.store import EventStore
from cli import app

runner = CliRunner()

EVENT_DATE = datetime(2099, 3, 10, 17, 0, tzinfo=UTC)


def _write_snapshot(path):
    store = EventStore(path)
    event = store.create("evt-1", EVENT_DATE, EVENT_DATE - timedelta(hours=24), "Training")
    event.sign_up("Alice")
    event.sign_off("Bob")
    store.persist()


def test_list_polls(snapshot_path):
    _write_snapshot(snapshot_path)

    result = runner.invoke(app, ["list-polls", "--snapshot", str(snapshot_path)])

    assert result.exit_code == 0
    assert "evt-1" in result.output
    assert "1 signed up, 1 signed off (open)" in result.output


def test_list_polls_without_snapshot(snapshot_path):
    result = runner.invoke(app, ["list-polls", "--snapshot", str(snapshot_path)])

    assert result.exit_code == 0
    assert "No snapshot" in result.output
    assert not snapshot_path.exists()


def test_show_poll(snapshot_path):
    _write_snapshot(snapshot_path)

    result = runner.invoke(app, ["show-poll", "evt-1", "--snapshot", str(snapshot_path)])

    assert result.exit_code == 0
    assert "Training" in result.output
    assert "Signed up (1)" in result.output
    assert "Alice" in result.output
    assert "Bob" in result.output


def test_show_poll_unknown(snapshot_path):
    _write_snapshot(snapshot_path)

    result = runner.invoke(app, ["show-poll", "nonexistent", "--snapshot", str(snapshot_path)])

    assert result.exit_code == 1
    assert "Poll not found" in result.output


def test_check_date_valid():
    result = runner.invoke(app, ["check-date", "2099-03-10 18:00"])

    assert result.exit_code == 0
    assert "Deadline:" in result.output


def test_check_date_invalid_format():
    result = runner.invoke(app, ["check-date", "10.03.2099"])

    assert result.exit_code == 1
    assert "expected format YYYY-MM-DD HH:MM" in result.output


def test_check_date_deadline_after_event():
    result = runner.invoke(app, ["check-date", "2000-01-01 18:00", "--deadline-minutes", "10"])

    assert result.exit_code == 1
    assert "must be before the event" in result.output


def test_list_polls_leaves_unreadable_snapshot_in_place(snapshot_path):
    snapshot_path.write_text("{not json")

    result = runner.invoke(app, ["list-polls", "--snapshot", str(snapshot_path)])

    assert result.exit_code == 1
    assert "unreadable" in result.output
    assert snapshot_path.read_text() == "{not json"
    assert list(snapshot_path.parent.glob("*.corrupt-*")) == []
