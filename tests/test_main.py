"""CLI end to end against a mocked event endpoint."""
import json
from datetime import date, datetime

import pytest
import responses

from flowcal.main import _sync_reporter, main
from flowcal.models import Event

BASE = "http://calendar.test"


def _wire(event_id, title, day, start, end, **extra):
    payload = {
        "id": event_id,
        "title": title,
        "date": f"{day}T00:00:00",
        "startTime": start,
        "endTime": end,
        "type": "work",
        "createdAt": "2024-04-30T10:00:00",
    }
    payload.update(extra)
    return payload


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)  # keep load_dotenv away from stray .env files
    monkeypatch.setenv("FLOWCAL_API_BASE_URL", BASE)
    monkeypatch.setattr("flowcal.main.setup_logging", lambda *_args, **_kwargs: None)
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("calendar:\n  locale: en_GB\n", encoding="utf-8")
    return str(cfg_path)


@responses.activate
def test_day_command_prints_agenda(cli_env, capsys):
    responses.add(
        responses.GET,
        f"{BASE}/api/events",
        json=[
            _wire("evt-2", "Lunch", "2024-05-01", "12:30", "13:30", cancelled=True),
            _wire("evt-1", "Design Review", "2024-05-01", "10:00", "11:30", location="Room A"),
            _wire("evt-3", "Kickoff", "2024-05-03", "14:00", "15:00"),
        ],
    )

    code = main(["--config", cli_env, "day", "--date", "2024-05-01"])

    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert out[0] == "Wednesday, May 1"
    assert out[1] == "1 event scheduled"
    assert "Design Review" in out[2] and "@ Room A" in out[2]
    assert out[3].endswith("id=evt-2") and "[cancelled]" in out[3]


@responses.activate
def test_list_json_outputs_events(cli_env, capsys):
    responses.add(responses.GET, f"{BASE}/api/events", json=[_wire("evt-1", "Review", "2024-05-01", "10:00", "11:00")])

    assert main(["--config", cli_env, "list", "--json"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload[0]["id"] == "evt-1"
    assert payload[0]["cancelled"] is False


@responses.activate
def test_cancel_not_found_exits_non_zero_with_notice(cli_env, capsys):
    responses.add(responses.PATCH, f"{BASE}/api/events/evt-9", json={"error": "Event not found"}, status=404)

    code = main(["--config", cli_env, "cancel", "evt-9"])

    err = capsys.readouterr().err
    assert code == 1
    assert "Event not found" in err
    assert "Refresh" in err


@responses.activate
def test_create_reports_server_id(cli_env, capsys):
    responses.add(
        responses.POST,
        f"{BASE}/api/events",
        json=_wire("srv-1", "Standup", "2024-05-01", "09:00", "09:15"),
        status=201,
    )

    code = main(
        ["--config", cli_env, "create", "--title", "Standup", "--date", "2024-05-01",
         "--start", "09:00", "--end", "09:15", "--type", "work"]
    )

    assert code == 0
    assert "Created srv-1: Standup" in capsys.readouterr().out


def test_create_rejects_malformed_time_locally(cli_env, capsys):
    code = main(["--config", cli_env, "create", "--title", "X", "--start", "9am", "--type", "work"])

    assert code == 2
    assert "Invalid time format" in capsys.readouterr().err


@responses.activate
def test_fetch_failure_is_reported(cli_env, capsys):
    responses.add(responses.GET, f"{BASE}/api/events", status=500)

    code = main(["--config", cli_env, "month", "--date", "2024-05-01"])

    assert code == 1
    assert "Failed to fetch events" in capsys.readouterr().err


@responses.activate
def test_render_writes_png(cli_env, tmp_path, capsys):
    responses.add(responses.GET, f"{BASE}/api/events", json=[_wire("evt-1", "Review", "2024-05-01", "10:00", "11:00")])
    out_path = tmp_path / "day.png"

    code = main(["--config", cli_env, "render", "day", "--date", "2024-05-01", "--out", str(out_path)])

    assert code == 0
    assert out_path.exists()


def test_watch_reporter_prints_only_when_events_change(capsys):
    report = _sync_reporter()
    first = (
        Event(
            id="evt-1",
            title="Review",
            date=date(2024, 5, 1),
            start_time="10:00",
            end_time="11:00",
            type="work",
            created_at=datetime(2024, 4, 30, 10, 0),
        ),
    )

    report(first)
    report(first)
    report((first[0].with_cancelled(),))

    out = capsys.readouterr().out.splitlines()
    assert out == ["Synced 1 events (1 active)", "Synced 1 events (0 active)"]
