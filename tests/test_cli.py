from __future__ import annotations

import io
import json
import logging
import pytest

from startupflame import cli

pytestmark = pytest.mark.usefixtures("reset_logging")

MS = 1_000_000


def line(name, start_ms, end_ms, event_type="startupflame.ComponentEvent", thread="main", **fields):
    obj = {"type": event_type, "thread": thread, "startTime": start_ms * MS, "endTime": end_ms * MS}
    if name is not None:
        obj["Component-Name"] = name
    obj.update(fields)
    return json.dumps(obj, ensure_ascii=False) + "\n"


@pytest.fixture
def recording(tmp_path):
    path = tmp_path / "startup.jsonl"
    path.write_text(
        line("init", 10, 60)
        + line(None, 0, 5)
        + line("gc", 0, 500, event_type="jdk.GarbageCollection")
        + line("app", 0, 100)
    )
    return path


def test_file_to_file(recording, tmp_path):
    out = tmp_path / "startup.folded"

    assert cli.main([str(recording), str(out)]) == 0
    assert out.read_text() == "main;init;app 50\nmain;app 50\n"


def test_stdin_to_stdout(recording, monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(recording.read_text()))

    assert cli.main([]) == 0
    assert capsys.readouterr().out == "main;init;app 50\nmain;app 50\n"


def test_logs_go_to_stderr(recording, capsys):
    assert cli.main([str(recording), "-"]) == 0

    captured = capsys.readouterr()
    assert "Wrote 2 stacks (29 bytes)" in captured.err
    assert "Wrote" not in captured.out


def test_file_url(recording, tmp_path):
    out = tmp_path / "startup.folded"

    assert cli.main([f"file://{recording}", str(out)]) == 0
    assert out.read_text().endswith("main;app 50\n")


def test_label_field_override(tmp_path):
    path = tmp_path / "bundles.jsonl"
    path.write_text(line(None, 0, 30, **{"Bundle-SymbolicName": "org.example.core"}))
    out = tmp_path / "out.folded"

    assert cli.main([str(path), str(out), "--label-field", "Bundle-SymbolicName"]) == 0
    assert out.read_text() == "main;org.example.core 30\n"


def test_config_file(recording, tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("collector:\n  event_type: jdk.Garbage\n")
    out = tmp_path / "out.folded"

    assert cli.main(["-c", str(config), str(recording), str(out)]) == 0
    assert out.read_text() == "main;gc 500\n"


def test_missing_input_fails(tmp_path, caplog):
    out = tmp_path / "out.folded"

    assert cli.main([str(tmp_path / "missing.jsonl"), str(out)]) == 1
    assert not out.exists()
    assert "I/O failure" in caplog.text


def test_unwritable_output_fails(recording, tmp_path):
    # the output path is a directory
    assert cli.main([str(recording), str(tmp_path)]) == 1


def test_bad_recording_fails(tmp_path, caplog):
    path = tmp_path / "broken.jsonl"
    path.write_text(line("app", 0, 10) + "{truncated\n")
    out = tmp_path / "out.folded"

    assert cli.main([str(path), str(out)]) == 1
    assert not out.exists()
    assert "line 2" in caplog.text


def test_bad_config_fails(recording, tmp_path, caplog):
    config = tmp_path / "config.yaml"
    config.write_text("collector:\n  nonsense: true\n")

    assert cli.main(["-c", str(config), str(recording), str(tmp_path / "out.folded")]) == 1
    assert "nonsense" in caplog.text


def test_log_file(recording, tmp_path):
    log = tmp_path / "startupflame.log"

    assert cli.main([str(recording), str(tmp_path / "out.folded"), "-v", "--log-file", str(log)]) == 0
    text = log.read_text()
    assert "Collected 2 intervals" in text
    assert "Wrote 2 stacks" in text


def test_empty_recording(tmp_path, caplog):
    path = tmp_path / "empty.jsonl"
    path.write_text("")
    out = tmp_path / "out.folded"

    with caplog.at_level(logging.INFO):
        assert cli.main([str(path), str(out)]) == 0
    assert out.read_text() == ""
    assert "No intervals" in caplog.text


def test_write_failure_fails(recording, tmp_path, mocker):
    mocker.patch.object(cli.IntervalStacker, "process", side_effect=OSError("No space left on device"))

    assert cli.main([str(recording), str(tmp_path / "out.folded")]) == 1


def test_invalid_utf8_recording_fails(tmp_path, caplog):
    path = tmp_path / "binary.jsonl"
    path.write_bytes(line("app", 0, 10).encode("utf-8") + b'{"type": "\xff\xfe"}\n')
    out = tmp_path / "out.folded"

    assert cli.main([str(path), str(out)]) == 1
    assert not out.exists()
    assert "not valid UTF-8" in caplog.text


def test_stdio_is_utf8_whatever_the_locale(tmp_path, monkeypatch):
    recording = line("café", 0, 30, thread="Démarrage")
    stdin = io.TextIOWrapper(io.BytesIO(recording.encode("utf-8")), encoding="latin-1")
    stdout = io.TextIOWrapper(io.BytesIO(), encoding="latin-1")
    monkeypatch.setattr("sys.stdin", stdin)
    monkeypatch.setattr("sys.stdout", stdout)

    assert cli.main([]) == 0
    assert stdout.buffer.getvalue() == "Démarrage;café 30\n".encode("utf-8")
