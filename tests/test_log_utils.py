"""Tests for request log files."""

import json

from ui.console_logger import ConsoleLogger
from ui.log_utils import write_cli_log, write_incoming_log


def test_incoming_log_masks_signature_and_auth(tmp_path):
    body = json.dumps({"sec": "A" * 40, "secval": "1000|order123", "amount": 1000}).encode()

    path = write_incoming_log(
        "POST",
        "/pay/request",
        {"authorization": "Bearer abcdefghijklmnop", "x-request-id": "r-1"},
        body,
        log_root=tmp_path,
    )

    entry = json.loads(path.read_text())
    assert path.parent == tmp_path / "incoming"
    assert entry["body"]["sec"] == "AAAAAA...AAAA"
    assert entry["body"]["secval"] == "1000|order123"
    assert entry["headers"]["authorization"] == "Bearer...mnop"
    assert entry["headers"]["x-request-id"] == "r-1"


def test_incoming_log_keeps_unparseable_body(tmp_path):
    path = write_incoming_log("POST", "/", {}, b"{broken", log_root=tmp_path)

    assert json.loads(path.read_text())["body"] == "{broken"


def test_cli_log_appends_lines(tmp_path):
    log_file = tmp_path / "proxy.log"

    write_cli_log("FORWARD", "POST /pay/request", log_file=log_file, status=200)
    write_cli_log("REJECT", "POST /pay/request", log_file=log_file, status=401, stage="verify")

    lines = log_file.read_text().splitlines()
    assert len(lines) == 2
    assert lines[0].endswith("FORWARD: POST /pay/request status=200")
    assert lines[1].endswith("REJECT: POST /pay/request status=401 stage=verify")


def test_console_logger_escapes_markup(tmp_path, monkeypatch):
    from rich.console import Console

    monkeypatch.setattr("ui.console_logger.write_cli_log", lambda *args, **kwargs: None)
    console = Console(record=True, width=200)
    logger = ConsoleLogger(console)

    logger.log_rejected("POST", "/[red]x", 401, "SignatureInvalidError: [bold]no", stage="verify")

    text = console.export_text()
    assert "/[red]x" in text
    assert "[bold]no" in text
