from __future__ import annotations

import asyncio

import httpx
from typer.testing import CliRunner

from cli import doctor
from cli import main as cli_main
from core.config import AppSettings, _parse_env_lines, get_user_env_file
from core.domain.errors import ControlPortTransportError, ControlPortProtocolError
from core.domain.models import CommandBatch, Outcome

runner = CliRunner()


class StubChannel:
    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.batches: list[CommandBatch] = []

    async def send(self, batch: CommandBatch) -> str:
        self.batches.append(batch)
        if self.error is not None:
            raise self.error
        return self.reply


def _patch_renew(monkeypatch, outcome: Outcome) -> None:
    async def fake_renew(settings=None, *, channel=None):
        return outcome

    monkeypatch.setattr(cli_main, "renew_tor_session", fake_renew)


def test_renew_success(monkeypatch):
    _patch_renew(monkeypatch, Outcome.success("Tor session successfully renewed!!"))

    result = runner.invoke(cli_main.app, ["renew"])

    assert result.exit_code == 0
    assert "Tor session successfully renewed!!" in result.stdout


def test_renew_failure_exits_non_zero(monkeypatch):
    err = ControlPortProtocolError("Error communicating with Tor ControlPort\n515 Bad\n", response="515 Bad\n")
    _patch_renew(monkeypatch, Outcome.failure(err))

    result = runner.invoke(cli_main.app, ["renew"])

    assert result.exit_code == 1
    assert "515 Bad" in result.stdout


def test_send_prints_lines(monkeypatch):
    channel = StubChannel("250-version=0.4.8.9\n250 OK\n250 closing connection\n")
    monkeypatch.setattr(cli_main, "create_control_channel", lambda *a, **kw: channel)

    result = runner.invoke(cli_main.app, ["send", 'authenticate ""', "getinfo version", "quit"])

    assert result.exit_code == 0, result.output
    assert channel.batches[0].commands == ('authenticate ""', "getinfo version", "quit")
    assert "version=0.4.8.9" in result.stdout
    assert "All replies succeeded" in result.stdout


def test_send_reports_rejected_reply(monkeypatch):
    monkeypatch.setattr(cli_main, "create_control_channel", lambda *a, **kw: StubChannel("515 Bad auth\n"))

    result = runner.invoke(cli_main.app, ["send", 'authenticate "x"'])

    assert result.exit_code == 1
    assert "not 250" in result.stdout


def test_send_transport_error(monkeypatch):
    channel = StubChannel(error=ControlPortTransportError("[Errno 111] Connection refused"))
    monkeypatch.setattr(cli_main, "create_control_channel", lambda *a, **kw: channel)

    result = runner.invoke(cli_main.app, ["send", "quit"])

    assert result.exit_code == 1


def test_fetch_prints_status_and_body(monkeypatch):
    async def fake_torfetch(url, **kwargs):
        assert kwargs["headers"] == {"Accept": "text/plain"}
        assert kwargs["method"] == "GET"
        return httpx.Response(200, text="hello from tor", request=httpx.Request("GET", url))

    monkeypatch.setattr(cli_main, "torfetch", fake_torfetch)

    result = runner.invoke(cli_main.app, ["fetch", "http://example.com", "-H", "Accept: text/plain"])

    assert result.exit_code == 0, result.output
    assert "HTTP 200" in result.stdout
    assert "hello from tor" in result.stdout


def test_fetch_rejects_malformed_header():
    result = runner.invoke(cli_main.app, ["fetch", "http://example.com", "-H", "no-colon"])

    assert result.exit_code != 0


def test_doctor_setup_control_writes_user_env():
    result = runner.invoke(doctor.app, ["setup-control"], input="127.0.0.1\n9151\nsecret\n")

    assert result.exit_code == 0, result.output
    values = _parse_env_lines(get_user_env_file().read_text(encoding="utf-8"))
    assert values["TORFETCH_CONTROL_HOST"] == "127.0.0.1"
    assert values["TORFETCH_CONTROL_PORT"] == "9151"
    assert values["TORFETCH_CONTROL_PASSWORD"] == "secret"


def test_doctor_run_reports_checks(monkeypatch):
    async def socks_ok(settings):
        return True, "Exit IP 185.220.101.1"

    monkeypatch.setattr(doctor, "_check_socks", socks_ok)
    monkeypatch.setattr(doctor, "create_control_channel", lambda *a, **kw: StubChannel("515 Authentication failed\n"))

    result = runner.invoke(doctor.app, ["run"])

    assert result.exit_code == 0, result.output
    assert "185.220.101.1" in result.stdout
    assert "FAIL" in result.stdout
    assert "setup-control" in result.stdout


def _patch_check_reply(monkeypatch, response: httpx.Response) -> None:
    async def fake_torfetch(url, **kwargs):
        return response

    monkeypatch.setattr(doctor, "torfetch", fake_torfetch)


def test_doctor_socks_check_handles_non_object_json(monkeypatch):
    _patch_check_reply(monkeypatch, httpx.Response(200, json=[1, 2]))

    ok, detail = asyncio.run(doctor._check_socks(AppSettings(_env_file=None)))

    assert not ok
    assert "Unexpected reply" in detail


def test_doctor_socks_check_reports_exit_ip(monkeypatch):
    _patch_check_reply(monkeypatch, httpx.Response(200, json={"IsTor": True, "IP": "185.220.101.1"}))

    ok, detail = asyncio.run(doctor._check_socks(AppSettings(_env_file=None)))

    assert ok
    assert detail == "Exit IP 185.220.101.1"


def test_doctor_run_survives_non_object_json(monkeypatch):
    _patch_check_reply(monkeypatch, httpx.Response(200, json="not tor"))
    monkeypatch.setattr(doctor, "create_control_channel", lambda *a, **kw: StubChannel("250 OK\n250 closing connection\n"))

    result = runner.invoke(doctor.app, ["run"])

    assert result.exit_code == 0, result.output
    assert "FAIL" in result.stdout
