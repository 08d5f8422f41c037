from __future__ import annotations

import json

import httpx
import pytest
from structlog.testing import capture_logs

from cfsession.cli import session as session_cli
from cfsession.session import Session


@pytest.fixture
def cli_runner(monkeypatch, fake_cf, settings):
    original = Session.create

    async def create(*args, **kwargs):
        return await original(*args, transport=httpx.MockTransport(fake_cf.handle), **kwargs)

    monkeypatch.setattr(session_cli.Session, "create", create)
    monkeypatch.setattr(session_cli, "configure_logging", lambda *_args, **_kwargs: None)

    def run(*argv: str) -> int:
        with pytest.raises(SystemExit) as exc_info:
            session_cli.main(["--api", "api.example.com", "--user", "admin", "--password", "secret", *argv])
        return exc_info.value.code

    # Keep library log events off the captured stdout and stderr.
    with capture_logs():
        yield run


def test_parse_assignments():
    assert session_cli.parse_assignments(["a=true", "b=FALSE", " c = True"]) == {"a": True, "b": False, "c": True}


@pytest.mark.parametrize("item", ["flag", "=true", "flag=maybe"])
def test_parse_assignments_rejects_bad_input(item):
    with pytest.raises(SystemExit):
        session_cli.parse_assignments([item])


def test_flags_json(cli_runner, capsys):
    assert cli_runner("--json", "flags") == 0
    assert json.loads(capsys.readouterr().out) == {"app_bits_upload": True, "user_org_creation": False}


def test_flags_table(cli_runner, capsys):
    assert cli_runner("flags") == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split() == ["name", "state"]
    assert lines[2].split() == ["app_bits_upload", "enabled"]
    assert lines[3].split() == ["user_org_creation", "disabled"]


def test_info_hides_password(cli_runner, capsys):
    assert cli_runner("--json", "info") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["api_endpoint"] == "https://api.example.com"
    assert payload["loggregator_endpoint"] == "wss://loggregator.example.com:443"
    assert "password" not in payload


def test_set_flags(cli_runner, capsys, fake_cf):
    assert cli_runner("set-flags", "user_org_creation=true", "app_bits_upload=false") == 0
    assert capsys.readouterr().out.strip() == "OK"
    assert fake_cf.flag_writes == [
        ("user_org_creation", b'{"enabled":true}'),
        ("app_bits_upload", b'{"enabled":false}'),
    ]


def test_bad_assignment_fails_before_connecting(cli_runner, fake_cf):
    with pytest.raises(SystemExit):
        session_cli.main(["--api", "api.example.com", "--user", "admin", "--password", "secret", "set-flags", "oops"])
    assert fake_cf.requests == []


def test_rejected_credentials_report_failure(cli_runner, capsys, fake_cf):
    fake_cf.users["admin"] = "rotated"
    assert cli_runner("flags") == 1
    assert capsys.readouterr().err.startswith("FAILED: Credentials were rejected")


def test_missing_endpoint(monkeypatch, clean_env):
    monkeypatch.delenv("CF_API", raising=False)
    monkeypatch.setattr(session_cli, "configure_logging", lambda *_args, **_kwargs: None)
    with pytest.raises(SystemExit) as exc_info:
        session_cli.main(["--user", "admin", "--password", "secret", "flags"])
    assert "required" in str(exc_info.value.code)


def test_invalid_environment_reports_failure(cli_runner, capsys, fake_cf, monkeypatch):
    monkeypatch.setenv("CF_REQUEST_TIMEOUT", "forever")
    assert cli_runner("flags") == 1
    assert capsys.readouterr().err.startswith("FAILED: Invalid environment settings")
    assert fake_cf.requests == []
