from __future__ import annotations

import io
import json

import httpx
import pytest

from cfsession.common.observability import (
    TRACE_BODY_LIMIT,
    SessionLogger,
    TracePrinter,
    redact_body,
    redact_headers,
)
from cfsession.common.errors import ConfigurationError
from cfsession.common.settings import SessionSettings


def test_redact_headers():
    headers = {"Authorization": "bearer abc", "Accept": "application/json", "Set-Cookie": "session=1"}
    redacted = redact_headers(headers)
    assert redacted["Authorization"] == "[PRIVATE DATA HIDDEN]"
    assert redacted["Set-Cookie"] == "[PRIVATE DATA HIDDEN]"
    assert redacted["Accept"] == "application/json"


def test_redact_body_form_and_json():
    form = "grant_type=refresh_token&refresh_token=abc123&scope="
    assert redact_body(form) == "grant_type=refresh_token&refresh_token=[PRIVATE DATA HIDDEN]&scope="
    body = '{"access_token": "eyJ.payload.sig", "token_type": "bearer"}'
    assert redact_body(body) == '{"access_token": "[PRIVATE DATA HIDDEN]", "token_type": "bearer"}'


@pytest.mark.asyncio
async def test_trace_printer_writes_request_and_response():
    stream = io.StringIO()
    printer = TracePrinter(stream)
    request = httpx.Request(
        "POST",
        "https://uaa.example.com/oauth/token",
        headers={"Authorization": "Basic Y2Y6"},
        content=b"grant_type=password&username=admin&password=hunter2",
    )
    response = httpx.Response(200, json={"access_token": "secret-token"}, request=request)

    await printer.on_request(request)
    await printer.on_response(response)

    records = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert [record["message"] for record in records] == ["REQUEST", "RESPONSE"]
    assert records[0]["headers"]["authorization"] == "[PRIVATE DATA HIDDEN]"
    assert "hunter2" not in records[0]["body"]
    assert records[1]["status"] == 200
    assert "secret-token" not in records[1]["body"]


@pytest.mark.asyncio
async def test_trace_printer_truncates_large_bodies():
    stream = io.StringIO()
    request = httpx.Request("PUT", "https://api.example.com/v2/apps/a", content=b"x" * (TRACE_BODY_LIMIT + 10))
    await TracePrinter(stream).on_request(request)
    body = json.loads(stream.getvalue())["body"]
    assert body.endswith("...[truncated]")
    assert len(body) == TRACE_BODY_LIMIT + len("...[truncated]")


def test_session_logger_without_trace_has_no_hooks(clean_env):
    logger = SessionLogger(SessionSettings(_env_file=None))
    assert logger.trace is None
    assert logger.event_hooks() == {"request": [], "response": []}


def test_session_logger_trace_file(clean_env, tmp_path):
    target = tmp_path / "trace.log"
    clean_env.setenv("CF_TRACE", str(target))
    logger = SessionLogger(SessionSettings(_env_file=None))
    hooks = logger.event_hooks()
    assert len(hooks["request"]) == 1
    assert len(hooks["response"]) == 1
    logger.close()
    assert target.exists()


def test_unwritable_trace_file_is_a_configuration_error(clean_env, tmp_path):
    clean_env.setenv("CF_TRACE", str(tmp_path / "missing" / "trace.log"))
    with pytest.raises(ConfigurationError, match="Cannot open trace file"):
        SessionLogger(SessionSettings(_env_file=None))
