from __future__ import annotations

import pytest

from cfsession.common.errors import ConfigurationError
from cfsession.common.settings import SessionSettings, load_settings


def test_defaults(clean_env):
    settings = SessionSettings(_env_file=None)
    assert settings.debug is False
    assert settings.trace_target is None
    assert settings.connect_timeout == 5.0
    assert settings.request_timeout == 60.0
    assert settings.async_timeout_seconds == 600.0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("TRUE", True), ("1", True), ("yes", True), ("false", False), ("0", False), ("garbage", False)],
)
def test_debug_flag_is_lenient(clean_env, raw, expected):
    clean_env.setenv("CF_DEBUG", raw)
    assert SessionSettings(_env_file=None).debug is expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", "stdout"), ("1", "stdout"), ("false", None), ("", None), ("/tmp/cf-trace.log", "/tmp/cf-trace.log")],
)
def test_trace_target(clean_env, raw, expected):
    clean_env.setenv("CF_TRACE", raw)
    assert SessionSettings(_env_file=None).trace_target == expected


def test_dial_timeout_overrides_connect_timeout(clean_env):
    clean_env.setenv("CF_DIAL_TIMEOUT", "2.5")
    assert SessionSettings(_env_file=None).connect_timeout == 2.5


def test_blank_dial_timeout_falls_back_to_default(clean_env):
    clean_env.setenv("CF_DIAL_TIMEOUT", " ")
    settings = SessionSettings(_env_file=None)
    assert settings.dial_timeout is None
    assert settings.connect_timeout == 5.0


def test_malformed_dial_timeout_falls_back_to_default(clean_env):
    clean_env.setenv("CF_DIAL_TIMEOUT", "10s")
    settings = SessionSettings(_env_file=None)
    assert settings.dial_timeout is None
    assert settings.connect_timeout == 5.0


def test_load_settings_raises_configuration_error(clean_env):
    clean_env.setenv("CF_ASYNC_TIMEOUT", "ten minutes")
    with pytest.raises(ConfigurationError, match="CF_ASYNC_TIMEOUT"):
        load_settings(_env_file=None)
