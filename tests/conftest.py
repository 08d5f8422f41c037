from __future__ import annotations

import httpx
import pytest

from cfsession.common.observability import SessionLogger
from cfsession.common.settings import SessionSettings
from cfsession.config import Configuration, NullPersistor
from cfsession.net.gateway import TokenRefreshAuth, cloud_controller_gateway, uaa_gateway
from tests.utils.fake_cf import API, UAA, FakeCloudFoundry

SETTINGS_ENV = (
    "CF_DIAL_TIMEOUT",
    "CF_REQUEST_TIMEOUT",
    "CF_DEBUG",
    "CF_TRACE",
    "CF_JOB_POLL_INTERVAL",
    "CF_ASYNC_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def settings(clean_env) -> SessionSettings:
    clean_env.setenv("CF_JOB_POLL_INTERVAL", "0")
    return SessionSettings(_env_file=None)


@pytest.fixture
def fake_cf() -> FakeCloudFoundry:
    return FakeCloudFoundry()


@pytest.fixture
def gateways(fake_cf, settings):
    """An authenticated configuration plus CC and UAA gateways sharing one auth handler."""

    config = Configuration(NullPersistor())
    config.update(api_endpoint=API, uaa_endpoint=UAA)
    config.set_token_pair(*fake_cf.issue_token())
    logger = SessionLogger(settings)
    auth = TokenRefreshAuth(config)
    transport = httpx.MockTransport(fake_cf.handle)
    cc = cloud_controller_gateway(config, logger, settings, auth, transport=transport)
    uaa = uaa_gateway(config, logger, settings, auth, transport=transport)
    return config, cc, uaa
