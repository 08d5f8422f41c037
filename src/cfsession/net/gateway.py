"""Authenticated JSON gateways for the Cloud Controller and UAA."""

from __future__ import annotations

import asyncio
import json
import os
import ssl
import time
from typing import Any, AsyncGenerator, AsyncIterator, Callable, Mapping, Optional, Protocol
from urllib.parse import unquote

import httpx
import structlog
from opentelemetry import trace
from pydantic import TypeAdapter, ValidationError

from ..common.errors import (
    AsyncJobError,
    ResourceError,
    ResourceNotFoundError,
    ResponseFormatError,
    TokenRefreshError,
    TransportError,
)
from ..common.identifiers import new_uuid
from ..common.observability import SessionLogger
from ..common.schemas import CCErrorResponse, PaginatedResources, UAAErrorResponse
from ..common.settings import SessionSettings
from ..config import Configuration

LOGGER = structlog.get_logger("cfsession.gateway")
TRACER = trace.get_tracer("cfsession.gateway")

USER_AGENT = "cfsession/0.1.0"

ErrorParser = Callable[[httpx.Response], ResourceError]
Body = Mapping[str, Any] | list[Any] | str | bytes | None


class TokenRefresher(Protocol):
    """Capability that renews the access token stored in the configuration."""

    async def refresh_auth_token(self) -> str: ...


class TokenRefreshAuth(httpx.Auth):
    """Bearer auth that refreshes once on 401 and replays the request.

    One instance is shared by every gateway of a session so that concurrent
    401s serialise on a single lock and cause exactly one refresh.
    """

    def __init__(self, config: Configuration) -> None:
        self._config = config
        self._lock = asyncio.Lock()
        self._completed_refreshes = 0
        self._last_failure: Optional[tuple[str, int, TokenRefreshError]] = None
        self.refresher: Optional[TokenRefresher] = None

    def sync_auth_flow(self, request: httpx.Request):
        raise RuntimeError("TokenRefreshAuth only supports httpx.AsyncClient")

    async def async_auth_flow(self, request: httpx.Request) -> AsyncGenerator[httpx.Request, httpx.Response]:
        if "Authorization" in request.headers:
            # Caller supplied its own credential (client token); leave it alone.
            yield request
            return

        sent_token = self._config.access_token
        if sent_token:
            request.headers["Authorization"] = sent_token
        response = yield request
        if response.status_code != 401 or self.refresher is None:
            return

        await self._refresh(sent_token)
        request.headers["Authorization"] = self._config.access_token
        yield request

    async def _refresh(self, stale_token: str) -> None:
        completed_before = self._completed_refreshes
        async with self._lock:
            if self._config.access_token != stale_token:
                # Another request already refreshed while we waited.
                return
            failure = self._last_failure
            if failure is not None and failure[0] == stale_token and failure[1] > completed_before:
                # Waited on a refresh of this same token that was rejected.
                raise failure[2]
            LOGGER.debug("Access token rejected, refreshing")
            try:
                await self.refresher.refresh_auth_token()
            except TokenRefreshError as exc:
                self._last_failure = (stale_token, self._completed_refreshes + 1, exc)
                raise
            finally:
                self._completed_refreshes += 1


def parse_cc_error(response: httpx.Response) -> ResourceError:
    try:
        body = CCErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        body = CCErrorResponse(description=response.text.strip())
    error_cls = ResourceNotFoundError if response.status_code == 404 else ResourceError
    return error_cls(
        response.status_code,
        body.error_code or "",
        body.description or "",
        url=str(response.request.url),
    )


def parse_uaa_error(response: httpx.Response) -> ResourceError:
    try:
        body = UAAErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        body = UAAErrorResponse(error_description=response.text.strip())
    error_cls = ResourceNotFoundError if response.status_code == 404 else ResourceError
    return error_cls(
        response.status_code,
        body.error or "",
        body.error_description or "",
        url=str(response.request.url),
    )


def encode_body(body: Body) -> Optional[bytes]:
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


class Gateway:
    """Generic REST client bound to a session's configuration and credentials."""

    def __init__(
        self,
        name: str,
        config: Configuration,
        client: httpx.AsyncClient,
        auth: TokenRefreshAuth,
        logger: SessionLogger,
        settings: SessionSettings,
        *,
        error_parser: ErrorParser,
        polling_enabled: bool = False,
    ) -> None:
        self.name = name
        self._config = config
        self._client = client
        self._auth = auth
        self._log = logger.bind(gateway=name)
        self._debug = logger.debug_enabled
        self._settings = settings
        self._error_parser = error_parser
        self.polling_enabled = polling_enabled

    @property
    def config(self) -> Configuration:
        return self._config

    def set_token_refresher(self, refresher: TokenRefresher) -> None:
        self._auth.refresher = refresher

    async def request(
        self,
        method: str,
        url: str,
        *,
        body: Body = None,
        data: Optional[Mapping[str, str]] = None,
        files: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        auth: httpx.Auth | None = None,
    ) -> httpx.Response:
        request_headers = {"Accept": "application/json", "X-Vcap-Request-Id": new_uuid()}
        content = encode_body(body)
        if content is not None:
            request_headers["Content-Type"] = "application/json"
        if headers:
            request_headers.update(headers)

        started = time.monotonic()
        with TRACER.start_as_current_span("gateway.request") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("http.url", url)
            try:
                response = await self._client.request(
                    method,
                    url,
                    content=content,
                    data=data,
                    files=files,
                    params=params,
                    headers=request_headers,
                    auth=auth if auth is not None else httpx.USE_CLIENT_DEFAULT,
                )
            except httpx.TransportError as exc:
                span.record_exception(exc)
                raise TransportError(f"Error performing request {method} {url}: {exc}") from exc
            span.set_attribute("http.status_code", response.status_code)

        if self._debug:
            self._log.debug(
                "HTTP request completed",
                method=method,
                url=url,
                status=response.status_code,
                elapsed=round(time.monotonic() - started, 3),
            )
        self._log_warnings(response)
        if response.is_error:
            raise self._error_parser(response)
        return response

    async def get_resource(self, url: str, model: Any = None) -> Any:
        response = await self.request("GET", url)
        return self._decode(response, model)

    async def create_resource(self, base_url: str, path: str, body: Body = None, model: Any = None) -> Any:
        response = await self.request("POST", base_url + path, body=body)
        payload = self._decode(response, None)
        await self._maybe_wait_for_job(response, payload)
        return self._validate(payload, model)

    async def update_resource(self, base_url: str, path: str, body: Body, model: Any = None) -> Any:
        response = await self.request("PUT", base_url + path, body=body)
        payload = self._decode(response, None)
        await self._maybe_wait_for_job(response, payload)
        return self._validate(payload, model)

    async def delete_resource(self, base_url: str, path: str) -> None:
        response = await self.request("DELETE", base_url + path)
        if response.content:
            await self._maybe_wait_for_job(response, self._decode(response, None))

    async def list_paginated_resources(self, base_url: str, path: str) -> AsyncIterator[dict[str, Any]]:
        next_path: Optional[str] = path
        while next_path:
            page = await self.get_resource(base_url + next_path, PaginatedResources)
            for resource in page.resources:
                yield resource
            next_path = page.next_url

    async def aclose(self) -> None:
        await self._client.aclose()

    def _decode(self, response: httpx.Response, model: Any) -> Any:
        if not response.content:
            return None
        try:
            payload = response.json()
        except ValueError as exc:
            raise ResponseFormatError(f"Invalid JSON response from {response.request.url}: {exc}") from exc
        return self._validate(payload, model)

    @staticmethod
    def _validate(payload: Any, model: Any) -> Any:
        if model is None or payload is None:
            return payload
        try:
            return TypeAdapter(model).validate_python(payload)
        except ValidationError as exc:
            raise ResponseFormatError(f"Unexpected response payload: {exc}") from exc

    def _log_warnings(self, response: httpx.Response) -> None:
        raw = response.headers.get("X-Cf-Warnings")
        if not raw:
            return
        for warning in raw.split(","):
            if warning.strip():
                self._log.warning("Cloud Controller warning", warning=unquote(warning.strip()))

    async def _maybe_wait_for_job(self, response: httpx.Response, payload: Any) -> None:
        if not self.polling_enabled or response.status_code != 202 or not isinstance(payload, dict):
            return
        entity = payload.get("entity") or {}
        if entity.get("status") not in {"queued", "running", "finished", "failed"}:
            return
        await self._wait_for_job(payload)

    async def _wait_for_job(self, job: dict[str, Any]) -> None:
        deadline = time.monotonic() + self._settings.async_timeout_seconds
        while True:
            entity = job.get("entity") or {}
            status = entity.get("status")
            if status == "finished":
                return
            if status == "failed":
                details = entity.get("error_details") or {}
                raise AsyncJobError(
                    f"Job {job.get('metadata', {}).get('guid', '?')} failed: "
                    f"{details.get('description') or entity.get('error') or 'unknown error'}"
                )
            if time.monotonic() >= deadline:
                raise AsyncJobError(
                    f"Job {job.get('metadata', {}).get('guid', '?')} did not finish within "
                    f"{self._settings.async_timeout_seconds:g}s"
                )
            await asyncio.sleep(self._settings.job_poll_interval_seconds)
            job_url = job.get("metadata", {}).get("url", "")
            if not job_url.startswith("http"):
                job_url = self._config.api_endpoint + job_url
            job = await self.get_resource(job_url)


def ssl_verify(skip_ssl_validation: bool, ca_cert: str = "") -> bool | ssl.SSLContext:
    """Translate the session's TLS inputs into an httpx ``verify`` value."""

    if skip_ssl_validation:
        return False
    if not ca_cert:
        return True
    if os.path.isfile(ca_cert):
        return ssl.create_default_context(cafile=ca_cert)
    return ssl.create_default_context(cadata=ca_cert)


def _build_client(
    settings: SessionSettings,
    logger: SessionLogger,
    auth: TokenRefreshAuth,
    *,
    verify: bool | ssl.SSLContext,
    transport: Optional[httpx.AsyncBaseTransport],
) -> httpx.AsyncClient:
    limits = httpx.Limits(max_connections=20, max_keepalive_connections=10)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout, connect=settings.connect_timeout),
        limits=limits,
        verify=verify,
        auth=auth,
        headers={"User-Agent": USER_AGENT},
        event_hooks=logger.event_hooks(),
        transport=transport,
    )


def cloud_controller_gateway(
    config: Configuration,
    logger: SessionLogger,
    settings: SessionSettings,
    auth: TokenRefreshAuth,
    *,
    verify: bool | ssl.SSLContext = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Gateway:
    client = _build_client(settings, logger, auth, verify=verify, transport=transport)
    return Gateway(
        "cloud_controller",
        config,
        client,
        auth,
        logger,
        settings,
        error_parser=parse_cc_error,
        polling_enabled=True,
    )


def uaa_gateway(
    config: Configuration,
    logger: SessionLogger,
    settings: SessionSettings,
    auth: TokenRefreshAuth,
    *,
    verify: bool | ssl.SSLContext = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Gateway:
    client = _build_client(settings, logger, auth, verify=verify, transport=transport)
    return Gateway(
        "uaa",
        config,
        client,
        auth,
        logger,
        settings,
        error_parser=parse_uaa_error,
    )
