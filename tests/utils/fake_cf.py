"""In-memory Cloud Controller and UAA served through ``httpx.MockTransport``."""

from __future__ import annotations

import asyncio
import base64
import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable
from urllib.parse import parse_qs

import httpx
import jwt

from cfsession import Session, SessionSettings

API = "https://api.example.com"
UAA = "https://uaa.example.com"
LOGIN = "https://login.example.com"
SIGNING_KEY = "test-signing-key"

Handler = Callable[[httpx.Request], httpx.Response]


def make_token(**claims: Any) -> str:
    payload = {"user_id": "user-guid-1", "user_name": "admin", "scope": ["cloud_controller.admin"]}
    payload.update(claims)
    return jwt.encode(payload, SIGNING_KEY, algorithm="HS256")


def basic_credentials(request: httpx.Request) -> tuple[str, str]:
    scheme, _, encoded = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "basic":
        return "", ""
    client_id, _, secret = base64.b64decode(encoded).decode("utf-8").partition(":")
    return client_id, secret


def form_data(request: httpx.Request) -> dict[str, str]:
    parsed = parse_qs(request.content.decode("utf-8"), keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items()}


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


def page(resources: list[dict[str, Any]], next_url: str | None = None) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "total_results": len(resources),
            "total_pages": 1,
            "prev_url": None,
            "next_url": next_url,
            "resources": resources,
        },
    )


def resource(guid: str, **entity: Any) -> dict[str, Any]:
    return {"metadata": {"guid": guid, "url": f"/v2/things/{guid}"}, "entity": entity}


def cc_error(status: int, error_code: str, description: str, code: int = 10000) -> httpx.Response:
    return httpx.Response(status, json={"code": code, "description": description, "error_code": error_code})


def uaa_error(status: int, error: str, description: str) -> httpx.Response:
    return httpx.Response(status, json={"error": error, "error_description": description})


class FakeCloudFoundry:
    """Serves discovery, OAuth grants, feature flags and UAA groups; extra routes via ``route``."""

    def __init__(self) -> None:
        self.users = {"admin": "secret"}
        self.clients = {"admin-client": "client-secret"}
        self.info: dict[str, Any] = {
            "name": "",
            "build": "",
            "support": "",
            "version": 0,
            "description": "",
            "authorization_endpoint": LOGIN,
            "token_endpoint": UAA,
            "min_cli_version": None,
            "min_recommended_cli_version": None,
            "api_version": "2.150.0",
            "app_ssh_endpoint": "ssh.example.com:2222",
            "app_ssh_oauth_client": "ssh-proxy",
            "doppler_logging_endpoint": "wss://doppler.example.com:443",
            "routing_endpoint": f"{API}/routing",
        }
        self.feature_flags: list[dict[str, Any]] = [
            {"name": "user_org_creation", "enabled": False, "error_message": None},
            {"name": "app_bits_upload", "enabled": True, "error_message": None},
        ]
        self.failing_flags: set[str] = set()
        self.flag_writes: list[tuple[str, bytes]] = []
        self.groups = [
            {"id": "group-1", "displayName": "cloud_controller.admin"},
            {"id": "group-2", "displayName": "scim.read"},
            {"id": "group-3", "displayName": "uaa.admin"},
        ]
        self.reject_refresh = False
        self.requests: list[httpx.Request] = []
        self.grants: list[dict[str, str]] = []
        self.routes: dict[tuple[str, str], Handler] = {}
        self._valid_tokens: set[str] = set()
        self._refresh_tokens: set[str] = set()
        self._serial = 0

    def route(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def issue_token(self, **claims: Any) -> tuple[str, str]:
        """Mint a token pair the fake accepts; returns ``(authorization, refresh_token)``."""

        self._serial += 1
        access = make_token(jti=f"token-{self._serial}", **claims)
        refresh = f"refresh-{self._serial}"
        self._valid_tokens.add(f"bearer {access}")
        self._refresh_tokens.add(refresh)
        return f"bearer {access}", refresh

    def expire_tokens(self) -> None:
        self._valid_tokens.clear()

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        # Yield so concurrent callers interleave the way they would over a socket.
        await asyncio.sleep(0)
        # Snapshot: a replayed request is the same object with a new Authorization header.
        self.requests.append(
            httpx.Request(request.method, request.url, headers=request.headers.copy(), content=request.content)
        )
        path = request.url.path

        if path == "/v2/info":
            return self.routes.get(("GET", path), lambda _: httpx.Response(200, json=self.info))(request)
        if path == "/oauth/token":
            return self._token(request)
        if request.headers.get("Authorization") not in self._valid_tokens:
            if request.url.host == "uaa.example.com":
                return uaa_error(401, "invalid_token", "Invalid access token")
            return cc_error(401, "CF-InvalidAuthToken", "Invalid Auth Token", code=1000)

        handler = self.routes.get((request.method, path))
        if handler is not None:
            return handler(request)
        if path == "/v2/config/feature_flags" and request.method == "GET":
            return httpx.Response(200, json=self.feature_flags)
        if path.startswith("/v2/config/feature_flags/") and request.method == "PUT":
            return self._set_flag(request, path.rsplit("/", 1)[1])
        if path == "/Groups" and request.method == "GET":
            return self._groups(request)
        return cc_error(404, "CF-NotFound", "Unknown request")

    def _issue(self, **claims: Any) -> httpx.Response:
        authorization, refresh = self.issue_token(**claims)
        access = authorization.split(" ", 1)[1]
        return httpx.Response(
            200,
            json={
                "access_token": access,
                "token_type": "bearer",
                "refresh_token": refresh,
                "expires_in": 599,
                "scope": "cloud_controller.admin",
                "jti": f"token-{self._serial}",
            },
        )

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = form_data(request)
        self.grants.append(form)
        client_id, secret = basic_credentials(request)
        grant_type = form.get("grant_type")
        if grant_type == "password":
            if (client_id, secret) != ("cf", "") or self.users.get(form.get("username")) != form.get("password"):
                return uaa_error(401, "unauthorized", "Bad credentials")
            return self._issue(user_name=form["username"])
        if grant_type == "refresh_token":
            if self.reject_refresh or form.get("refresh_token") not in self._refresh_tokens:
                return uaa_error(401, "invalid_token", "Invalid refresh token")
            return self._issue()
        if grant_type == "client_credentials":
            if self.clients.get(client_id) != secret:
                return uaa_error(401, "unauthorized", "Bad credentials")
            return self._issue(client_id=client_id, user_id=None, user_name=None)
        return uaa_error(400, "unsupported_grant_type", f"Unsupported grant type: {grant_type}")

    def _set_flag(self, request: httpx.Request, name: str) -> httpx.Response:
        self.flag_writes.append((name, request.content))
        if name in self.failing_flags:
            return cc_error(404, "CF-FeatureFlagNotFound", f"The feature flag could not be found: {name}", 330000)
        enabled = json_body(request)["enabled"]
        return httpx.Response(
            200,
            json={"name": name, "enabled": enabled, "error_message": None, "url": f"/v2/config/feature_flags/{name}"},
        )

    def _groups(self, request: httpx.Request) -> httpx.Response:
        start = int(request.url.params.get("startIndex", "1"))
        count = int(request.url.params.get("count", "100"))
        chunk = self.groups[start - 1 : start - 1 + count]
        return httpx.Response(
            200,
            json={
                "resources": chunk,
                "startIndex": start,
                "itemsPerPage": count,
                "totalResults": len(self.groups),
                "schemas": ["urn:scim:schemas:core:1.0"],
            },
        )


@asynccontextmanager
async def open_session(
    fake: FakeCloudFoundry,
    settings: SessionSettings,
    endpoint: str = "api.example.com",
    user: str = "admin",
    password: str = "secret",
    **kwargs: Any,
) -> AsyncIterator[Session]:
    session = await Session.create(
        endpoint,
        user,
        password,
        settings=settings,
        transport=httpx.MockTransport(fake.handle),
        **kwargs,
    )
    try:
        yield session
    finally:
        await session.aclose()
