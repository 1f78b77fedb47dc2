# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_identity

import json
import time
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from authlib.jose import JsonWebKey, jwt

from coreason_maas.config import MaasClientConfig

ISSUER = "https://idp.example.com"
CLIENT_ID = "test-client"
CLIENT_SECRET = "test-client-secret-with-at-least-32-bytes"
REDIRECT_URI = "https://rp.example.com/login"


def discovery_document(issuer: str = ISSUER) -> dict[str, Any]:
    return {
        "issuer": issuer,
        "authorization_endpoint": f"{issuer}/authorize",
        "token_endpoint": f"{issuer}/oauth/token",
        "userinfo_endpoint": f"{issuer}/oauth/userinfo",
        "jwks_uri": f"{issuer}/oauth/jwks",
        "scopes_supported": ["openid", "email", "sub"],
        "response_types_supported": ["code"],
        "id_token_signing_alg_values_supported": ["RS256"],
    }


def create_token(key: Any, claims: dict[str, Any], headers: dict[str, Any] | None = None) -> str:
    if headers is None:
        headers = {"alg": "RS256", "kid": key.as_dict()["kid"]}
    return jwt.encode(headers, claims, key).decode("utf-8")  # type: ignore[no-any-return]


def valid_claims(**overrides: Any) -> dict[str, Any]:
    now = int(time.time())
    claims = {
        "sub": "test",
        "email": "test@example.net",
        "aud": CLIENT_ID,
        "iss": ISSUER,
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(overrides)
    return claims


class FakeIdP:
    """
    In-process identity provider served through `httpx.MockTransport`.
    Records every request it receives.
    """

    def __init__(self, signing_key: Any) -> None:
        self.signing_key = signing_key
        self.requests: list[httpx.Request] = []
        self.discovery_failures = 0
        self.discovery_body: bytes | None = None
        self.token_error: Exception | None = None
        self.token_status = 200
        self.token_body: dict[str, Any] = {
            "access_token": "test-access-token",
            "token_type": "Bearer",
            "expires_in": 3600,
            "id_token": create_token(signing_key, valid_claims()),
        }
        self.userinfo_status = 200
        self.userinfo_body: bytes = json.dumps({"sub": "test", "email": "test@example.net"}).encode()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/.well-known/openid-configuration":
            if self.discovery_failures > 0:
                self.discovery_failures -= 1
                return httpx.Response(503, text="unavailable")
            if self.discovery_body is not None:
                return httpx.Response(200, content=self.discovery_body)
            return httpx.Response(200, json=discovery_document())

        if path == "/oauth/jwks":
            return httpx.Response(200, json={"keys": [self.signing_key.as_dict(is_private=False)]})

        if path == "/oauth/token":
            if self.token_error is not None:
                raise self.token_error
            return httpx.Response(self.token_status, json=self.token_body)

        if path == "/oauth/userinfo":
            return httpx.Response(self.userinfo_status, content=self.userinfo_body)

        return httpx.Response(404)

    @staticmethod
    def form(request: httpx.Request) -> dict[str, list[str]]:
        return parse_qs(request.content.decode("utf-8"))


@pytest.fixture(scope="session")
def signing_key() -> Any:
    return JsonWebKey.generate_key("RSA", 2048, is_private=True)


@pytest.fixture(scope="session")
def jwks(signing_key: Any) -> dict[str, Any]:
    return {"keys": [signing_key.as_dict(is_private=False)]}


@pytest.fixture
def fake_idp(signing_key: Any) -> FakeIdP:
    return FakeIdP(signing_key)


@pytest.fixture
def config() -> MaasClientConfig:
    return MaasClientConfig(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        redirect_uri=REDIRECT_URI,
        discovery_uri=ISSUER,
        provider_retries=3,
    )
