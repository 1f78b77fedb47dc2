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

import pytest
from pydantic import ValidationError

from coreason_maas.models import AuthResult, IdentityToken, ProviderConfig, TokenResponse, UserInfo

from conftest import discovery_document


def test_provider_config_ignores_unknown_keys() -> None:
    doc = discovery_document()
    doc["claims_supported"] = ["sub", "email"]

    provider = ProviderConfig(**doc)

    assert provider.issuer == "https://idp.example.com"
    assert provider.scopes_supported == ["openid", "email", "sub"]
    assert provider.jwks == {}
    assert not hasattr(provider, "claims_supported")


def test_provider_config_is_frozen() -> None:
    provider = ProviderConfig(**discovery_document())

    with pytest.raises(ValidationError):
        provider.issuer = "https://evil.example.com"  # type: ignore[misc]


def test_provider_config_requires_endpoints() -> None:
    doc = discovery_document()
    del doc["token_endpoint"]

    with pytest.raises(ValidationError, match="token_endpoint"):
        ProviderConfig(**doc)


def test_token_response_defaults() -> None:
    token = TokenResponse(access_token="ac", id_token="a.b.c", unknown="ignored")

    assert token.token_type == "Bearer"
    assert token.expires_in is None
    assert token.refresh_token is None


def test_auth_result_redacts_access_token() -> None:
    id_token = IdentityToken(raw="a.b.c", header={"alg": "RS256"}, claims={"sub": "test"}, signature=b"sig")
    result = AuthResult(access_token="super-secret-token", id_token=id_token, claims={"sub": "test"})

    assert "super-secret-token" not in repr(result)
    assert "super-secret-token" not in str(result)
    assert "'test'" in repr(result)
    assert result.id_token.encode() == "a.b.c"


class TestUserInfo:
    def test_wire_names(self) -> None:
        ui = UserInfo(user_id="test", email="test@example.net")
        assert json.loads(ui.to_json()) == {"sub": "test", "email": "test@example.net"}

    def test_populate_from_wire(self) -> None:
        ui = UserInfo.model_validate({"sub": "test", "email": "test@example.net"})
        assert ui.user_id == "test"

    def test_equality(self) -> None:
        assert UserInfo(user_id="a", email="a@x") == UserInfo(sub="a", email="a@x")

    def test_email_defaults_to_empty(self) -> None:
        assert UserInfo.model_validate({"sub": "test"}).email == ""

    def test_missing_subject(self) -> None:
        with pytest.raises(ValidationError):
            UserInfo.model_validate({"email": "test@example.net"})
