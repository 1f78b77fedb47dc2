# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_identity

"""
Data models for the coreason-maas package.
"""

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderConfig(BaseModel):
    """
    OIDC provider configuration from .well-known/openid-configuration,
    together with the signing keys fetched from `jwks_uri`.

    Frozen: it is resolved once at client construction and shared by all calls.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    issuer: str = Field(..., description="The OIDC issuer URL.")
    authorization_endpoint: str = Field(..., description="The authorization endpoint URL.")
    token_endpoint: str = Field(..., description="The token endpoint URL.")
    userinfo_endpoint: str = Field(..., description="The user-info endpoint URL.")
    jwks_uri: str = Field(..., description="The URL to the JWKS.")
    scopes_supported: list[str] = Field(default_factory=list)
    response_types_supported: list[str] = Field(default_factory=list)
    id_token_signing_alg_values_supported: list[str] = Field(default_factory=list)
    jwks: dict[str, Any] = Field(default_factory=dict, description="The JWK set used to verify identity tokens.")

    @field_validator("issuer", "authorization_endpoint", "token_endpoint", "userinfo_endpoint", "jwks_uri")
    @classmethod
    def require_absolute_url(cls, v: str) -> str:
        try:
            url = httpx.URL(v)
        except httpx.InvalidURL as e:
            raise ValueError(f"not a valid URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("must be an absolute http(s) URL")
        return v


class TokenResponse(BaseModel):
    """
    Response from the token endpoint.

    Attributes:
        access_token (str): The access token issued by the authorization server.
        id_token (str): The compact-serialized identity token.
        token_type (str): The type of the token (e.g. "Bearer").
        expires_in (int | None): The lifetime in seconds of the access token.
        refresh_token (str | None): The refresh token, if issued.
        scope (str | None): The granted scope, if returned.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str
    id_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None


class IdentityToken(BaseModel):
    """
    A decoded (but not necessarily verified) compact-serialized identity token.
    """

    model_config = ConfigDict(frozen=True)

    raw: str
    header: dict[str, Any]
    claims: dict[str, Any]
    signature: bytes

    def encode(self) -> str:
        """Returns the original compact serialization."""
        return self.raw


class AuthResult(BaseModel):
    """
    Result of a successful authorization-code exchange.

    The claims are those of the identity token after signature and claim verification.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    id_token: IdentityToken
    claims: dict[str, Any]

    def __repr__(self) -> str:
        # Bearer credentials MUST NOT leak into logs
        return f"AuthResult(access_token='<REDACTED>', sub={self.claims.get('sub')!r})"

    def __str__(self) -> str:
        return self.__repr__()


class UserInfo(BaseModel):
    """
    Minimal identity record returned by the user-info endpoint.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "sub": "test",
                "email": "test@example.net",
            }
        },
    )

    user_id: str = Field(..., alias="sub", description="The stable subject identifier.", examples=["test"])
    email: str = Field(
        default="",
        description="The user's email address, empty when the IdP does not release it.",
        examples=["test@example.net"],
    )

    def to_json(self) -> str:
        """Serializes using the wire field names (`sub`, `email`)."""
        return self.model_dump_json(by_alias=True)
