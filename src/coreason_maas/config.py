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
Configuration for the coreason-maas package.
"""

from typing import Annotated, Any
from urllib.parse import urlparse

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_DISCOVERY_URI = "https://api.mpin.io"
DEFAULT_SCOPE = ["openid", "email", "sub"]
WELL_KNOWN_SUFFIX = "/.well-known/openid-configuration"


class MaasClientConfig(BaseSettings):
    """
    Configuration settings for the MAAS relying-party client.

    Attributes:
        client_id (str): RP client ID at the authorization server. Required.
        client_secret (SecretStr): RP client secret at the authorization server. Required.
        redirect_uri (str): URI the authorization server redirects back to. Required.
        discovery_uri (str): Issuer base URI, without `/.well-known/openid-configuration`.
        provider_retries (int): Extra attempts made when fetching the provider configuration.
        scope (list[str]): Requested scopes. Defaults to openid, email and sub.
        http_timeout (float): Timeout in seconds for all IdP network operations.
        allowed_algorithms (list[str]): Signing algorithms accepted for identity tokens.
        clock_skew_leeway (int): Acceptable clock skew in seconds for temporal claims.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_MAAS_",
        case_sensitive=False,
    )

    client_id: str
    client_secret: SecretStr
    redirect_uri: str
    discovery_uri: str = DEFAULT_DISCOVERY_URI
    provider_retries: int = Field(default=0, ge=0)
    scope: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_SCOPE))
    http_timeout: float = Field(default=10.0, gt=0, description="Timeout in seconds for all IdP network operations.")
    allowed_algorithms: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["RS256"])
    clock_skew_leeway: int = Field(default=0, ge=0)
    unsafe_local_dev: bool = False

    @field_validator("client_id", "redirect_uri")
    @classmethod
    def require_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("client_secret")
    @classmethod
    def require_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("redirect_uri")
    @classmethod
    def validate_redirect_uri(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"redirect_uri must be an absolute http(s) URL, got '{v}'")
        return v

    @field_validator("discovery_uri")
    @classmethod
    def normalize_discovery_uri(cls, v: str) -> str:
        """
        Strips whitespace, trailing slashes and an explicit well-known suffix,
        so the value is always the issuer base URI.

        Args:
            v: The discovery URI as configured.

        Returns:
            The normalized base URI.
        """
        v = v.strip()
        if not v:
            return DEFAULT_DISCOVERY_URI
        v = v.rstrip("/")
        if v.endswith(WELL_KNOWN_SUFFIX):
            v = v[: -len(WELL_KNOWN_SUFFIX)].rstrip("/")

        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"discovery_uri must be an absolute http(s) URL, got '{v}'")
        return v

    @field_validator("scope", "allowed_algorithms", mode="before")
    @classmethod
    def split_string_list(cls, v: Any) -> Any:
        """Accepts space- or comma-separated strings (as found in env vars)."""
        if isinstance(v, str):
            return [item for item in v.replace(",", " ").split() if item]
        return v

    @field_validator("scope")
    @classmethod
    def default_scope(cls, v: list[str]) -> list[str]:
        return v or list(DEFAULT_SCOPE)

    @field_validator("allowed_algorithms")
    @classmethod
    def reject_none_algorithm(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one signing algorithm must be allowed.")
        if any(alg.lower() == "none" for alg in v):
            raise ValueError("The 'none' algorithm is never accepted for identity tokens.")
        return v

    @model_validator(mode="after")
    def validate_https(self) -> "MaasClientConfig":
        """
        Ensures that the discovery URI uses HTTPS, unless strictly opted out for local dev.
        """
        if self.discovery_uri.startswith("http://") and not self.unsafe_local_dev:
            raise ValueError("HTTPS is required for production. Set 'unsafe_local_dev=True' only for local testing.")
        return self
