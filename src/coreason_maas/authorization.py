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
Authorization request URL construction.
"""

from typing import Any, Protocol

import httpx

from coreason_maas.exceptions import URLConstructionError


class AuthorizationURLFactory(Protocol):
    """
    The part of an OAuth2 client that builds authorization URLs.
    Satisfied by `authlib.integrations.httpx_client.OAuth2Client`.
    """

    def create_authorization_url(self, url: str, state: str | None = None, **kwargs: Any) -> tuple[str, str]: ...


def build_auth_request_url(
    oauth: AuthorizationURLFactory,
    authorization_endpoint: str,
    state: str,
    access_type: str = "",
    prompt: str = "",
) -> str:
    """
    Builds the URL that starts the browser login at the IdP.

    Client id, redirect URI, scope and response type come from the OAuth client;
    `access_type` and `prompt` are only added when non-empty.

    Args:
        oauth: The OAuth2 client.
        authorization_endpoint: The provider's authorization endpoint.
        state: Opaque anti-forgery value, returned unchanged on the redirect.
        access_type: Optional `access_type` parameter.
        prompt: Optional `prompt` parameter.

    Returns:
        str: The fully qualified authorization URL.

    Raises:
        ValueError: If state is empty.
        URLConstructionError: If the result is not a well-formed absolute URL.
    """
    if not state:
        raise ValueError("State must be a non-empty opaque string.")

    extra: dict[str, str] = {}
    if access_type:
        extra["access_type"] = access_type
    if prompt:
        extra["prompt"] = prompt

    raw_url, _ = oauth.create_authorization_url(authorization_endpoint, state=state, **extra)

    try:
        url = httpx.URL(raw_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise URLConstructionError(f"Invalid authorization URL '{raw_url}': {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise URLConstructionError(f"Authorization URL '{raw_url}' is not an absolute http(s) URL")

    return str(url)
