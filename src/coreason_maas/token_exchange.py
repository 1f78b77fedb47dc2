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
Authorization-code exchange: token request, identity-token parsing and verification.
"""

import binascii
from typing import Any, Protocol

import httpx
from authlib.common.encoding import json_loads, to_bytes, urlsafe_b64decode
from authlib.integrations.base_client import OAuthError
from pydantic import ValidationError

from coreason_maas.exceptions import DecodeError, MalformedTokenError, TokenRequestError, TransportError
from coreason_maas.models import AuthResult, IdentityToken, TokenResponse
from coreason_maas.utils.logger import logger

GRANT_TYPE_AUTH_CODE = "authorization_code"


class TokenRequester(Protocol):
    """
    The part of an OAuth2 client that calls the token endpoint.
    Satisfied by `authlib.integrations.httpx_client.OAuth2Client`.
    """

    def fetch_token(self, url: str | None = None, **kwargs: Any) -> dict[str, Any]: ...


class IdentityVerifier(Protocol):
    """Verifies a parsed identity token and returns its claims."""

    def verify(self, token: IdentityToken) -> dict[str, Any]: ...


def _decode_segment(segment: str, name: str) -> bytes:
    try:
        return urlsafe_b64decode(to_bytes(segment))
    except (binascii.Error, TypeError, ValueError) as e:
        raise MalformedTokenError(f"Invalid {name} encoding: {e}") from e


def _decode_json_segment(segment: str, name: str) -> dict[str, Any]:
    if not segment:
        raise MalformedTokenError(f"Identity token {name} segment is empty")
    data = _decode_segment(segment, name)
    try:
        obj = json_loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedTokenError(f"Identity token {name} is not valid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise MalformedTokenError(f"Identity token {name} must be a JSON object")
    return obj


def parse_identity_token(raw: str) -> IdentityToken:
    """
    Decodes a compact-serialized identity token without verifying it.

    Args:
        raw: The `header.claims.signature` string.

    Returns:
        IdentityToken: The decoded token.

    Raises:
        MalformedTokenError: If the string is not three base64url segments with JSON header and claims.
    """
    raw = raw.strip()
    segments = raw.split(".")
    if len(segments) != 3:
        raise MalformedTokenError(f"Identity token must have 3 segments, got {len(segments)}")

    header_segment, claims_segment, signature_segment = segments
    return IdentityToken(
        raw=raw,
        header=_decode_json_segment(header_segment, "header"),
        claims=_decode_json_segment(claims_segment, "claims"),
        signature=_decode_segment(signature_segment, "signature"),
    )


def request_token(oauth: TokenRequester, token_endpoint: str, code: str) -> TokenResponse:
    """
    Exchanges the authorization code at the token endpoint. Never retried: codes are single-use.

    Raises:
        TransportError: If the request fails at the network or HTTP level.
        TokenRequestError: If the endpoint answers with an OAuth2 error.
        DecodeError: If the response is not a valid token response.
    """
    try:
        raw_token = oauth.fetch_token(token_endpoint, grant_type=GRANT_TYPE_AUTH_CODE, code=code)
    except OAuthError as e:
        logger.warning(f"Token endpoint rejected the authorization code: {e.error}")
        raise TokenRequestError(
            f"Token request failed: {e.error}: {e.description}", error=e.error, description=e.description
        ) from e
    except httpx.HTTPError as e:
        logger.error(f"Token request to {token_endpoint} failed: {e}")
        raise TransportError(f"Token request to {token_endpoint} failed: {e}") from e
    except ValueError as e:
        raise DecodeError(f"Invalid JSON response from token endpoint: {e}") from e

    try:
        return TokenResponse(**dict(raw_token))
    except (TypeError, ValidationError) as e:
        raise DecodeError(f"Invalid token response: {e}") from e


def exchange_code(
    code: str,
    oauth: TokenRequester,
    verifier: IdentityVerifier,
    token_endpoint: str,
) -> AuthResult:
    """
    Exchanges an authorization code for tokens and verifies the identity token.

    Each call is independent: request, parse and verify run in order and the first failure is raised.

    Args:
        code: The authorization code from the IdP redirect.
        oauth: The OAuth2 client holding the client credentials.
        verifier: The identity-token verifier.
        token_endpoint: The provider's token endpoint.

    Returns:
        AuthResult: The access token, the parsed identity token and its verified claims.

    Raises:
        ValueError: If code is empty.
        TransportError: If the token request fails.
        TokenRequestError: If the token endpoint rejects the code.
        DecodeError: If the token response is not valid JSON.
        MalformedTokenError: If the identity token is missing or not well-formed.
        TokenVerificationError: If the identity token signature or claims are invalid.
    """
    if not code:
        raise ValueError("Authorization code must not be empty.")

    token_response = request_token(oauth, token_endpoint, code)

    if not token_response.id_token:
        raise MalformedTokenError("Token response does not contain an id_token")
    id_token = parse_identity_token(token_response.id_token)
    logger.debug(f"Parsed identity token (alg={id_token.header.get('alg')})")

    claims = verifier.verify(id_token)

    return AuthResult(access_token=token_response.access_token, id_token=id_token, claims=claims)
