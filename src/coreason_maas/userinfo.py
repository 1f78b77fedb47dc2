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
Profile fetching from the provider's user-info endpoint.
"""

import httpx
from pydantic import ValidationError

from coreason_maas.exceptions import AccessTokenRejectedError, DecodeError, TransportError
from coreason_maas.models import UserInfo
from coreason_maas.transport import decode_json_object, read_limited
from coreason_maas.utils.logger import logger


def parse_user_info(content: bytes, source: str = "user-info endpoint") -> UserInfo:
    """
    Decodes a user-info JSON body into `UserInfo`.

    Raises:
        DecodeError: If the body is not a JSON object with a string `sub` (and a string `email`, when present).
    """
    data = decode_json_object(content, source)
    try:
        return UserInfo.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Unexpected user-info response shape: {e}") from e


def fetch_user_info(client: httpx.Client, userinfo_endpoint: str, access_token: str) -> UserInfo:
    """
    Retrieves the user profile with a single bearer-authenticated GET.

    Args:
        client: The HTTP client to use.
        userinfo_endpoint: The provider's user-info endpoint.
        access_token: The access token obtained from `validate_auth`.

    Returns:
        UserInfo: The decoded identity record.

    Raises:
        ValueError: If the access token is empty.
        AccessTokenRejectedError: If the endpoint answers 401 or 403.
        TransportError: If the request fails or returns another non-2xx status.
        DecodeError: If the body is oversized, not JSON, or missing `sub`.
    """
    if not access_token:
        raise ValueError("Access token must not be empty.")

    headers = {
        "Authorization": f"Bearer {access_token}",
        "Accept": "application/json",
    }

    try:
        with client.stream("GET", userinfo_endpoint, headers=headers) as response:
            content = read_limited(response)
            status_code = response.status_code
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(f"User-info request to {userinfo_endpoint} failed: {e}")
        raise TransportError(f"User-info request to {userinfo_endpoint} failed: {e}") from e

    if status_code in (401, 403):
        logger.warning(f"User-info endpoint rejected the access token (HTTP {status_code})")
        raise AccessTokenRejectedError(f"Access token rejected by user-info endpoint (HTTP {status_code})")
    if not 200 <= status_code < 300:
        raise TransportError(f"User-info endpoint returned HTTP {status_code}")

    return parse_user_info(content)
