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
Bounded HTTP helpers shared by discovery and profile fetching.
"""

import json
from typing import Any

import httpx

from coreason_maas.exceptions import DecodeError, OversizedResponseError, TransportError

MAX_RESPONSE_BYTES = 1_000_000


def read_limited(response: httpx.Response, limit: int = MAX_RESPONSE_BYTES) -> bytes:
    """
    Reads a streamed response body, refusing anything over `limit` bytes.

    Raises:
        OversizedResponseError: If Content-Length or the received body exceeds the limit.
    """
    content_length = response.headers.get("Content-Length")
    if content_length:
        try:
            if int(content_length) > limit:
                raise OversizedResponseError("Response too large")
        except ValueError:
            pass

    content = bytearray()
    for chunk in response.iter_bytes():
        content.extend(chunk)
        if len(content) > limit:
            raise OversizedResponseError("Response too large")
    return bytes(content)


def decode_json_object(content: bytes, source: str) -> dict[str, Any]:
    """
    Decodes a JSON object body.

    Raises:
        DecodeError: If the body is not JSON or not a JSON object.
    """
    try:
        data = json.loads(content)
    except ValueError as e:
        raise DecodeError(f"Invalid JSON response from {source}: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a JSON object from {source}, got {type(data).__name__}")
    return data


def safe_json_fetch(
    client: httpx.Client,
    url: str,
    method: str = "GET",
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Performs a request and decodes a bounded JSON object response.

    Args:
        client: The HTTP client to use.
        url: The target URL.
        method: The HTTP method. Defaults to GET.
        headers: Extra request headers.

    Returns:
        dict[str, Any]: The decoded JSON object.

    Raises:
        TransportError: If the request fails or returns a non-2xx status.
        DecodeError: If the body is oversized or not a JSON object.
    """
    try:
        with client.stream(method, url, headers=headers, follow_redirects=True) as response:
            content = read_limited(response)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TransportError(f"{method} {url} returned HTTP {e.response.status_code}") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise TransportError(f"{method} {url} failed: {e}") from e

    return decode_json_object(content, url)
