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
MaasClient component: the relying-party facade over discovery, token exchange and profile fetching.
"""

from typing import Any

import httpx
from authlib.integrations.httpx_client import OAuth2Client
from opentelemetry.instrumentation.httpx import SyncOpenTelemetryTransport

from coreason_maas.authorization import build_auth_request_url
from coreason_maas.clock import Clock, RealClock
from coreason_maas.config import MaasClientConfig
from coreason_maas.discovery import DiscoveryResolver
from coreason_maas.exceptions import ConfigurationError
from coreason_maas.models import AuthResult, ProviderConfig, UserInfo
from coreason_maas.token_exchange import exchange_code
from coreason_maas.userinfo import fetch_user_info
from coreason_maas.utils.logger import logger
from coreason_maas.validator import IdentityTokenVerifier


def populate_defaults(
    transport: httpx.BaseTransport | None,
    clock: Clock | None,
) -> tuple[httpx.BaseTransport, Clock, bool]:
    """
    Resolves the runtime capabilities not carried by the settings model.

    Returns:
        The transport, the clock, and whether the transport was created here (and is therefore owned by the client).
    """
    owns_transport = transport is None
    return transport or httpx.HTTPTransport(), clock or RealClock(), owns_transport


class MaasClient:
    """
    OpenID Connect relying-party client for the MAAS authorization server.

    Discovery runs exactly once, inside the constructor; an instance is only returned once
    the provider configuration has been resolved. All query operations are then stateless
    and safe to call from several threads.
    """

    def __init__(
        self,
        config: MaasClientConfig,
        transport: httpx.BaseTransport | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the MaasClient and resolve the provider configuration.

        Args:
            config: The client configuration.
            transport: HTTP transport for all IdP calls. If not provided, an `httpx.HTTPTransport` is created.
            clock: Clock used between discovery attempts. Defaults to the real clock.

        Raises:
            DiscoveryFailure: If the provider configuration cannot be fetched within `config.provider_retries`.
            ConfigurationError: If the OAuth2 client cannot be initialized from the fetched configuration.
        """
        self.config = config
        transport, self.clock, self._owns_transport = populate_defaults(transport, clock)

        # One instrumented transport shared by the discovery/userinfo client and the OAuth2 client
        transport = SyncOpenTelemetryTransport(transport)
        self._client = httpx.Client(transport=transport, timeout=self.config.http_timeout)

        try:
            self._provider = DiscoveryResolver(
                client=self._client,
                discovery_uri=self.config.discovery_uri,
                retries=self.config.provider_retries,
                clock=self.clock,
            ).resolve()

            self._oauth = self._build_oauth_client(transport)
            self.verifier = IdentityTokenVerifier(
                jwks=self._provider.jwks,
                issuer=self._provider.issuer,
                audience=self.config.client_id,
                client_secret=self.config.client_secret,
                allowed_algorithms=self.config.allowed_algorithms,
                leeway=self.config.clock_skew_leeway,
                clock=self.clock,
            )
        except Exception:
            self.close()
            raise

        logger.info(f"MAAS client '{self.config.client_id}' ready (issuer {self._provider.issuer})")

    def _build_oauth_client(self, transport: httpx.BaseTransport) -> OAuth2Client:
        try:
            oauth = OAuth2Client(
                client_id=self.config.client_id,
                client_secret=self.config.client_secret.get_secret_value(),
                scope=" ".join(self.config.scope),
                redirect_uri=self.config.redirect_uri,
                token_endpoint=self._provider.token_endpoint,
                transport=transport,
                timeout=self.config.http_timeout,
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Unable to initialize OAuth2 client: {e}") from e
        return oauth

    def __enter__(self) -> "MaasClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Closes the HTTP clients when the transport is owned by this instance."""
        if not self._owns_transport:
            return
        oauth = getattr(self, "_oauth", None)
        if oauth is not None:
            oauth.close()
        self._client.close()

    @property
    def provider_config(self) -> ProviderConfig:
        return self._provider

    def get_auth_request_url(self, state: str, access_type: str = "", prompt: str = "") -> str:
        """
        Constructs the redirect URL for authorization at the IdP.

        Args:
            state: Opaque value set by the RP to maintain state between request and callback.
            access_type: Optional `access_type` parameter, omitted when empty.
            prompt: Optional `prompt` parameter, omitted when empty.

        Returns:
            str: The authorization URL.

        Raises:
            ValueError: If state is empty.
            URLConstructionError: If the resulting URL is malformed.
        """
        return build_auth_request_url(
            self._oauth,
            self._provider.authorization_endpoint,
            state,
            access_type=access_type,
            prompt=prompt,
        )

    def validate_auth(self, code: str) -> AuthResult:
        """
        Exchanges the authorization code for access and identity tokens and verifies the identity token.

        Args:
            code: The authorization code sent back in the redirect from the authorization server.

        Returns:
            AuthResult: The access token and the verified identity-token claims.

        Raises:
            TransportError: If the token request fails.
            TokenRequestError: If the code is invalid, expired or already used.
            DecodeError: If the token response is not valid JSON.
            MalformedTokenError: If the identity token is not well-formed.
            TokenVerificationError: If signature or claim validation fails.
        """
        return exchange_code(code, self._oauth, self.verifier, self._provider.token_endpoint)

    def get_user_info(self, access_token: str) -> UserInfo:
        """
        Retrieves `UserInfo` from the authorization server.

        Args:
            access_token: The access token returned by `validate_auth`.

        Returns:
            UserInfo: The user identifier and email.

        Raises:
            AccessTokenRejectedError: If the access token is invalid or expired.
            TransportError: If the request fails.
            DecodeError: If the response body is not the expected JSON.
        """
        return fetch_user_info(self._client, self._provider.userinfo_endpoint, access_token)
