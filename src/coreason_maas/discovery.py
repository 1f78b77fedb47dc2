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
Discovery component for fetching the provider configuration and signing keys.
"""

import httpx
from authlib.oidc.discovery import get_well_known_url
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import ValidationError

from coreason_maas.clock import Clock
from coreason_maas.exceptions import ConfigurationError, CoreasonMaasError, DecodeError, DiscoveryFailure
from coreason_maas.models import ProviderConfig
from coreason_maas.transport import safe_json_fetch
from coreason_maas.utils.logger import logger

tracer = trace.get_tracer(__name__)

SLEEP_PERIOD = 3.0


class DiscoveryResolver:
    """
    Fetches the Identity Provider's configuration and JWKS with a bounded, fixed-delay retry.

    Attributes:
        discovery_uri (str): The issuer base URI.
        retries (int): Extra attempts allowed after the first one.
        clock (Clock): Clock used to wait between attempts.
    """

    def __init__(
        self,
        client: httpx.Client,
        discovery_uri: str,
        retries: int,
        clock: Clock,
        sleep_period: float = SLEEP_PERIOD,
    ) -> None:
        """
        Initialize the DiscoveryResolver.

        Args:
            client: The HTTP client to use for requests.
            discovery_uri: The issuer base URI, without `/.well-known/openid-configuration`.
            retries: Number of retries after the first failed attempt.
            clock: The clock used for the delay between attempts.
            sleep_period: Seconds to wait between attempts. Defaults to 3.0.
        """
        self.client = client
        self.discovery_uri = discovery_uri
        self.retries = retries
        self.clock = clock
        self.sleep_period = sleep_period

    @property
    def well_known_url(self) -> str:
        return get_well_known_url(self.discovery_uri, external=True)

    def _fetch_provider_config(self) -> ProviderConfig:
        """
        Single attempt: fetch the discovery document, then the JWKS it points to.

        Raises:
            TransportError: If a request fails.
            DecodeError: If a response is not a JSON object.
            ConfigurationError: If the discovery document is missing required fields.
        """
        data = safe_json_fetch(self.client, self.well_known_url)
        try:
            config = ProviderConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid OIDC configuration from {self.well_known_url}: {e}") from e

        jwks = safe_json_fetch(self.client, config.jwks_uri)
        if not isinstance(jwks.get("keys"), list):
            raise DecodeError(f"JWKS from {config.jwks_uri} does not contain a 'keys' list")

        return config.model_copy(update={"jwks": jwks})

    def resolve(self) -> ProviderConfig:
        """
        Fetches the provider configuration, retrying up to `retries` times.

        Emits an OpenTelemetry span `resolve_provider_config`.

        Returns:
            ProviderConfig: The provider configuration including signing keys.

        Raises:
            DiscoveryFailure: If every attempt fails. Chained to the last error.
        """
        with tracer.start_as_current_span("resolve_provider_config") as span:
            span.set_attribute("oidc.discovery_url", self.well_known_url)
            attempts = 0
            while True:
                attempts += 1
                try:
                    provider = self._fetch_provider_config()
                except CoreasonMaasError as e:
                    logger.warning(f"Discovery attempt {attempts} against {self.well_known_url} failed: {e}")
                    if attempts > self.retries:
                        span.set_attribute("oidc.discovery_attempts", attempts)
                        span.record_exception(e)
                        span.set_status(Status(StatusCode.ERROR, str(e)))
                        raise DiscoveryFailure(
                            f"Failed to fetch OIDC configuration from {self.well_known_url} "
                            f"after {attempts} attempt(s): {e}",
                            attempts=attempts,
                            last_error=e,
                        ) from e
                    self.clock.sleep(self.sleep_period)
                    continue

                span.set_attribute("oidc.discovery_attempts", attempts)
                span.set_status(Status(StatusCode.OK))
                logger.info(f"Resolved OIDC configuration for issuer {provider.issuer} in {attempts} attempt(s)")
                return provider
