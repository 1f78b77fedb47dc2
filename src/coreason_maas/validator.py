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
IdentityTokenVerifier component for validating identity-token signatures and claims.
"""

import hashlib
import hmac
import re
from typing import Any, cast

from authlib.jose import JsonWebKey, JsonWebToken
from authlib.jose.errors import (
    BadSignatureError,
    ExpiredTokenError,
    InvalidClaimError,
    JoseError,
    MissingClaimError,
    UnsupportedAlgorithmError,
)
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import SecretStr

from coreason_maas.clock import Clock, RealClock
from coreason_maas.exceptions import (
    InvalidAudienceError,
    InvalidIssuerError,
    SignatureVerificationError,
    TokenExpiredError,
    TokenVerificationError,
)
from coreason_maas.models import IdentityToken
from coreason_maas.utils.logger import logger

tracer = trace.get_tracer(__name__)

_QUOTED_CLAIM = re.compile(r"""["'](\w+)["']""")


def _claim_name(error: Exception) -> str | None:
    """Returns the claim an Authlib claim error refers to."""
    name = getattr(error, "claim_name", None)
    if name:
        return str(name)
    match = _QUOTED_CLAIM.search(str(error))
    return match.group(1) if match else None


class IdentityTokenVerifier:
    """
    Validates identity tokens against the provider's JWKS and standard claims.

    Attributes:
        jwks (dict[str, Any]): The provider's JWK set.
        issuer (str): The expected issuer claim.
        audience (str): The expected audience claim (the client id).
        allowed_algorithms (list[str]): Accepted signing algorithms.
        leeway (int): Acceptable clock skew in seconds.
    """

    def __init__(
        self,
        jwks: dict[str, Any],
        issuer: str,
        audience: str,
        client_secret: SecretStr,
        allowed_algorithms: list[str],
        leeway: int = 0,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the IdentityTokenVerifier.

        Args:
            jwks: The JWK set published by the provider.
            issuer: The expected issuer (iss) claim.
            audience: The expected audience (aud) claim.
            client_secret: The client secret. Used as the key for HS* tokens and to anonymize subjects in logs.
            allowed_algorithms: List of allowed signing algorithms. REQUIRED.
            leeway: Acceptable clock skew in seconds. Defaults to 0.
            clock: Source of the current time for temporal claims. Defaults to the real clock.
        """
        self.jwks = jwks
        self.issuer = issuer
        self.audience = audience
        self.client_secret = client_secret
        self.allowed_algorithms = allowed_algorithms
        self.leeway = leeway
        self.clock = clock or RealClock()
        # Restrict the accepted algorithms, rejecting everything else (including "none")
        self.jwt = JsonWebToken(self.allowed_algorithms)

    def _anonymize(self, value: str) -> str:
        return hmac.new(
            self.client_secret.get_secret_value().encode("utf-8"),
            value.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _load_key(self, header: dict[str, Any], payload: Any) -> Any:
        """Selects the verification key for the token header."""
        alg = str(header.get("alg", ""))
        if alg.startswith("HS"):
            # Symmetric identity tokens are signed with the client secret (OIDC Core 10.1)
            return self.client_secret.get_secret_value().encode("utf-8")
        key_set = JsonWebKey.import_key_set(self.jwks)
        return key_set.find_by_kid(header.get("kid"))

    def verify(self, token: IdentityToken) -> dict[str, Any]:
        """
        Validates the identity token signature and claims.

        Emits an OpenTelemetry span `verify_identity_token`.

        Args:
            token: The parsed identity token.

        Returns:
            dict[str, Any]: The validated claims dictionary.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidAudienceError: If the audience is not the client id.
            InvalidIssuerError: If the issuer is not the provider issuer.
            SignatureVerificationError: If the signature is invalid, the algorithm is not allowed or no key matches.
            TokenVerificationError: For any other claim or JOSE failure.
        """
        with tracer.start_as_current_span("verify_identity_token") as span:
            claims_options = {
                "exp": {"essential": True},
                "nbf": {"essential": False},
                "aud": {"essential": True, "value": self.audience},
                "iss": {"essential": True, "value": self.issuer},
            }

            try:
                jwt_any = cast("Any", self.jwt)
                claims = jwt_any.decode(token.raw, self._load_key, claims_options=claims_options)
                claims.validate(now=int(self.clock.now()), leeway=self.leeway)
                payload = dict(claims)

            except ExpiredTokenError as e:
                logger.warning("Identity token rejected: expired")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise TokenExpiredError(f"Token has expired: {e}") from e
            except (InvalidClaimError, MissingClaimError) as e:
                logger.warning(f"Identity token rejected: {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                claim = _claim_name(e)
                if claim == "aud":
                    raise InvalidAudienceError(f"Invalid audience: {e}") from e
                if claim == "iss":
                    raise InvalidIssuerError(f"Invalid issuer: {e}") from e
                raise TokenVerificationError(f"Invalid claim: {e}") from e
            except (BadSignatureError, UnsupportedAlgorithmError) as e:
                logger.error(f"Identity token rejected: {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise SignatureVerificationError(f"Invalid signature: {e}") from e
            except JoseError as e:
                logger.error(f"Identity token rejected: JOSE error {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise TokenVerificationError(f"Token validation failed: {e}") from e
            except ValueError as e:
                # Authlib raises ValueError when no key in the set matches the header
                logger.error(f"Identity token rejected: no usable key ({e})")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise SignatureVerificationError(f"Invalid signature or key not found: {e}") from e

            user_hash = self._anonymize(str(payload.get("sub", "unknown")))
            logger.info(f"Identity token verified for user {user_hash}")
            span.set_attribute("enduser.id", user_hash)
            span.set_status(Status(StatusCode.OK))
            return payload
