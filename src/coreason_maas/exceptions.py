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
Custom exceptions for the coreason-maas package.
"""


class CoreasonMaasError(Exception):
    """Base exception for all coreason-maas errors."""


class DiscoveryFailure(CoreasonMaasError):
    """
    Raised when the provider configuration could not be fetched within the retry budget.
    Fatal to client construction.

    Attributes:
        attempts (int): Number of discovery attempts made.
        last_error (Exception | None): The error raised by the final attempt.
    """

    def __init__(self, message: str, attempts: int = 0, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class ConfigurationError(CoreasonMaasError):
    """Raised when client configuration or the provider document has an invalid shape."""


class URLConstructionError(CoreasonMaasError):
    """Raised when the authorization request URL is not a well-formed URL."""


class MalformedTokenError(CoreasonMaasError):
    """Raised when the identity token is not a well-formed compact-serialized JWT."""


class TokenVerificationError(CoreasonMaasError):
    """
    Raised when the identity token fails signature or claim validation.
    Authentication is rejected.
    """


class TokenExpiredError(TokenVerificationError):
    """Raised when the identity token has expired."""


class InvalidAudienceError(TokenVerificationError):
    """Raised when the token's audience does not match the client id."""


class InvalidIssuerError(TokenVerificationError):
    """Raised when the token's issuer does not match the provider issuer."""


class SignatureVerificationError(TokenVerificationError):
    """Raised when the token's signature cannot be verified."""


class TokenRequestError(CoreasonMaasError):
    """
    Raised when the token endpoint answers with an OAuth2 error
    (e.g. `invalid_grant` for a consumed or expired code).
    """

    def __init__(self, message: str, error: str | None = None, description: str | None = None) -> None:
        super().__init__(message)
        self.error = error
        self.description = description


class TransportError(CoreasonMaasError):
    """Raised when an outbound HTTP call fails."""


class AccessTokenRejectedError(TransportError):
    """Raised when the user-info endpoint rejects the bearer token (401/403)."""


class DecodeError(CoreasonMaasError):
    """Raised when a response body is not valid or expected JSON."""


class OversizedResponseError(DecodeError):
    """Raised when an HTTP response is too large."""
