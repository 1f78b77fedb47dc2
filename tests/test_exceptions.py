# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_identity

from coreason_maas.exceptions import (
    AccessTokenRejectedError,
    ConfigurationError,
    CoreasonMaasError,
    DecodeError,
    DiscoveryFailure,
    InvalidAudienceError,
    InvalidIssuerError,
    MalformedTokenError,
    OversizedResponseError,
    SignatureVerificationError,
    TokenExpiredError,
    TokenRequestError,
    TokenVerificationError,
    TransportError,
    URLConstructionError,
)


def test_exception_hierarchy():
    """Test that all custom exceptions inherit from CoreasonMaasError."""
    for exc in (
        DiscoveryFailure,
        ConfigurationError,
        URLConstructionError,
        MalformedTokenError,
        TokenVerificationError,
        TokenRequestError,
        TransportError,
        DecodeError,
    ):
        assert issubclass(exc, CoreasonMaasError)


def test_refined_errors_keep_their_category():
    assert issubclass(TokenExpiredError, TokenVerificationError)
    assert issubclass(InvalidAudienceError, TokenVerificationError)
    assert issubclass(InvalidIssuerError, TokenVerificationError)
    assert issubclass(SignatureVerificationError, TokenVerificationError)
    assert issubclass(AccessTokenRejectedError, TransportError)
    assert issubclass(OversizedResponseError, DecodeError)


def test_exception_instantiation():
    """Test that exceptions can be instantiated."""
    err = TokenExpiredError("Token expired")
    assert str(err) == "Token expired"


def test_discovery_failure_attributes():
    cause = TransportError("connection refused")
    err = DiscoveryFailure("discovery failed", attempts=4, last_error=cause)

    assert err.attempts == 4
    assert err.last_error is cause
    assert str(err) == "discovery failed"


def test_token_request_error_attributes():
    err = TokenRequestError("rejected", error="invalid_grant", description="code expired")

    assert err.error == "invalid_grant"
    assert err.description == "code expired"
    assert TokenRequestError("rejected").error is None
