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
OpenID Connect relying-party client for the MIRACL MAAS authorization server.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .client import MaasClient
from .clock import Clock, FakeClock, RealClock
from .config import MaasClientConfig
from .exceptions import (
    AccessTokenRejectedError,
    ConfigurationError,
    CoreasonMaasError,
    DecodeError,
    DiscoveryFailure,
    MalformedTokenError,
    TokenRequestError,
    TokenVerificationError,
    TransportError,
    URLConstructionError,
)
from .models import AuthResult, IdentityToken, ProviderConfig, UserInfo

__all__ = [
    "AccessTokenRejectedError",
    "AuthResult",
    "Clock",
    "ConfigurationError",
    "CoreasonMaasError",
    "DecodeError",
    "DiscoveryFailure",
    "FakeClock",
    "IdentityToken",
    "MaasClient",
    "MaasClientConfig",
    "MalformedTokenError",
    "ProviderConfig",
    "RealClock",
    "TokenRequestError",
    "TokenVerificationError",
    "TransportError",
    "URLConstructionError",
    "UserInfo",
]
