"""
Upstream authorization for registry credentials.

This package provides:
- EcrTokenSource: fetches authorization tokens from AWS ECR
- Token decoding into username/password and origin host
"""

from ecr_credentials.auth.ecr import EcrTokenSource
from ecr_credentials.auth.token_decoder import (
    decode_authorization_entry,
    decode_authorization_token,
    parse_origin_host,
)

__all__ = [
    "EcrTokenSource",
    "decode_authorization_entry",
    "decode_authorization_token",
    "parse_origin_host",
]
