"""
Decoding of ECR authorization tokens.

An ECR token is base64("<user>:<password>"). The text is split on every ':'
and must produce exactly two parts, so passwords containing ':' are rejected
with FormatError rather than truncated. ECR never issues such passwords.
"""

import base64
import binascii
import urllib.parse
from typing import Tuple

from ecr_credentials.error_utils import DecodeError, FormatError
from ecr_credentials.models import AuthorizationEntry, DecodedCredential


def decode_authorization_token(token: str) -> Tuple[str, str]:
    """Decode a base64 authorization token into (username, password).

    Args:
        token: Base64 encoded "<user>:<password>" string

    Returns:
        Tuple of (username, password)

    Raises:
        DecodeError: If the token is not valid base64 or not UTF-8 text
        FormatError: If the decoded text is not exactly two ':'-separated non-empty parts
    """
    try:
        decoded = base64.b64decode(token or "", validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise DecodeError(
            "Error decoding authorization token",
            suggestions=["Token must be standard base64; check the upstream response"],
            details={"error_message": str(e)},
        ) from e

    parts = decoded.split(":")
    if len(parts) != 2:
        # Never include the decoded text, it holds the password
        raise FormatError(
            "Authorization token does not contain data in <user>:<password> format",
            details={"separator_count": len(parts) - 1},
        )

    username, password = parts
    if not username or not password:
        raise FormatError(
            "Authorization token has an empty username or password",
            details={"username_present": bool(username), "password_present": bool(password)},
        )
    return username, password


def parse_origin_host(endpoint: str) -> str:
    """Return the host[:port] of a proxy endpoint URL such as https://123.dkr.ecr.us-east-1.amazonaws.com

    Raises:
        FormatError: If the endpoint cannot be parsed or has no host
    """
    try:
        parsed = urllib.parse.urlsplit(endpoint or "")
    except ValueError as e:
        raise FormatError(
            f"Error parsing registry URL: {endpoint}",
            details={"error_message": str(e)},
        ) from e

    host = parsed.netloc.rpartition("@")[2]
    if not host:
        raise FormatError(f"Registry endpoint has no host component: {endpoint}")
    return host


def decode_authorization_entry(entry: AuthorizationEntry) -> DecodedCredential:
    username, password = decode_authorization_token(entry.authorization_token)
    return DecodedCredential(
        username=username,
        password=password,
        origin_host=parse_origin_host(entry.proxy_endpoint),
    )
