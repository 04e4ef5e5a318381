"""
Guidepost Backend — Launch Parameter Signatures
=================================================

What:  Verifies that a launch-parameter blob was signed by the hosting platform.
How:   HMAC-SHA256 over a canonical, key-sorted `key=value&...` string,
       compared in constant time with the blob's `sign` parameter.
Who:   Called by AuthenticationGate once per request; by tests and the
       local development signer to produce credentials.
When:  Before any handler logic runs.

Canonical form:
    Input:     vk_user_id=42&vk_ts=1700000000&sign=abc&vk_app_id=7
    Signed:    every key except `sign` (optionally only keys with a prefix)
    Sorted:    vk_app_id, vk_ts, vk_user_id
    String:    vk_app_id=7&vk_ts=1700000000&vk_user_id=42
    Digest:    HMAC-SHA256(secret, string), URL-safe base64 without padding

Everything here is pure: no I/O, no clock, no state. Identical input and
secret always give the same answer.
"""

import base64
import binascii
import hashlib
import hmac
from typing import Dict, Mapping, Union
from urllib.parse import parse_qsl, urlencode

SIGN_PARAM = "sign"

ParameterMap = Dict[str, str]


class InvalidSignatureError(Exception):
    """
    The blob is malformed or its signature does not match.

    Never a server fault: callers treat it as "not authenticated".
    The message names the reason for server-side logs only.
    """


def _as_key(secret: Union[bytes, str]) -> bytes:
    return secret.encode("utf-8") if isinstance(secret, str) else secret


def _query_part(raw_blob: str) -> str:
    """Reduce a launch URL or `?query` to the bare query string."""
    blob = raw_blob.strip()
    if "#" in blob:
        blob = blob.split("#", 1)[0]
    if "?" in blob:
        blob = blob.split("?", 1)[1]
    return blob


def parse_launch_params(raw_blob: str) -> ParameterMap:
    """
    Decode a URL-encoded launch-parameter blob into a map.

    Raises:
        InvalidSignatureError: blank blob, a pair without `=`, an undecodable
            percent-escape, or a key present more than once.
    """
    query = _query_part(raw_blob)
    if not query:
        raise InvalidSignatureError("empty launch parameters")

    try:
        pairs = parse_qsl(
            query,
            keep_blank_values=True,
            strict_parsing=True,
            encoding="utf-8",
            errors="strict",
        )
    except ValueError as e:
        # UnicodeDecodeError is a ValueError too
        raise InvalidSignatureError(f"undecodable launch parameters: {e}") from e

    params: ParameterMap = {}
    for key, value in pairs:
        if key in params:
            raise InvalidSignatureError(f"duplicate parameter '{key}'")
        params[key] = value
    return params


def canonical_string(params: Mapping[str, str], signed_prefix: str = "") -> str:
    """
    Build the signing input: signed parameters sorted by key, `&`-joined.

    Values are URL-encoded the same way the platform encodes them, so a
    value containing `&` or `=` cannot forge an extra pair.
    """
    signed = sorted(
        (key, value)
        for key, value in params.items()
        if key != SIGN_PARAM and key.startswith(signed_prefix)
    )
    return urlencode(signed)


def _digest(params: Mapping[str, str], secret: Union[bytes, str], signed_prefix: str) -> bytes:
    message = canonical_string(params, signed_prefix).encode("utf-8")
    return hmac.new(_as_key(secret), message, hashlib.sha256).digest()


def _decode_sign(value: str) -> bytes:
    # Platform emits unpadded URL-safe base64; restore padding before decoding
    unpadded = value.rstrip("=")
    padded = unpadded + "=" * (-len(unpadded) % 4)
    try:
        decoded = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidSignatureError("signature is not valid base64url") from e
    # The trailing character carries unused bits; only the canonical
    # spelling of a digest is accepted
    if base64.urlsafe_b64encode(decoded).decode("ascii").rstrip("=") != unpadded:
        raise InvalidSignatureError("signature is not canonically encoded")
    return decoded


def sign_launch_params(
    params: Mapping[str, str],
    secret: Union[bytes, str],
    *,
    signed_prefix: str = "",
) -> str:
    """Compute the `sign` value for a parameter map."""
    digest = _digest(params, secret, signed_prefix)
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def build_launch_query(
    params: Mapping[str, str],
    secret: Union[bytes, str],
    *,
    signed_prefix: str = "",
) -> str:
    """Return a complete signed blob, as the platform appends it to the app URL."""
    unsigned = {k: v for k, v in params.items() if k != SIGN_PARAM}
    signature = sign_launch_params(unsigned, secret, signed_prefix=signed_prefix)
    return urlencode(list(unsigned.items()) + [(SIGN_PARAM, signature)])


def verify_launch_params(
    raw_blob: str,
    secret: Union[bytes, str],
    *,
    signed_prefix: str = "",
) -> ParameterMap:
    """
    Verify a signed launch-parameter blob.

    Args:
        raw_blob: Query string, `?query`, or a full launch URL.
        secret: The mini app's shared secret.
        signed_prefix: Only keys with this prefix are signed ("" = all keys).

    Returns:
        The decoded parameter map, without `sign`.

    Raises:
        InvalidSignatureError: malformed blob, missing `sign`, or mismatch.
    """
    params = parse_launch_params(raw_blob)

    sign = params.pop(SIGN_PARAM, None)
    if not sign:
        raise InvalidSignatureError("missing signature parameter")

    provided = _decode_sign(sign)
    expected = _digest(params, secret, signed_prefix)

    if not hmac.compare_digest(expected, provided):
        raise InvalidSignatureError("signature mismatch")

    return params
