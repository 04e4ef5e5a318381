"""
Guidepost Backend — Launch Parameter Signature Tests
======================================================

What:  Tests for signing and verifying launch-parameter blobs.

What we test:
    ✅ A blob signed with the secret verifies and returns its parameters
    ✅ Changing the signature, a value, or the secret fails verification
    ✅ Parameter order in the blob does not matter
    ✅ Malformed blobs (no sign, duplicate keys, bad base64) are rejected
    ✅ Signed-prefix filtering ignores unsigned extras
"""

import base64
import hashlib
import hmac
from urllib.parse import urlencode

import pytest

from app.security.launch_params import (
    InvalidSignatureError,
    build_launch_query,
    canonical_string,
    parse_launch_params,
    sign_launch_params,
    verify_launch_params,
)

SECRET = "wvl68m4dR1UpLrVRli"

PARAMS = {
    "vk_user_id": "494075",
    "vk_app_id": "6736218",
    "vk_is_app_user": "1",
    "vk_are_notifications_enabled": "1",
    "vk_language": "ru",
    "vk_access_token_settings": "",
    "vk_platform": "android",
}


def _flip_char(value: str, index: int) -> str:
    replacement = "A" if value[index] != "A" else "B"
    return value[:index] + replacement + value[index + 1:]


class TestCanonicalString:

    def test_sorted_by_key_and_excludes_sign(self):
        result = canonical_string({"b": "2", "sign": "x", "a": "1"})
        assert result == "a=1&b=2"

    def test_prefix_filter(self):
        result = canonical_string({"vk_b": "2", "utm_source": "ad", "vk_a": "1"}, "vk_")
        assert result == "vk_a=1&vk_b=2"

    def test_values_are_url_encoded(self):
        result = canonical_string({"vk_ref": "a&b=c"})
        assert result == "vk_ref=a%26b%3Dc"


class TestSignLaunchParams:

    def test_matches_reference_hmac(self):
        """The signature is unpadded base64url of HMAC-SHA256 over the sorted pairs."""
        message = urlencode(sorted(PARAMS.items())).encode()
        digest = hmac.new(SECRET.encode(), message, hashlib.sha256).digest()
        expected = base64.urlsafe_b64encode(digest).decode().rstrip("=")

        assert sign_launch_params(PARAMS, SECRET) == expected

    def test_signature_has_no_padding(self):
        assert "=" not in sign_launch_params(PARAMS, SECRET)


class TestVerifyLaunchParams:

    def test_round_trip(self):
        blob = build_launch_query(PARAMS, SECRET)
        assert verify_launch_params(blob, SECRET) == PARAMS

    def test_sign_not_returned(self):
        blob = build_launch_query(PARAMS, SECRET)
        assert "sign" not in verify_launch_params(blob, SECRET)

    def test_accepts_full_url_and_leading_question_mark(self):
        blob = build_launch_query(PARAMS, SECRET)
        assert verify_launch_params("?" + blob, SECRET) == PARAMS
        assert verify_launch_params(f"https://example.org/app?{blob}#hash", SECRET) == PARAMS

    def test_order_independent(self):
        signature = sign_launch_params(PARAMS, SECRET)
        reordered = urlencode(list(reversed(list(PARAMS.items()))) + [("sign", signature)])
        assert verify_launch_params(reordered, SECRET) == PARAMS

    @pytest.mark.parametrize("first", [True, False], ids=["first-char", "last-char"])
    def test_altered_signature_fails(self, first):
        signature = sign_launch_params(PARAMS, SECRET)
        tampered = _flip_char(signature, 0 if first else len(signature) - 1)
        blob = urlencode(list(PARAMS.items()) + [("sign", tampered)])

        with pytest.raises(InvalidSignatureError):
            verify_launch_params(blob, SECRET)

    def test_altered_value_fails(self):
        blob = build_launch_query(PARAMS, SECRET).replace("vk_user_id=494075", "vk_user_id=1")
        with pytest.raises(InvalidSignatureError):
            verify_launch_params(blob, SECRET)

    def test_wrong_secret_fails(self):
        blob = build_launch_query(PARAMS, SECRET)
        with pytest.raises(InvalidSignatureError):
            verify_launch_params(blob, "another-secret")

    def test_missing_sign_fails(self):
        with pytest.raises(InvalidSignatureError, match="missing"):
            verify_launch_params(urlencode(PARAMS), SECRET)

    def test_empty_blob_fails(self):
        with pytest.raises(InvalidSignatureError):
            verify_launch_params("", SECRET)

    def test_non_base64_sign_fails(self):
        blob = urlencode(list(PARAMS.items()) + [("sign", "not*base64!")])
        with pytest.raises(InvalidSignatureError):
            verify_launch_params(blob, SECRET)

    def test_padded_sign_accepted(self):
        signature = sign_launch_params(PARAMS, SECRET)
        padded = signature + "=" * (-len(signature) % 4)
        blob = urlencode(list(PARAMS.items()) + [("sign", padded)])
        assert verify_launch_params(blob, SECRET) == PARAMS

    def test_duplicate_key_fails(self):
        blob = build_launch_query(PARAMS, SECRET) + "&vk_user_id=1"
        with pytest.raises(InvalidSignatureError, match="duplicate"):
            verify_launch_params(blob, SECRET)

    def test_unsigned_extras_ignored_with_prefix(self):
        blob = build_launch_query(PARAMS, SECRET, signed_prefix="vk_") + "&utm_source=feed"
        params = verify_launch_params(blob, SECRET, signed_prefix="vk_")
        assert params["utm_source"] == "feed"
        assert params["vk_user_id"] == "494075"

    def test_unsigned_extras_rejected_without_prefix(self):
        blob = build_launch_query(PARAMS, SECRET, signed_prefix="vk_") + "&utm_source=feed"
        with pytest.raises(InvalidSignatureError):
            verify_launch_params(blob, SECRET)

    def test_bytes_secret(self):
        blob = build_launch_query(PARAMS, SECRET)
        assert verify_launch_params(blob, SECRET.encode()) == PARAMS


class TestParseLaunchParams:

    def test_blank_values_kept(self):
        assert parse_launch_params("a=&b=1") == {"a": "", "b": "1"}

    def test_pair_without_equals_rejected(self):
        with pytest.raises(InvalidSignatureError):
            parse_launch_params("a=1&broken")
