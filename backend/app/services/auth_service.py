"""
Guidepost Backend — Authentication Gate
=========================================

What:  Turns a raw launch-parameter credential into a VerifiedIdentity.
How:   Delegates signature checking to app.security.launch_params, then
       extracts the user id and signing timestamp and enforces the
       freshness window (strict mode only).
Who:   Called by LaunchParamsAuthMiddleware once per request.
When:  Upstream of every handler except exempted operator/docs paths.

Authentication Flow:
    Authorization: Bearer <blob>
        │
        ▼
    extract_credential ──(empty)──────────────▶ AuthenticationError
        │
        ▼
    verify_launch_params ──(InvalidSignature)─▶ AuthenticationError
        │
        ▼
    user id / issued_at ──(missing, bad)──────▶ AuthenticationError
        │
        ▼
    freshness (strict only) ──(too old)───────▶ SignatureExpiredError
        │
        ▼
    VerifiedIdentity

The gate holds only an immutable AuthConfig; concurrent requests share it
without locking.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from app.config import Settings
from app.exceptions import AuthenticationError, SignatureExpiredError
from app.security.launch_params import InvalidSignatureError, verify_launch_params

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


class AuthConfig(BaseModel):
    """
    Immutable authentication configuration.

    Built once at startup (from_settings) and handed to the gate at
    construction; never read from globals afterwards.
    """

    model_config = ConfigDict(frozen=True)

    secret: SecretStr
    strict: bool = False
    max_age_seconds: int = Field(default=3600, gt=0)
    signed_prefix: str = ""
    user_id_param: str = "vk_user_id"
    issued_at_param: str = "vk_ts"
    exempt_prefixes: Tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthConfig":
        return cls(
            secret=settings.app_secret_token,
            strict=settings.prod_flag,
            max_age_seconds=settings.launch_params_max_age,
            signed_prefix=settings.launch_params_signed_prefix,
            exempt_prefixes=tuple(settings.auth_exempt_prefixes_list),
        )


class VerifiedIdentity(BaseModel):
    """
    The caller, as proven by a valid launch-parameter signature.

    Lives for one request (request.state.identity / identity_var) and is
    never persisted.
    """

    model_config = ConfigDict(frozen=True)

    platform_user_id: int
    issued_at: datetime
    raw_params: Dict[str, str]

    def param(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Read an additional launch parameter, e.g. `vk_language`."""
        return self.raw_params.get(name, default)


def extract_credential(header_value: Optional[str]) -> str:
    """
    Pull the raw signed blob out of an Authorization header value.

    The `Bearer ` prefix is optional; the mini app client sends both forms.
    """
    credential = (header_value or "").strip()
    scheme, _, rest = credential.partition(" ")
    if scheme.lower() == BEARER_SCHEME:
        credential = rest.strip()
    if not credential:
        raise AuthenticationError(message="Missing authorization credential")
    return credential


def _int_param(params: Dict[str, str], name: str) -> int:
    value = params.get(name)
    if value is None:
        raise AuthenticationError(context={"reason": f"missing '{name}'"})
    # int() also accepts signs, whitespace, underscores and non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        raise AuthenticationError(context={"reason": f"non-numeric '{name}'"})
    return int(value)


class AuthenticationGate:
    """
    Request-scoped authentication built on the launch-parameter verifier.

    Responsibilities:
        - authenticate(): verify a credential and build the identity
        - is_exempt(): exemption check the caller must run first

    No I/O and no mutable state; `now` is passed in so the freshness check
    is deterministic under test.
    """

    def __init__(self, config: AuthConfig):
        self.config = config

    def is_exempt(self, path: str) -> bool:
        """True when `path` starts with one of the configured exempt prefixes."""
        return any(path.startswith(prefix) for prefix in self.config.exempt_prefixes)

    def authenticate(self, raw_blob: str, now: Optional[datetime] = None) -> VerifiedIdentity:
        """
        Verify `raw_blob` and return the caller's identity.

        Args:
            raw_blob: The signed launch parameters (no `Bearer ` prefix).
            now: Current time. Naive values are taken as UTC. Defaults to
                the wall clock.

        Raises:
            AuthenticationError: bad signature, missing/invalid user id or timestamp,
                or no secret configured.
            SignatureExpiredError: signature older than max_age_seconds (strict mode).
        """
        secret = self.config.secret.get_secret_value()
        if not secret:
            # An empty HMAC key would let anyone mint credentials
            logger.error("Launch-parameter secret is not configured; rejecting request")
            raise AuthenticationError(message="Authorization is not configured")

        try:
            params = verify_launch_params(
                raw_blob,
                secret,
                signed_prefix=self.config.signed_prefix,
            )
        except InvalidSignatureError as e:
            logger.debug("Launch-parameter verification failed: %s", e)
            raise AuthenticationError(context={"reason": "invalid_signature"}) from e

        issued_ts = _int_param(params, self.config.issued_at_param)
        user_id = _int_param(params, self.config.user_id_param)

        try:
            issued_at = datetime.fromtimestamp(issued_ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise AuthenticationError(context={"reason": "timestamp out of range"})

        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        age_seconds = int((now - issued_at).total_seconds())

        if age_seconds > self.config.max_age_seconds:
            if self.config.strict:
                logger.debug(
                    "Signature expired for user %d: age=%ds max=%ds",
                    user_id, age_seconds, self.config.max_age_seconds,
                )
                raise SignatureExpiredError(
                    age_seconds=age_seconds,
                    max_age_seconds=self.config.max_age_seconds,
                )
            logger.debug(
                "Accepting stale signature (age=%ds) outside strict mode", age_seconds
            )

        return VerifiedIdentity(
            platform_user_id=user_id,
            issued_at=issued_at,
            raw_params=params,
        )
