import hashlib
import secrets
from calendar import timegm
from datetime import datetime
from typing import Any, cast

from jose import JWTError, jwt

from cutroom.domain.errors import Unauthenticated

ALGORITHM = "HS256"


class JWTTokenAdapter:
    """
    HS256 tokens with one signing key per credential kind.

    Expiry is checked against the injected clock rather than wall time,
    so callers stay deterministic under test.
    """

    def __init__(self, secrets_by_kind: dict[str, str]):
        missing = [k for k, v in secrets_by_kind.items() if not v]
        if missing:
            raise ValueError(f"Empty signing secret for: {', '.join(missing)}")
        self._secrets = dict(secrets_by_kind)

    def _secret(self, kind: str) -> str:
        try:
            return self._secrets[kind]
        except KeyError:
            raise ValueError(f"No signing secret configured for token kind '{kind}'") from None

    def issue(self, kind: str, subject: str, expires_at: datetime, **claims: Any) -> str:
        to_encode: dict[str, Any] = dict(claims)
        to_encode.update(
            {
                "sub": subject,
                "typ": kind,
                "exp": timegm(expires_at.utctimetuple()),
                # Unique per token so two issues in the same second never collide.
                "jti": secrets.token_urlsafe(16),
            }
        )
        encoded: str = jwt.encode(to_encode, self._secret(kind), algorithm=ALGORITHM)
        return encoded

    def verify(self, kind: str, token: str, now: datetime) -> dict[str, Any]:
        if not token:
            raise Unauthenticated("Credential missing")
        try:
            payload = jwt.decode(
                token,
                self._secret(kind),
                algorithms=[ALGORITHM],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTError:
            raise Unauthenticated("Credential invalid") from None

        if payload.get("typ") != kind:
            raise Unauthenticated("Credential has the wrong type")
        exp = payload.get("exp")
        if not isinstance(exp, int | float) or exp <= timegm(now.utctimetuple()):
            raise Unauthenticated("Credential expired")
        if not isinstance(payload.get("sub"), str):
            raise Unauthenticated("Credential has no subject")
        return cast(dict[str, Any], payload)

    def fingerprint(self, token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()
