# bearchat/infra/jwt/pyjwt_token_codec.py
from __future__ import annotations

from typing import Any

import jwt

from bearchat.services._shared.errors import Expired, InvalidSignature, Malformed
from bearchat.services._shared.ports import SESSION_SUBJECTS, SessionClaims, TokenCodec

_REQUIRED_CLAIMS = ["exp", "iat", "sub", "uid"]


class PyJWTTokenCodec(TokenCodec):
    """
    HMAC-signed session tokens backed by PyJWT.

    The secret is bound at construction so the codec works outside of a
    Flask app context, and any service sharing the secret can verify tokens
    without calling back into this one.

    :param secret: Shared HMAC secret (at least 32 bytes for HS256).
    :param algorithm: Only this algorithm is accepted on verify.
    :param leeway: Clock skew tolerance in seconds for ``exp``/``iat``.
    """

    def __init__(self, secret: str, *, algorithm: str = "HS256", leeway: int = 0) -> None:
        if not secret:
            raise ValueError("A signing secret is required.")
        self._secret = secret
        self.algorithm = algorithm
        self.leeway = leeway

    def issue(self, claims: SessionClaims) -> str:
        payload: dict[str, Any] = {
            "uid": claims.user_id,
            "sub": claims.subject,
            "iss": claims.issuer,
            "iat": claims.issued_at,
            "exp": claims.expires_at,
        }
        if claims.jti:
            payload["jti"] = claims.jti
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> SessionClaims:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.DecodeError as exc:
            raise Malformed() from exc

        # Reject "none" and algorithm substitution before touching the key.
        if header.get("alg") != self.algorithm:
            raise InvalidSignature()

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                leeway=self.leeway,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise Expired() from exc
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            raise InvalidSignature() from exc
        except jwt.InvalidTokenError as exc:
            raise Malformed() from exc

        subject = payload.get("sub")
        user_id = payload.get("uid")
        if subject not in SESSION_SUBJECTS or not isinstance(user_id, str) or not user_id:
            raise Malformed()

        return SessionClaims(
            user_id=user_id,
            subject=subject,
            issuer=str(payload.get("iss", "")),
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
            jti=payload.get("jti"),
        )
