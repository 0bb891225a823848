# Overview: Service-layer operations for session tokens; signing, verification and cookie transport.

"""
Stateless Session Token Codec

WHY: Every request must carry a verifiable identity (user, store, role)
without a database round trip to find the session. Tokens are HS256 JWTs
signed with a process-wide secret and expire 1 day after issuance.

SECURITY FEATURES:
- Secret loaded once at startup (init_app), never read ad hoc
- Refuses to boot in production with the development default secret
- verify() never raises: callers get an InvalidSession with a reason
- Cookie is httpOnly, SameSite=Lax, path "/", secure in production
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError, ExpiredSignatureError


ALGORITHM = "HS256"
COOKIE_NAME = "session"
DEFAULT_MAX_AGE = timedelta(days=1)
DEV_SECRET = "dev-session-secret-change-me"

REASON_MISSING = "missing"
REASON_MALFORMED = "malformed"
REASON_EXPIRED = "expired"


@dataclass(frozen=True)
class SessionClaims:
    """Identity and role payload carried inside a session token."""
    user_id: int
    store_id: int
    name: str
    email: str
    active: bool
    role: str

    @classmethod
    def from_user(cls, user) -> "SessionClaims":
        return cls(
            user_id=user.id,
            store_id=user.store_id,
            name=user.name,
            email=user.email,
            active=bool(user.is_active),
            role=user.role,
        )

    def to_payload(self) -> dict:
        return {
            "id": self.user_id,
            "storeId": self.store_id,
            "name": self.name,
            "email": self.email,
            "active": self.active,
            "role": self.role,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "SessionClaims | None":
        try:
            user_id = payload["id"]
            store_id = payload["storeId"]
            name = payload["name"]
            email = payload["email"]
            active = payload["active"]
            role = payload["role"]
        except (KeyError, TypeError):
            return None

        if not isinstance(user_id, int) or isinstance(user_id, bool):
            return None
        if not isinstance(store_id, int) or isinstance(store_id, bool):
            return None
        if not all(isinstance(v, str) for v in (name, email, role)):
            return None
        if not isinstance(active, bool):
            return None

        return cls(
            user_id=user_id,
            store_id=store_id,
            name=name,
            email=email,
            active=active,
            role=role,
        )


@dataclass(frozen=True)
class InvalidSession:
    """Typed verification failure; falsy so callers can branch on it."""
    reason: str

    def __bool__(self) -> bool:
        return False


class SessionCodec:
    """
    Signs and verifies session tokens.

    Usable standalone (SessionCodec(secret=...)) or as a Flask extension
    configured from SESSION_SECRET / SESSION_MAX_AGE.
    """

    def __init__(self, secret: str | None = None, max_age: timedelta = DEFAULT_MAX_AGE):
        self._secret = secret
        self.max_age = max_age

    def init_app(self, app) -> None:
        secret = app.config.get("SESSION_SECRET")
        if not secret:
            raise RuntimeError("SESSION_SECRET must be configured")
        if secret == DEV_SECRET and app.config.get("ENV") == "production":
            raise RuntimeError("SESSION_SECRET must be changed from the development default in production")

        self._secret = secret
        self.max_age = timedelta(seconds=int(app.config.get("SESSION_MAX_AGE", DEFAULT_MAX_AGE.total_seconds())))
        app.extensions["session_codec"] = self

    @property
    def secret(self) -> str:
        if not self._secret:
            raise RuntimeError("SessionCodec is not initialised; call init_app() first")
        return self._secret

    def issue(self, claims: SessionClaims, *, issued_at: datetime | None = None) -> str:
        """Return a signed token embedding the claims, expiring max_age after issued_at."""
        iat = issued_at or datetime.now(timezone.utc)
        if iat.tzinfo is None:
            iat = iat.replace(tzinfo=timezone.utc)

        payload = claims.to_payload()
        payload["iat"] = iat
        payload["exp"] = iat + self.max_age
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify(self, token: str | None) -> SessionClaims | InvalidSession:
        """
        Check signature and expiry.

        Returns SessionClaims on success, InvalidSession otherwise. Never
        raises for bad input.
        """
        if not token:
            return InvalidSession(REASON_MISSING)

        try:
            payload = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            return InvalidSession(REASON_EXPIRED)
        except (JWTError, ValueError, TypeError):
            return InvalidSession(REASON_MALFORMED)

        claims = SessionClaims.from_payload(payload)
        if claims is None:
            return InvalidSession(REASON_MALFORMED)
        return claims


# =============================================================================
# COOKIE TRANSPORT
# =============================================================================

def read_session_cookie(request) -> str | None:
    return request.cookies.get(COOKIE_NAME)


def set_session_cookie(response, token: str, *, max_age: timedelta = DEFAULT_MAX_AGE, secure: bool = False):
    response.set_cookie(
        COOKIE_NAME,
        token,
        max_age=int(max_age.total_seconds()),
        path="/",
        httponly=True,
        secure=secure,
        samesite="Lax",
    )
    return response


def clear_session_cookie(response, *, secure: bool = False):
    response.delete_cookie(COOKIE_NAME, path="/", httponly=True, secure=secure, samesite="Lax")
    return response
