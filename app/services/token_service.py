"""JWT issuance, verification and revocation (logout) for authenticated identities."""

import logging
import threading
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

logger = logging.getLogger(__name__)

# Claims every token we issue carries; tokens missing any of them are rejected.
REQUIRED_CLAIMS = ["sub", "exp", "iat", "jti"]


class InvalidTokenError(Exception):
    """Raised when a token is malformed, badly signed, expired or revoked."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class TokenIdentity:
    """Identity decoded from a verified token."""

    username: str
    roles: tuple[str, ...]
    token_id: str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RevocationList:
    """
    Thread-safe deny-list of revoked token ids (jti -> expiry).

    Entries only matter until the token expires on its own, so expired entries
    are dropped lazily on lookup and in bulk by purge().
    """

    def __init__(self) -> None:
        self._entries: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def add(self, token_id: str, expires_at: datetime) -> bool:
        """Record a revocation. Returns False if it was already recorded."""
        with self._lock:
            if token_id in self._entries:
                return False
            self._entries[token_id] = expires_at
            return True

    def contains(self, token_id: str, now: datetime) -> bool:
        with self._lock:
            expires_at = self._entries.get(token_id)
            if expires_at is None:
                return False
            if expires_at <= now:
                del self._entries[token_id]
                return False
            return True

    def purge(self, now: datetime) -> int:
        """Drop entries whose token has expired; return how many were removed."""
        with self._lock:
            expired = [tid for tid, exp in self._entries.items() if exp <= now]
            for tid in expired:
                del self._entries[tid]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class TokenService:
    """Issues signed, time-bound JWTs and checks them against the revocation list."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
        revocations: RevocationList | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must be non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
        self.revocations = revocations if revocations is not None else RevocationList()
        self._now = now

    def issue_token(self, identity: str, roles: Iterable[str] = ()) -> str:
        """Create a JWT with sub (username), roles, iat, exp and a unique jti."""
        now = self._now()
        payload: dict[str, Any] = {
            "sub": identity,
            "roles": sorted(roles),
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def _decode(self, token: str) -> dict[str, Any]:
        # Time claims are checked against our own clock, not PyJWT's.
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError("Malformed or badly signed token") from e
        if not isinstance(payload.get("sub"), str) or not payload["sub"]:
            raise InvalidTokenError("Invalid token payload")
        if not isinstance(payload.get("exp"), (int, float)):
            raise InvalidTokenError("Invalid token payload")
        return payload

    @staticmethod
    def _expiry(payload: dict[str, Any]) -> datetime:
        return datetime.fromtimestamp(payload["exp"], tz=UTC)

    def verify_token(self, token: str) -> TokenIdentity:
        """
        Validate signature, expiry and revocation; return the token's identity.
        Raises InvalidTokenError otherwise.
        """
        payload = self._decode(token)
        now = self._now()
        expires_at = self._expiry(payload)
        if expires_at <= now:
            raise InvalidTokenError("Token has expired")
        token_id = str(payload["jti"])
        if self.revocations.contains(token_id, now):
            raise InvalidTokenError("Token has been revoked")
        roles = payload.get("roles") or []
        return TokenIdentity(
            username=payload["sub"],
            roles=tuple(str(r) for r in roles),
            token_id=token_id,
            expires_at=expires_at,
        )

    def revoke_token(self, token: str) -> None:
        """
        Deny-list the token until it expires. Idempotent; an already expired
        token needs no entry. Raises InvalidTokenError if malformed or badly signed.
        """
        payload = self._decode(token)
        now = self._now()
        expires_at = self._expiry(payload)
        if expires_at <= now:
            logger.debug("Revocation skipped for expired token jti=%s", payload["jti"])
            return
        if self.revocations.add(str(payload["jti"]), expires_at):
            logger.info("Token revoked for sub=%s until %s", payload["sub"], expires_at.isoformat())

    def purge_expired(self) -> int:
        return self.revocations.purge(self._now())
