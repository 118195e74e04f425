"""Bearer-token authentication against the Users table."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from .core.notes import FIRST_DATA_ROW, USERS_TABLE
from .errors import (
    AuthError,
    InvalidCredentialsError,
    NotekeeperError,
    UserNotFoundError,
    ValidationError,
)
from .ports import RowStore

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_LIFETIME = timedelta(hours=24)
REMEMBER_ME_LIFETIME = timedelta(days=365)
BCRYPT_ROUNDS = 10
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    """Compare a password with a stored bcrypt hash. Malformed hashes never match."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


@dataclass
class IssuedToken:
    token: str
    username: str
    expires_at: datetime


class AuthGate:
    """
    Issues and verifies signed tokens.

    Verification is stateless: a token stays valid until it expires, even
    after a password change.
    """

    def __init__(self, store: RowStore, secret: str, clock=None):
        if not secret:
            raise NotekeeperError("JWT_SECRET is not configured")
        self.store = store
        self.secret = secret
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _find_user(self, username: str) -> tuple[int, list[str]] | None:
        """Return (row_index, row) for a username."""
        for i, row in enumerate(self.store.read(USERS_TABLE)):
            if row and row[0] == username:
                return FIRST_DATA_ROW + i, row
        return None

    def issue(self, username: str, remember_me: bool = False) -> IssuedToken:
        now = self._clock()
        expires_at = now + (REMEMBER_ME_LIFETIME if remember_me else SESSION_LIFETIME)
        payload = {"username": username, "iat": now, "exp": expires_at}
        return IssuedToken(
            token=jwt.encode(payload, self.secret, algorithm=ALGORITHM),
            username=username,
            expires_at=expires_at,
        )

    def login(self, username: str, password: str, remember_me: bool = False) -> IssuedToken:
        """Check credentials and issue a token. Both failure cases look the same."""
        found = self._find_user(username)
        if found is None or not check_password(password, found[1][1] if len(found[1]) > 1 else ""):
            logger.info(f"Failed login for {username!r}")
            raise InvalidCredentialsError()

        logger.info(f"User {username!r} logged in (remember_me={remember_me})")
        return self.issue(found[1][0], remember_me)

    def verify(self, token: str | None) -> str:
        """Return the username bound to a valid token."""
        if not token:
            raise AuthError("Missing bearer token", status_code=401)
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "username"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Token expired", status_code=403)
        except jwt.InvalidTokenError as e:
            raise AuthError(f"Invalid token: {e}", status_code=403)
        return payload["username"]

    def change_password(self, username: str, old_password: str, new_password: str) -> None:
        """Replace a user's password hash after re-checking the current password."""
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

        found = self._find_user(username)
        if found is None:
            raise UserNotFoundError("User does not exist")

        row_index, row = found
        if not check_password(old_password, row[1] if len(row) > 1 else ""):
            raise ValidationError("Current password is incorrect")

        self.store.update(USERS_TABLE, row_index, [row[0], hash_password(new_password)])
        logger.info(f"Password changed for {username!r}")
