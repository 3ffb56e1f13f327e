"""
Authentication core.

Passwords are hashed with Argon2id and a per-user random salt. Clients hold
two kinds of signed bearer tokens:

1. Access tokens - short-lived and stateless. Valid when the signature
   checks out, the token has not expired and it is NOT a stored refresh key.
2. Refresh tokens - long-lived and stored at issuance. Valid only while
   present in the refresh key table; used solely to mint access tokens.
"""

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from argon2.low_level import Type, hash_secret_raw
from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from itsdangerous import BadData, URLSafeTimedSerializer

from .config import state
from .database import Database, DBUser
from .database.converters import utcnow
from .exceptions import BadRequestError, ConfigError, UnauthorizedError

logger = logging.getLogger(__name__)

# Argon2id work factors
TIME_COST = 3
MEMORY_COST = 64 * 1024  # KiB
PARALLELISM = 4
KEY_LENGTH = 64
SALT_LENGTH = 32

ACCESS = "access"
REFRESH = "refresh"

_TOKEN_SALT = "syndication.api-key"

BEARER = HTTPBearer(auto_error=False)


def generate_salt() -> bytes:
    return secrets.token_bytes(SALT_LENGTH)


def hash_password(password: str, salt: bytes) -> bytes:
    """Derive the stored password hash."""
    return hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=salt,
        time_cost=TIME_COST,
        memory_cost=MEMORY_COST,
        parallelism=PARALLELISM,
        hash_len=KEY_LENGTH,
        type=Type.ID,
    )


def verify_password(password: str, password_hash: bytes, salt: bytes) -> bool:
    """Check a password against a stored hash in constant time."""
    return hmac.compare_digest(hash_password(password, salt), password_hash)


def normalize_username(username: str | None) -> str:
    return (username or "").strip()


def validate_credentials(username: str, password: str) -> str:
    """Reject empty usernames and passwords. Returns the normalized username."""
    username = normalize_username(username)
    if not username:
        raise BadRequestError("Username cannot be empty")
    if not password:
        raise BadRequestError("Password cannot be empty")
    return username


def create_account(db: Database, username: str, password: str) -> DBUser:
    """
    Create a user, with its Uncategorized category, from plain credentials.

    Raises:
        BadRequestError: If the username or password is empty
        ConflictError: If the username is taken
    """
    username = validate_credentials(username, password)
    salt = generate_salt()
    return db.users.create(username, hash_password(password, salt), salt)


@dataclass
class APIKey:
    token: str
    kind: str
    expires_at: datetime


@dataclass
class KeyPair:
    access: APIKey
    refresh: APIKey


class AuthService:
    """Issues and verifies bearer tokens for registered users."""

    def __init__(
        self,
        db: Database,
        secret: str,
        access_ttl: timedelta = timedelta(hours=72),
        refresh_ttl: timedelta = timedelta(hours=168),
    ):
        if not secret:
            raise ConfigError("Auth secret cannot be empty")
        self.db = db
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._serializer = URLSafeTimedSerializer(secret, salt=_TOKEN_SALT)

    # ─────────────────────────────────────────────────────────────
    # Use cases
    # ─────────────────────────────────────────────────────────────

    def register(self, username: str, password: str) -> KeyPair:
        """
        Create an account and issue its first key pair.

        Raises:
            ConflictError: If the username is taken
        """
        user = create_account(self.db, username, password)
        logger.info(f"Registered user {user.username}")
        return self._issue_pair(user)

    def login(self, username: str, password: str) -> KeyPair:
        """
        Issue a new key pair for valid credentials.

        Raises:
            UnauthorizedError: On an unknown user or a wrong password
        """
        self.db.api_keys.purge_expired(utcnow())

        user = self.db.users.get_by_name(normalize_username(username))
        if user is None or not verify_password(password, user.password_hash, user.password_salt):
            raise UnauthorizedError()
        return self._issue_pair(user)

    def renew(self, refresh_token: str) -> APIKey:
        """
        Mint a fresh access token from a stored refresh token.

        The refresh token itself is not rotated.

        Raises:
            UnauthorizedError: If the token is invalid, expired, not a stored
                refresh key, or its user no longer exists
        """
        user = self._verify(refresh_token, REFRESH)
        return self._issue(user, ACCESS)

    def authenticate(self, token: str) -> DBUser:
        """
        Resolve an access token to its user.

        Raises:
            UnauthorizedError: For anything but a valid access token
        """
        return self._verify(token, ACCESS)

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    def _issue_pair(self, user: DBUser) -> KeyPair:
        return KeyPair(access=self._issue(user, ACCESS), refresh=self._issue(user, REFRESH))

    def _issue(self, user: DBUser, kind: str) -> APIKey:
        ttl = self.refresh_ttl if kind == REFRESH else self.access_ttl
        expires_at = utcnow() + ttl
        token = self._serializer.dumps({
            "sub": user.id,
            "kind": kind,
            "exp": expires_at.timestamp(),
            "jti": secrets.token_hex(8),
        })
        if kind == REFRESH:
            self.db.api_keys.add(user, token, expires_at)
        return APIKey(token=token, kind=kind, expires_at=expires_at)

    def _verify(self, token: str, kind: str) -> DBUser:
        if not token:
            raise UnauthorizedError()
        try:
            claims = self._serializer.loads(token)
        except BadData:
            raise UnauthorizedError()

        if not isinstance(claims, dict):
            raise UnauthorizedError()
        expires = claims.get("exp")
        if not isinstance(expires, (int, float)) or expires <= utcnow().timestamp():
            raise UnauthorizedError()
        if claims.get("kind") != kind:
            raise UnauthorizedError()

        user = self.db.users.get_by_id(str(claims.get("sub", "")))
        if user is None:
            raise UnauthorizedError()

        # The stored table is authoritative regardless of the kind claim
        stored = self.db.api_keys.exists(user, token)
        if stored != (kind == REFRESH):
            raise UnauthorizedError()
        return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(BEARER),
) -> DBUser:
    """
    FastAPI dependency resolving the request's bearer access token.

    Raises:
        UnauthorizedError: If the header is missing or the token is not a valid access token
    """
    if credentials is None or state.auth is None:
        raise UnauthorizedError()
    return state.auth.authenticate(credentials.credentials)
