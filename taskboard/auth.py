import datetime
import logging

import jwt
from fastapi import Depends, Request
from passlib.hash import bcrypt
from sqlalchemy.orm import Session as DBSession

from .config import Settings
from .db import get_db
from .errors import DuplicateEmail, InvalidCredentials, InvalidToken, Unauthenticated, ValidationError
from .models import User
from .repository import UserRepository

log = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "

# per cost factor, shared by every request
_dummy_hashes: dict[int, str] = {}


def hash_password(password: str, rounds: int) -> str:
    return bcrypt.using(rounds=rounds).hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.verify(password, password_hash)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def dummy_hash(rounds: int) -> str:
    """A throwaway hash to verify against when the email is unknown."""
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = hash_password("not-a-real-password", rounds)
    return _dummy_hashes[rounds]


class CredentialStore:
    """Registration and password checks over the user table."""

    def __init__(self, users: UserRepository, rounds: int):
        self.users = users
        self.rounds = rounds

    def register(self, name: str, email: str, password: str) -> User:
        name = (name or "").strip()
        email = normalize_email(email or "")
        if not name or not email or not password:
            raise ValidationError("All fields are required")
        if self.users.get_by_email(email) is not None:
            log.info("Registration rejected, email already in use: %s", email)
            raise DuplicateEmail()
        user = self.users.add(name, email, hash_password(password, self.rounds))
        log.info("Registered user %s (%s)", user.id, email)
        return user

    def verify(self, email: str, password: str) -> User:
        email = normalize_email(email or "")
        if not email or not password:
            raise ValidationError("All fields are required")
        user = self.users.get_by_email(email)
        if user is None:
            # burn the same bcrypt time as a real check
            verify_password(password, dummy_hash(self.rounds))
            log.info("Login failed for %s", email)
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            log.info("Login failed for %s", email)
            raise InvalidCredentials()
        log.info("User %s logged in", user.id)
        return user


class TokenService:
    """Stateless signed session tokens. There is no revocation list."""

    def __init__(self, secret_key: str, ttl_hours: float = 24):
        self.secret_key = secret_key
        self.ttl = datetime.timedelta(hours=ttl_hours)

    def issue(self, user_id: str) -> str:
        now = datetime.datetime.now(datetime.timezone.utc)
        payload = {"id": user_id, "iat": now, "exp": now + self.ttl}
        return jwt.encode(payload, self.secret_key, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str) -> str:
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["exp", "id"]},
            )
        except jwt.PyJWTError as exc:
            log.debug("Token rejected: %s", exc)
            raise InvalidToken()
        user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id:
            log.debug("Token rejected: bad id claim")
            raise InvalidToken()
        return user_id


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_credential_store(
    settings: Settings = Depends(get_app_settings), db: DBSession = Depends(get_db)
) -> CredentialStore:
    return CredentialStore(UserRepository(db), settings.bcrypt_rounds)


def get_current_user_id(request: Request, tokens: TokenService = Depends(get_token_service)) -> str:
    """Resolve the caller from the ``Authorization: Bearer`` header."""
    header = request.headers.get("Authorization")
    if not header or not header.startswith(BEARER_PREFIX):
        raise Unauthenticated()
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthenticated()
    user_id = tokens.verify(token)
    request.state.user_id = user_id
    return user_id
