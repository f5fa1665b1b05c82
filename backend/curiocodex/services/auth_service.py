import base64
import hmac
import logging
import os
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..core.errors import AuthError, ValidationError
from ..models.session import Session as SessionRow
from ..models.user import User, new_id
from ..schemas.auth import CurrentUser, LoginRequest, RegisterRequest

logger = logging.getLogger("curiocodex.auth")

PBKDF2_ITERATIONS = 100000


def hash_password(password: str, salt: bytes | None = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    """PBKDF2-SHA256 hash encoded as ``pbkdf2_sha256$<iterations>$<salt>$<hash>``."""
    if salt is None:
        salt = os.urandom(16)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
        backend=default_backend(),
    )
    key = kdf.derive(password.encode())
    return "$".join([
        "pbkdf2_sha256",
        str(iterations),
        base64.b64encode(salt).decode(),
        base64.b64encode(key).decode(),
    ])


def verify_password(stored: str, provided: str) -> bool:
    try:
        scheme, iterations, salt_b64, _hash = stored.split("$")
        rounds = int(iterations)
        salt = base64.b64decode(salt_b64)
    except ValueError:
        # binascii.Error is a ValueError
        return False
    if scheme != "pbkdf2_sha256" or rounds < 1:
        return False
    candidate = hash_password(provided, salt, rounds)
    # Constant-time comparison to prevent timing attacks
    return hmac.compare_digest(stored, candidate)


def generate_session_token() -> str:
    return f"{uuid.uuid4()}-{int(time.time() * 1000):x}"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SessionStore:
    """Token -> identity mapping with a fixed time-to-live."""

    def __init__(self, db: Session, ttl_seconds: int):
        self.db = db
        self.ttl_seconds = ttl_seconds

    def put(self, token: str, user: CurrentUser) -> None:
        self.db.add(SessionRow(
            token=token,
            user_id=user.userId,
            email=user.email,
            username=user.username,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds),
        ))
        self.db.commit()

    def get(self, token: str) -> Optional[CurrentUser]:
        row = self.db.get(SessionRow, token)
        if row is None:
            return None
        if datetime.now(timezone.utc) >= _as_utc(row.expires_at):
            logger.info(f"Session expired for user {row.user_id}")
            self.db.delete(row)
            self.db.commit()
            return None
        return CurrentUser(userId=row.user_id, email=row.email, username=row.username)

    def delete(self, token: str) -> None:
        row = self.db.get(SessionRow, token)
        if row is not None:
            self.db.delete(row)
            self.db.commit()

    def purge_expired(self) -> int:
        removed = (
            self.db.query(SessionRow)
            .filter(SessionRow.expires_at <= datetime.now(timezone.utc))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if removed:
            logger.info(f"Purged {removed} expired sessions")
        return removed


class AuthService:
    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()
        self.sessions = SessionStore(db, self.settings.session_ttl_seconds)

    def _start_session(self, user: User) -> Tuple[str, CurrentUser]:
        identity = CurrentUser(userId=user.id, email=user.email, username=user.username)
        token = generate_session_token()
        self.sessions.purge_expired()
        self.sessions.put(token, identity)
        return token, identity

    def register(self, data: RegisterRequest) -> Tuple[str, CurrentUser]:
        email = (data.email or "").strip()
        username = (data.username or "").strip()
        if not email or not data.password or not username:
            raise ValidationError("Missing required fields")
        if "@" not in email:
            raise ValidationError("Invalid email format")

        existing = self.db.query(User.id).filter(or_(User.email == email, User.username == username)).first()
        if existing:
            raise ValidationError("User already exists")

        user = User(id=new_id(), email=email, username=username, password_hash=hash_password(data.password))
        self.db.add(user)
        self.db.commit()
        logger.info(f"Registered user {user.id} ({username})")
        return self._start_session(user)

    def login(self, data: LoginRequest) -> Tuple[str, CurrentUser]:
        email = (data.email or "").strip()
        if not email or not data.password:
            raise ValidationError("Missing email or password")
        user = self.db.query(User).filter(User.email == email).first()
        if user is None or not verify_password(user.password_hash, data.password):
            raise AuthError("Invalid credentials")
        return self._start_session(user)

    def logout(self, token: Optional[str]) -> None:
        if token:
            self.sessions.delete(token)

    def authenticate(self, token: Optional[str]) -> CurrentUser:
        if not token:
            raise AuthError("Unauthorized")
        user = self.sessions.get(token)
        if user is None:
            raise AuthError("Invalid or expired session")
        return user

    def profile(self, user: CurrentUser) -> dict:
        row = self.db.get(User, user.userId)
        if row is None:
            raise AuthError("Invalid or expired session")
        return {
            "id": row.id,
            "email": row.email,
            "username": row.username,
            "created_at": row.created_at.isoformat() if row.created_at else None,
        }
