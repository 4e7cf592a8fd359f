"""
Operator authentication.

Operators log in with email and password and receive a short-lived HS256
bearer token. The token carries the operator id (`sub`), email and display
name, so request handling never needs a user lookup. There are no roles:
ownership of clients is the only access rule.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field

from config import get_settings
from services.repository import Repository, UserRecord

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"

DEMO_USER_EMAIL = "demo@example.com"
DEMO_USER_PASSWORD = "demo123"
DEMO_USER_NAME = "Operador Demo"

MIN_PASSWORD_LENGTH = 6


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user_id: str
    email: str
    name: str = ""


class TokenData(BaseModel):
    """Claims read back from a valid token."""
    user_id: str
    email: str
    name: str = ""
    exp: Optional[datetime] = None
    token_type: str = ACCESS_TOKEN_TYPE


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    """Self-service operator sign-up."""
    email: str
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    name: str = ""


class AuthUser(BaseModel):
    """The operator behind the current request."""
    id: str
    email: str
    name: str = ""
    is_active: bool = True


def _auth_user(record: UserRecord) -> AuthUser:
    return AuthUser(id=record.id, email=record.email, name=record.name, is_active=record.is_active)


# ==================== PASSWORDS ====================

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a wrong password and for a hash passlib cannot identify."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Unusable password hash: {e}")
        return False


# ==================== TOKENS ====================

def create_access_token(
    user_id: str,
    email: str,
    expires_delta: Optional[timedelta] = None,
    name: str = ""
) -> str:
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": user_id,
        "email": email,
        "name": name,
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[TokenData]:
    """Claims of a valid, unexpired token; None otherwise."""
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected token: {e}")
        return None

    if not claims.get("sub") or not claims.get("email"):
        return None

    exp = claims.get("exp")
    return TokenData(
        user_id=claims["sub"],
        email=claims["email"],
        name=claims.get("name") or "",
        token_type=claims.get("type", ACCESS_TOKEN_TYPE),
        exp=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
    )


# ==================== SERVICE ====================

class AuthService:
    """Login, lookup and registration over the repository's user records."""

    def __init__(self, repo: Repository):
        self.repo = repo

    async def authenticate_user(self, email: str, password: str) -> Optional[AuthUser]:
        record = await self.repo.get_user_by_email(email)
        if record is None:
            reason = "unknown email"
        elif not record.is_active:
            reason = "inactive user"
        elif not record.password_hash or not verify_password(password, record.password_hash):
            reason = "bad password"
        else:
            logger.info(f"Operator {record.id} authenticated")
            return _auth_user(record)

        # Never log the email itself
        logger.warning(f"Authentication refused: {reason}")
        return None

    async def login(self, email: str, password: str) -> Optional[Token]:
        user = await self.authenticate_user(email, password)
        if user is None:
            return None
        return issue_token(user)

    async def get_user(self, user_id: str) -> Optional[AuthUser]:
        """Active operator by id, or None."""
        record = await self.repo.get_user_by_id(user_id)
        if record is None or not record.is_active:
            return None
        return _auth_user(record)

    async def register_user(self, email: str, password: str, name: str = "") -> AuthUser:
        """Raises ValueError for a malformed or already registered email."""
        email = email.strip().lower()
        local, _, domain = email.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        if await self.repo.get_user_by_email(email):
            raise ValueError("Email already registered")

        record = await self.repo.create_user(UserRecord(
            id=str(uuid.uuid4()),
            email=email,
            name=name.strip(),
            password_hash=get_password_hash(password),
            is_active=True,
            created_at=datetime.now(timezone.utc),
        ))
        logger.info(f"Operator {record.id} registered")
        return _auth_user(record)


def issue_token(user: AuthUser) -> Token:
    return Token(
        access_token=create_access_token(user.id, user.email, name=user.name),
        expires_in=get_settings().JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user_id=user.id,
        email=user.email,
        name=user.name,
    )


async def seed_demo_user(repo: Repository) -> AuthUser:
    """Create the demo operator once; later calls return the existing one."""
    existing = await repo.get_user_by_email(DEMO_USER_EMAIL)
    if existing:
        return _auth_user(existing)
    return await AuthService(repo).register_user(DEMO_USER_EMAIL, DEMO_USER_PASSWORD, DEMO_USER_NAME)
