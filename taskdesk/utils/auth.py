import uuid
from datetime import datetime, timedelta, UTC

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from taskdesk import config
from taskdesk.errors import AuthenticationFailed
from taskdesk.models.user import Role

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

VIEW_REPORTS = "view_reports"

# Capabilities each role always holds; see has_capability for USER reports
ROLE_CAPABILITIES = {
    Role.ADMIN.value: frozenset({VIEW_REPORTS}),
    Role.USER.value: frozenset(),
}


def hash_password(password: str):
    """Hash a password after validating bcrypt's 72-byte limit.

    Raises ValueError if the UTF-8 encoding of the password exceeds 72 bytes.
    """
    if isinstance(password, str):
        b = password.encode("utf-8")
        if len(b) > 72:
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return pwd_context.hash(password)


def verify_password(plain, hashed):
    """Verify a plaintext password against a hash.

    If verification raises a ValueError (for example plain >72 bytes), return False
    to allow the caller to respond with an authentication failure instead of an error.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_token(user_id: int) -> str:
    now = datetime.now(UTC)
    # read expiry at call-time so runtime overrides of
    # config.ACCESS_TOKEN_EXPIRE_MINUTES take effect immediately
    expire = now + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    data = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),  # JWT spec uses Unix timestamp
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(data, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_token(token: str) -> int:
    """Return the user id a token was issued for, or raise AuthenticationFailed."""
    try:
        # jwt.decode validates exp automatically
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationFailed(error="Token has expired")
    except JWTError:
        raise AuthenticationFailed(error="Invalid token")
    sub = payload.get("sub")
    if not sub or not str(sub).isdigit():
        raise AuthenticationFailed(error="Invalid token: missing user")
    return int(sub)


def has_capability(user, capability: str) -> bool:
    if capability in ROLE_CAPABILITIES.get(user.role, frozenset()):
        return True
    if capability == VIEW_REPORTS:
        # reports are open to every authenticated user unless locked down
        return not config.REPORTS_REQUIRE_ADMIN
    return False
