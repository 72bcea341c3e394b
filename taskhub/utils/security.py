# taskhub/utils/security.py
from datetime import timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from taskhub.config.settings import Settings
from taskhub.utils.dates import utcnow
from taskhub.utils.errors import AuthError


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password
        return False


def create_access_token(user_id: int, settings: Settings) -> str:
    issued_at = utcnow().replace(tzinfo=timezone.utc)
    claims = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.jwt_expire_minutes),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> int:
    """Return the user id carried by a token, or raise AuthError"""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except ExpiredSignatureError:
        raise AuthError("Token has expired. Please login again.", code="TOKEN_EXPIRED")
    except JWTError:
        raise AuthError("Invalid token. Please login again.", code="INVALID_TOKEN")

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise AuthError("Invalid token. Please login again.", code="INVALID_TOKEN")
