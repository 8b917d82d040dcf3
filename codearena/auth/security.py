"""
Token issuance/verification and password hashing
"""

from datetime import datetime, timedelta
from typing import Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from codearena import config


class TokenError(Exception):
    """Raised when a token is missing, malformed, expired or badly signed"""


def create_access_token(user_id: str, email: str, role: str, expires_days: Optional[int] = None) -> str:
    """
    Create a signed access token

    Args:
        user_id: Subject of the token
        email: User email (informational claim)
        role: Role at issue time; the stored user record stays authoritative

    Returns:
        str: Encoded JWT
    """
    now = datetime.utcnow()
    days = config.TOKEN_EXPIRE_DAYS if expires_days is None else expires_days

    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=days),
    }

    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify signature and expiry, return the claims

    Raises:
        TokenError: If the token cannot be trusted
    """
    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET_KEY,
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidTokenError:
        raise TokenError("Invalid token")

    if not payload.get("sub"):
        raise TokenError("Invalid token")

    return payload


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: Optional[str], password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)
