from typing import Optional

from fastapi import Depends, HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.auth.security import TokenError, decode_access_token
from codearena.database import get_db

TOKEN_COOKIES = ("token", "auth_token")


class UserContext:
    """
    Contains the authenticated user's stored profile
    """
    def __init__(self, user: dict):
        self.user_id = user.get("user_id")
        self.email = user.get("email")
        self.first_name = user.get("first_name")
        self.last_name = user.get("last_name")
        self.role = user.get("role", "student")
        self.profile = user

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def extract_token(request: Request) -> Optional[str]:
    """Bearer header first, then the auth cookies"""
    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()

    for cookie_name in TOKEN_COOKIES:
        token = request.cookies.get(cookie_name)
        if token:
            return token

    return None


def public_user(user: dict) -> dict:
    """User fields safe to return to clients"""
    return {
        "user_id": user.get("user_id"),
        "email": user.get("email"),
        "first_name": user.get("first_name"),
        "last_name": user.get("last_name"),
        "profile_image_url": user.get("profile_image_url"),
        "role": user.get("role", "student"),
        "stats": user.get("stats", {}),
        "created_at": user.get("created_at"),
    }


async def get_current_user(
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> UserContext:
    """
    Dependency: resolves the caller from their token and the users collection

    Raises:
        401: Missing, invalid or expired token, or unknown user
    """
    token = extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        payload = decode_access_token(token)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))

    # Role comes from storage so role changes apply without re-login
    user = await db.users.find_one({"user_id": payload["sub"]})
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return UserContext(user)


async def get_optional_user(
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> Optional[UserContext]:
    """Dependency for public reads: the caller if their token resolves, else None"""
    token = extract_token(request)
    if not token:
        return None

    try:
        payload = decode_access_token(token)
    except TokenError:
        return None

    user = await db.users.find_one({"user_id": payload["sub"]})
    return UserContext(user) if user else None


def can_view(document: dict, user: Optional[UserContext]) -> bool:
    """Private documents are visible to admins only"""
    return document.get("is_public", True) or bool(user and user.is_admin)


async def require_admin(
    user: UserContext = Depends(get_current_user),
) -> UserContext:
    """
    Dependency: authenticated caller must be an admin

    Raises:
        403: Not an admin
    """
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
