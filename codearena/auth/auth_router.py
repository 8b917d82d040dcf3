import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, RedirectResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from codearena import config
from codearena.auth import google_oauth
from codearena.auth.auth_models import LoginRequest, RegisterRequest
from codearena.auth.permissions import UserContext, get_current_user, public_user
from codearena.auth.security import create_access_token, hash_password, verify_password
from codearena.database import generate_id, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

COOKIE_MAX_AGE = config.TOKEN_EXPIRE_DAYS * 24 * 60 * 60


def set_auth_cookie(response, cookie_name: str, token: str):
    response.set_cookie(
        key=cookie_name,
        value=token,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="lax",
        max_age=COOKIE_MAX_AGE,
    )


async def find_user_by_email(db: AsyncIOMotorDatabase, email: str):
    return await db.users.find_one({"email": email})


def new_user_document(email: str, first_name: str, last_name: str, **extra) -> dict:
    now = datetime.utcnow()
    user = {
        "user_id": generate_id("USR"),
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "profile_image_url": None,
        "role": "student",
        "stats": {"problems_solved": 0, "points": 0},
        "created_at": now,
        "updated_at": now,
    }
    user.update(extra)
    return user


async def upsert_google_user(db: AsyncIOMotorDatabase, profile: dict) -> dict:
    """
    Find the user by Google ID (falling back to email) and refresh their profile
    An existing role is never overwritten
    """
    existing = await db.users.find_one({"google_id": profile["google_id"]})
    if not existing:
        existing = await find_user_by_email(db, profile["email"])

    if existing:
        await db.users.update_one(
            {"user_id": existing["user_id"]},
            {"$set": {
                "google_id": profile["google_id"],
                "first_name": profile["first_name"] or existing.get("first_name"),
                "last_name": profile["last_name"] or existing.get("last_name"),
                "profile_image_url": profile["profile_image_url"],
                "updated_at": datetime.utcnow(),
            }}
        )
        return await db.users.find_one({"user_id": existing["user_id"]})

    user = new_user_document(
        profile["email"],
        profile["first_name"],
        profile["last_name"],
        google_id=profile["google_id"],
        profile_image_url=profile["profile_image_url"],
    )
    await db.users.insert_one(user)
    logger.info("Created user %s from Google sign-in", user["user_id"])
    return user


# ==================== EMAIL / PASSWORD ====================

@router.post("/register", status_code=201)
async def register(data: RegisterRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    existing = await find_user_by_email(db, data.email)
    if existing:
        raise HTTPException(status_code=400, detail="User already exists")

    user = new_user_document(
        data.email,
        data.first_name,
        data.last_name,
        password_hash=hash_password(data.password),
    )
    try:
        await db.users.insert_one(user)
    except DuplicateKeyError:
        # Same email registered concurrently; the unique index rejected this one
        raise HTTPException(status_code=400, detail="User already exists")
    logger.info("Registered user %s", user["user_id"])

    token = create_access_token(user["user_id"], user["email"], user["role"])
    response = JSONResponse(
        status_code=201,
        content={"token": token, "user": _json_user(user)},
    )
    set_auth_cookie(response, "token", token)
    return response


@router.post("/login")
async def login(data: LoginRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await find_user_by_email(db, data.email)
    if not user or not verify_password(user.get("password_hash"), data.password):
        logger.info("Failed login attempt for %s", data.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user["user_id"], user["email"], user.get("role", "student"))
    response = JSONResponse(content={"token": token, "user": _json_user(user)})
    set_auth_cookie(response, "token", token)
    return response


# ==================== GOOGLE OAUTH ====================

@router.get("/google")
async def google_login():
    if not config.GOOGLE_CLIENT_ID:
        raise HTTPException(status_code=503, detail="Google sign-in is not configured")
    return RedirectResponse(google_oauth.build_auth_url(), status_code=302)


@router.get("/google/callback")
async def google_callback(
    code: str = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not code:
        raise HTTPException(status_code=400, detail="Authorization code not provided")

    try:
        profile = await google_oauth.exchange_code(code)
    except google_oauth.GoogleAuthError as e:
        logger.warning("Google sign-in rejected: %s", e)
        raise HTTPException(status_code=401, detail="Authentication failed")

    user = await upsert_google_user(db, profile)
    role = user.get("role", "student")
    token = create_access_token(user["user_id"], user["email"], role)

    target = "/admin" if role == "admin" else "/dashboard"
    response = RedirectResponse(f"{config.FRONTEND_URL}{target}", status_code=302)
    set_auth_cookie(response, "auth_token", token)
    return response


# ==================== SESSION ====================

@router.post("/logout")
async def logout():
    response = JSONResponse(content={"message": "Logged out successfully"})
    response.delete_cookie("token")
    response.delete_cookie("auth_token")
    return response


@router.get("/user")
async def get_user(user: UserContext = Depends(get_current_user)):
    return public_user(user.profile)


def _json_user(user: dict) -> dict:
    data = public_user(user)
    created_at = data.get("created_at")
    if isinstance(created_at, datetime):
        data["created_at"] = created_at.isoformat()
    return data
