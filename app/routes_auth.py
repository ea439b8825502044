# routes_auth.py
"""
Authentication and profile endpoints.

Login failures never reveal whether the email exists: an unknown email and a
wrong password produce the same 401 message.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import Settings
from database import USERS, create_document, to_object_id, update_document, utcnow
from schemas import LoginRequest, PasswordChange, ProfileUpdate, RegisterRequest, User
from app.deps import get_current_user, get_db, get_settings
from app.responses import ok
from app.security import (
    DEFAULT_AVATAR,
    avatar_for_name,
    get_password_hash,
    is_valid_email,
    is_valid_password,
    normalize_email,
    public_user,
    token_for_user,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth")

DEMO_EMAIL = "admin@example.com"
DEMO_PASSWORD = "password"
INVALID_CREDENTIALS = "Invalid email or password"


def _require_user(db: Database, user_id: str) -> Dict[str, Any]:
    user = db[USERS].find_one({"_id": to_object_id(user_id)})
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _ensure_demo_user(db: Database, settings: Settings) -> Dict[str, Any]:
    user = db[USERS].find_one({"email": DEMO_EMAIL})
    if user is not None:
        return user
    demo = User(
        email=DEMO_EMAIL,
        name="Demo Admin",
        password_hash=get_password_hash(DEMO_PASSWORD, settings.bcrypt_rounds),
        role="admin",
        avatar=DEFAULT_AVATAR,
        email_verified=True,
    )
    try:
        user_id = create_document(db, USERS, demo)
    except DuplicateKeyError:
        # a concurrent demo login created it first
        return db[USERS].find_one({"email": DEMO_EMAIL})
    logger.info("Provisioned demo admin account")
    return db[USERS].find_one({"_id": to_object_id(user_id)})


def _session(user: Dict[str, Any], settings: Settings) -> Dict[str, Any]:
    return {"user": public_user(user), "token": token_for_user(user, settings)}


# -------------------------------------------------------------------
# Public endpoints
# -------------------------------------------------------------------

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not payload.name or not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Name, email, and password are required")
    if not is_valid_email(payload.email.strip()):
        raise HTTPException(status_code=400, detail="Please enter a valid email address")
    if not is_valid_password(payload.password):
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters long")

    email = normalize_email(payload.email)
    conflict = HTTPException(status_code=409, detail="User with this email already exists")
    if db[USERS].find_one({"email": email}):
        raise conflict

    name = payload.name.strip()
    user_doc = User(
        email=email,
        name=name,
        password_hash=get_password_hash(payload.password, settings.bcrypt_rounds),
        avatar=avatar_for_name(name),
    )
    try:
        user_id = create_document(db, USERS, user_doc)
    except DuplicateKeyError:
        raise conflict

    user = db[USERS].find_one({"_id": to_object_id(user_id)})
    logger.info("New user registered: %s", email)
    return ok("Registration successful! Welcome to the platform.", _session(user, settings))


@router.post("/login")
def login(
    payload: LoginRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    if payload.email == DEMO_EMAIL and payload.password == DEMO_PASSWORD:
        user = _ensure_demo_user(db, settings)
        update_document(db, USERS, user["_id"], {"last_login": utcnow()})
        return ok("Demo login successful", _session(user, settings))

    user = db[USERS].find_one({"email": normalize_email(payload.email)})
    if user is None:
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)
    if not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="Account is deactivated. Please contact support.")
    if not verify_password(payload.password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    update_document(db, USERS, user["_id"], {"last_login": utcnow()})
    logger.info("User logged in: %s", user["email"])
    return ok("Login successful", _session(user, settings))


# -------------------------------------------------------------------
# Protected endpoints
# -------------------------------------------------------------------

@router.get("/validate")
def validate_token(
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    user = _require_user(db, current_user["id"])
    return ok("Token valid", public_user(user))


@router.get("/profile")
def get_profile(
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    user = _require_user(db, current_user["id"])
    last_login = user.get("last_login")
    created_at = user.get("created_at")
    return ok("Profile retrieved successfully", {
        **public_user(user),
        "createdAt": created_at.isoformat() if created_at else None,
        "lastLogin": last_login.isoformat() if last_login else None,
    })


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    if not payload.name or not payload.email:
        raise HTTPException(status_code=400, detail="Name and email are required")
    if not is_valid_email(payload.email.strip()):
        raise HTTPException(status_code=400, detail="Please enter a valid email address")

    user_id = to_object_id(current_user["id"])
    email = normalize_email(payload.email)
    conflict = HTTPException(status_code=409, detail="Email is already taken by another user")
    if db[USERS].find_one({"email": email, "_id": {"$ne": user_id}}):
        raise conflict

    try:
        matched = update_document(db, USERS, user_id, {"name": payload.name.strip(), "email": email})
    except DuplicateKeyError:
        raise conflict
    if not matched:
        raise HTTPException(status_code=404, detail="User not found")

    return ok("Profile updated successfully", public_user(_require_user(db, current_user["id"])))


@router.put("/change-password")
def change_password(
    payload: PasswordChange,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not payload.current_password or not payload.new_password:
        raise HTTPException(status_code=400, detail="Current password and new password are required")
    if not is_valid_password(payload.new_password):
        raise HTTPException(status_code=400, detail="New password must be at least 6 characters long")

    user = _require_user(db, current_user["id"])
    if not verify_password(payload.current_password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Current password is incorrect")

    update_document(db, USERS, user["_id"], {
        "password_hash": get_password_hash(payload.new_password, settings.bcrypt_rounds),
    })
    logger.info("Password changed for user: %s", user["email"])
    return ok("Password changed successfully")
