"""
Authentication and authorization.

Passwords are stored as bcrypt hashes. Sessions are stateless: a caller
proves identity with a signed JWT carrying its user id, valid for one hour.
Logging out is purely a client-side affair, so a leaked token stays valid
until it expires.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Depends, Header, Request
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import settings
from database import create_document, get_db, oid, to_str_id
from errors import (
    DuplicateResourceError,
    ExpiredTokenError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
)
from schemas import DEFAULT_ROLE, LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

USERS = "user"


# -----------------------------
# Credentials
# -----------------------------
def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# -----------------------------
# Tokens
# -----------------------------
def issue_token(user_id: Any, now: Optional[datetime] = None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "userId": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=settings.jwt_expires_in),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: Optional[str]) -> str:
    """Return the user id embedded in ``token`` or raise an AuthError."""
    if not token:
        raise MissingTokenError()
    try:
        decoded = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise ExpiredTokenError()
    except jwt.InvalidTokenError:
        raise InvalidTokenError()
    user_id = decoded.get("userId")
    if not user_id:
        raise InvalidTokenError()
    return user_id


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer"):
        return None
    parts = authorization.split(" ")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


# -----------------------------
# Request gate
# -----------------------------
def get_current_user_id(request: Request, authorization: Optional[str] = Header(None)) -> str:
    user_id = verify_token(bearer_token(authorization))
    request.state.user_id = user_id
    return user_id


def require_roles(*roles: str):
    """Dependency that only lets callers holding one of ``roles`` through."""

    def checker(user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)) -> Dict[str, Any]:
        _id = oid(user_id)
        user = db[USERS].find_one({"_id": _id}) if _id else None
        if not user:
            raise InvalidTokenError()
        if user.get("role", DEFAULT_ROLE) not in roles:
            logger.info(f"User {user_id} with role '{user.get('role')}' denied; needs one of {roles}")
            raise ForbiddenError()
        return public_profile(user)

    return checker


# -----------------------------
# Flows
# -----------------------------
def public_profile(user: Dict[str, Any]) -> Dict[str, Any]:
    d = to_str_id(user)
    return {
        "id": d["id"],
        "email": d["email"],
        "firstName": d.get("firstName"),
        "lastName": d.get("lastName"),
        "role": d.get("role", DEFAULT_ROLE),
    }


def register_user(db: Database, payload: RegisterRequest) -> Dict[str, Any]:
    if db[USERS].find_one({"email": payload.email}):
        raise DuplicateResourceError("User already exists")

    doc = {
        "email": payload.email,
        "password": hash_password(payload.password),
        "firstName": payload.first_name,
        "lastName": payload.last_name,
        "profileImageUrl": "",
        "role": DEFAULT_ROLE,
    }
    try:
        saved = create_document(db, USERS, doc)
    except DuplicateKeyError:
        raise DuplicateResourceError("User already exists")

    logger.info(f"Registered user {saved['_id']} ({payload.email})")
    return {**public_profile(saved), "token": issue_token(saved["_id"])}


def login_user(db: Database, payload: LoginRequest) -> Dict[str, Any]:
    user = db[USERS].find_one({"email": payload.email})
    if not user or not verify_password(payload.password, user.get("password")):
        raise InvalidCredentialsError()
    return {**public_profile(user), "token": issue_token(user["_id"])}


def get_user(db: Database, user_id: str) -> Dict[str, Any]:
    _id = oid(user_id)
    user = db[USERS].find_one({"_id": _id}) if _id else None
    if not user:
        # Token outlived its user
        raise InvalidTokenError()
    return public_profile(user)
