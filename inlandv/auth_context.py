"""
inlandv/auth_context.py

Authentication primitives for the CMS API.

Contains:
- hash_password / verify_password: salted PBKDF2-SHA256 (hashlib)
- create_access_token / verify_token: JWT (PyJWT)
- AuthContext: identity of the CMS user behind a request
- require_auth_context: FastAPI dependency, token from Bearer header or `token` cookie
- require_admin: FastAPI dependency restricting a route to role "admin"

This module MUST NOT import inlandv.main to avoid circular dependencies.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

try:
    from inlandv.config import ALGORITHM, AUTH_COOKIE_NAME, IS_DEV, SECRET_KEY, TOKEN_DAYS
    from inlandv.db import DatabaseError, fetch_one, get_db_connection
except ModuleNotFoundError:
    from config import ALGORITHM, AUTH_COOKIE_NAME, IS_DEV, SECRET_KEY, TOKEN_DAYS
    from db import DatabaseError, fetch_one, get_db_connection

# auto_error=False so a missing header can fall back to the cookie
security = HTTPBearer(auto_error=False)

PBKDF2_ITERATIONS = 260000


# ---------------------------------------------------------
# Password hashing
# ---------------------------------------------------------
def hash_password(password: str, salt: Optional[str] = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt, expected = password_hash.split("$", 3)
    except (AttributeError, ValueError):
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    try:
        rounds = int(iterations)
    except ValueError:
        return False
    if rounds <= 0:
        return False
    candidate = hash_password(password, salt=salt, iterations=rounds)
    return hmac.compare_digest(candidate.split("$", 3)[3], expected)


# ---------------------------------------------------------
# JWT
# ---------------------------------------------------------
def create_access_token(user_id: str, email: str, role: str) -> str:
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": datetime.utcnow() + timedelta(days=TOKEN_DAYS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify JWT access token and return decoded payload.

    Raises:
        HTTPException(401): If token is expired or invalid
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def token_from_request(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(AUTH_COOKIE_NAME)


# ---------------------------------------------------------
# AuthContext
# ---------------------------------------------------------
class AuthContext(BaseModel):
    """
    Identity derived from a verified token. Routes take the acting user from
    here, never from request bodies.
    """
    user_id: str
    email: str
    role: str
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def require_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthContext:
    """
    FastAPI dependency for every CMS route.

    The user row is re-read so deactivated or deleted users lose access
    immediately; the database role wins over the role in the token.
    """
    token = token_from_request(request, credentials)
    if not token:
        raise HTTPException(status_code=401, detail="No token provided")

    payload = verify_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        with get_db_connection() as conn:
            user = fetch_one(
                conn,
                "SELECT id, email, name, role, is_active FROM users WHERE id = :id",
                {"id": user_id},
            )
    except DatabaseError as e:
        print(f"[AUTH] DB error loading user: {e}")
        raise HTTPException(status_code=500, detail="Database error")

    if not user or not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="User not found")

    ctx = AuthContext(
        user_id=str(user["id"]),
        email=user["email"],
        role=user.get("role") or payload.get("role") or "editor",
        name=user.get("name"),
    )
    if IS_DEV:
        print(f"[AUTH] user_id={ctx.user_id} role={ctx.role} {request.method} {request.url.path}")
    return ctx


def require_admin(ctx: AuthContext = Depends(require_auth_context)) -> AuthContext:
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return ctx
