"""
inlandv/routes_cms_auth.py

CMS authentication: login (JWT + HTTP-only cookie), verify, logout and
admin-only user registration.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Response

try:
    from inlandv.activity import log_activity
    from inlandv.auth_context import (
        AuthContext,
        create_access_token,
        hash_password,
        require_admin,
        require_auth_context,
        verify_password,
    )
    from inlandv.cms_common import insert_row, update_row
    from inlandv.config import AUTH_COOKIE_NAME, IS_DEV, IS_PROD, TOKEN_DAYS
    from inlandv.db import DatabaseError, IntegrityError, commit, fetch_one, get_db_connection
    from inlandv.errors import server_error
    from inlandv.schemas_cms import LoginRequest, RegisterRequest
    from inlandv.utils import now_iso
except ModuleNotFoundError:
    from activity import log_activity
    from auth_context import (
        AuthContext,
        create_access_token,
        hash_password,
        require_admin,
        require_auth_context,
        verify_password,
    )
    from cms_common import insert_row, update_row
    from config import AUTH_COOKIE_NAME, IS_DEV, IS_PROD, TOKEN_DAYS
    from db import DatabaseError, IntegrityError, commit, fetch_one, get_db_connection
    from errors import server_error
    from schemas_cms import LoginRequest, RegisterRequest
    from utils import now_iso


router = APIRouter(
    prefix="/api/cms/auth",
    tags=["cms-auth"],
)


def public_user(row: Dict[str, Any]) -> Dict[str, Any]:
    # Never return password_hash
    return {
        "id": row["id"],
        "email": row["email"],
        "name": row.get("name"),
        "role": row.get("role"),
    }


@router.post("/login")
def login(req: LoginRequest, response: Response) -> Dict[str, Any]:
    """
    Exchange email + password for a JWT.

    The token is returned in the body and also set as an HTTP-only cookie
    valid for TOKEN_DAYS days, so the CMS can use either.

    Raises:
        HTTPException(401): Unknown email, wrong password or deactivated user
    """
    try:
        with get_db_connection() as conn:
            user = fetch_one(conn, "SELECT * FROM users WHERE email = :email", {"email": req.email})
            if not user:
                print("[LOGIN] User not found by email")
                raise HTTPException(status_code=401, detail="Invalid credentials")
            if not verify_password(req.password, user["password_hash"]):
                print(f"[LOGIN] Password mismatch for user_id={user['id']}")
                raise HTTPException(status_code=401, detail="Invalid credentials")
            if not user.get("is_active", True):
                raise HTTPException(status_code=401, detail="Invalid credentials")

            update_row(conn, "users", user["id"], {"last_login_at": now_iso()}, touch=False)
            commit(conn)
    except DatabaseError as e:
        raise server_error("log in", e)

    token = create_access_token(user["id"], user["email"], user.get("role") or "editor")
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        max_age=TOKEN_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=IS_PROD,
        samesite="lax",
    )
    if IS_DEV:
        print(f"[LOGIN] user_id={user['id']} role={user.get('role')}")
    return {"token": token, "user": public_user(user)}


@router.get("/verify")
def verify(ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    return {"user": {"id": ctx.user_id, "email": ctx.email, "name": ctx.name, "role": ctx.role}}


@router.post("/logout")
def logout(response: Response) -> Dict[str, Any]:
    response.delete_cookie(AUTH_COOKIE_NAME)
    return {"ok": True}


@router.post("/register", status_code=201)
def register(req: RegisterRequest, ctx: AuthContext = Depends(require_admin)) -> Dict[str, Any]:
    """Create a CMS user (admins only). Duplicate email -> 400."""
    try:
        with get_db_connection() as conn:
            if fetch_one(conn, "SELECT id FROM users WHERE email = :email", {"email": req.email}):
                raise HTTPException(status_code=400, detail="Email already registered")
            user_id = insert_row(conn, "users", {
                "email": req.email,
                "password_hash": hash_password(req.password),
                "name": req.name,
                "role": req.role,
                "is_active": True,
            })
            log_activity(conn, ctx, "create", "user", user_id, req.email)
            commit(conn)
            user = fetch_one(conn, "SELECT * FROM users WHERE id = :id", {"id": user_id})
    except IntegrityError as e:
        print(f"[REGISTER] IntegrityError caught: {e}")
        raise HTTPException(status_code=400, detail="Email already registered")
    except DatabaseError as e:
        raise server_error("register user", e)

    print(f"[REGISTER] Created user_id={user_id} role={req.role}")
    return {"user": public_user(user)}
