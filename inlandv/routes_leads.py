"""
inlandv/routes_leads.py

Public lead capture (contact / consultation forms).
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException

try:
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, IntegrityError, commit, execute_query, fetch_one, get_db_connection, is_unique_violation
    from inlandv.errors import server_error
    from inlandv.schemas_public import LeadCreateRequest
    from inlandv.utils import new_id, now_iso
except ModuleNotFoundError:
    from config import IS_DEV
    from db import DatabaseError, IntegrityError, commit, execute_query, fetch_one, get_db_connection, is_unique_violation
    from errors import server_error
    from schemas_public import LeadCreateRequest
    from utils import new_id, now_iso


router = APIRouter(
    prefix="/api/leads",
    tags=["leads"],
)


@router.post("", status_code=201)
def create_lead(payload: LeadCreateRequest) -> Dict[str, Any]:
    """
    Store a lead. All rule violations are reported together as 400
    {success: false, errors: [{field, message}]}.
    """
    errors = payload.validation_errors()
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    lead_id = new_id()
    params = {
        "id": lead_id,
        "name": payload.name,
        "phone": payload.phone,
        "email": payload.email or "",
        "message": payload.message,
        "source": payload.source,
        "created_at": now_iso(),
    }

    try:
        with get_db_connection() as conn:
            execute_query(
                conn,
                """
                INSERT INTO leads (id, name, phone, email, message, source, created_at)
                VALUES (:id, :name, :phone, :email, :message, :source, :created_at)
                """,
                params,
            )
            commit(conn)
            lead = fetch_one(conn, "SELECT * FROM leads WHERE id = :id", {"id": lead_id})
    except IntegrityError as e:
        print(f"[LEADS] Integrity error: {e}")
        if is_unique_violation(e):
            raise HTTPException(status_code=400, detail="Duplicate entry")
        raise HTTPException(status_code=400, detail="Invalid data provided")
    except DatabaseError as e:
        raise server_error("create lead", e)

    if IS_DEV:
        print(f"[LEADS] Created lead {lead_id} source={payload.source}")
    return {"success": True, "data": lead, "message": "Lead created successfully"}
