# inlandv/activity.py
# Audit trail of CMS mutations

from typing import Optional

from inlandv.auth_context import AuthContext
from inlandv.db import DatabaseError, execute_query, savepoint
from inlandv.utils import new_id, now_iso


def log_activity(
    conn,
    ctx: Optional[AuthContext],
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    entity_name: Optional[str] = None,
    description: Optional[str] = None,
) -> None:
    """
    Record a CMS action on the caller's connection (committed with the caller's
    transaction). The insert runs in a savepoint, so a failure is printed and
    leaves the caller's transaction intact.
    """
    try:
        with savepoint(conn, "activity_log"):
            execute_query(
                conn,
                """
                INSERT INTO activity_logs (id, user_id, user_email, action, entity_type, entity_id, entity_name, description, created_at)
                VALUES (:id, :user_id, :user_email, :action, :entity_type, :entity_id, :entity_name, :description, :created_at)
                """,
                {
                    "id": new_id(),
                    "user_id": ctx.user_id if ctx else None,
                    "user_email": ctx.email if ctx else None,
                    "action": action,
                    "entity_type": entity_type,
                    "entity_id": str(entity_id) if entity_id is not None else None,
                    "entity_name": entity_name,
                    "description": description or f"{action} {entity_type}",
                    "created_at": now_iso(),
                },
            )
    except DatabaseError as e:
        print(f"[ACTIVITY] Failed to log {action} {entity_type} {entity_id}: {e}")
