from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import AuditLog

logger = logging.getLogger("app.audit")


def request_context(request: Request | None) -> dict[str, str | None]:
    if request is None:
        return {"ip": None, "user_agent": None, "request_id": None}
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else None
    return {
        "ip": ip,
        "user_agent": request.headers.get("user-agent"),
        "request_id": getattr(request.state, "request_id", None),
    }


def log_audit(
    db: Session,
    *,
    actor_id: str,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict[str, Any] | None = None,
    success: bool = True,
    request: Request | None = None,
) -> None:
    """Persist one audit row for a write; a failed insert is logged and rolled back."""
    context = request_context(request)
    details = details or {}
    db.add(
        AuditLog(
            ts_utc=datetime.now(timezone.utc),
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            ip=context["ip"],
            user_agent=context["user_agent"],
            success=success,
            details=details,
        )
    )
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "audit_log_write_failed",
            extra={"request_id": context["request_id"], "action": action, "actor_id": actor_id},
        )
        return

    logger.info(
        "audit_event",
        extra={
            "request_id": context["request_id"],
            "action": action,
            "actor_id": actor_id,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "success": success,
            "details": details,
        },
    )
