"""Order audit trail."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from delivery_hub.models import AuditLog


def changed_fields(before: dict[str, Any], after: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Reduce two order snapshots to the columns whose value differs."""
    keys = [key for key in after if before.get(key) != after.get(key)]
    return {key: before.get(key) for key in keys}, {key: after[key] for key in keys}


def record_order_action(
    db: Session,
    *,
    order_id: int,
    actor_user_id: int | None,
    actor_role: str,
    action: str,
    before: dict[str, Any],
    after: dict[str, Any],
) -> AuditLog:
    before_diff, after_diff = changed_fields(before, after)
    entry = AuditLog(
        actor_user_id=actor_user_id,
        actor_role=actor_role,
        action_type=action,
        order_id=order_id,
        before_snapshot=before_diff,
        after_snapshot=after_diff,
    )
    db.add(entry)
    db.commit()
    return entry


def order_audit_trail(db: Session, order_id: int) -> list[AuditLog]:
    return list(db.scalars(select(AuditLog).where(AuditLog.order_id == order_id).order_by(AuditLog.id)).all())
