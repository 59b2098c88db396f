"""Audit logging service.

Every price tier and activity mutation is recorded through this service in the
same transaction as the change itself.

Audit Events:
- PRICE_TIER_CREATED, PRICE_TIER_UPDATED, PRICE_TIER_DELETED
- PRICE_TIERS_IMPORTED
- ACTIVITY_CREATED, ACTIVITY_UPDATED, ACTIVITY_DEACTIVATED
- CUSTOMER_ACTIVITY_CREATED, CUSTOMER_ACTIVITY_DEACTIVATED
- ORDER_CREATED, ORDER_ACTIVITY_ADDED
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Dict, Any
from uuid import UUID

from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog


def audit_metadata(values: Dict[str, Any]) -> Dict[str, Any]:
    """Render Decimal, date and UUID values as strings so they fit a JSON column."""
    return {
        key: str(value) if isinstance(value, (Decimal, date, UUID)) else value
        for key, value in values.items()
    }


def log_audit_event(
    db: Session,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Create an audit log entry.

    The entry is flushed but not committed; it becomes durable together with
    the caller's transaction.

    Args:
        db: Database session
        action: Event action (e.g., "PRICE_TIER_CREATED")
        actor_id: User who performed the action (None for system events)
        entity_type: Type of entity affected (e.g., "customer_price")
        entity_id: ID of affected entity
        metadata: Additional context as JSON

    Returns:
        AuditLog: The created audit log entry
    """
    audit_entry = AuditLog(
        actor_id=str(actor_id) if actor_id else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=metadata,
    )

    db.add(audit_entry)
    db.flush()  # Get ID without committing transaction

    return audit_entry
