"""Append-only audit trail for pricing and activity changes."""

from .service import audit_metadata, log_audit_event

__all__ = ["audit_metadata", "log_audit_event"]
