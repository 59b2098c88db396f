"""Backfill of missing order line price snapshots.

Order lines created before costing was in place may carry no unit_price. This
module prices them as of their order's scheduled date, exactly as a new line
would be priced, and stores the snapshot. Lines that already have a snapshot
are never touched.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from ..models.customer_activity import CustomerActivity
from ..pricing.errors import PricingError
from ..pricing.money import line_total
from ..pricing.service import PriceService

logger = logging.getLogger(__name__)


@dataclass
class BackfillResult:
    updated: int = 0
    skipped: int = 0
    skipped_ids: list[UUID] = field(default_factory=list)


def backfill_missing_snapshots(db: Session, dry_run: bool = False) -> BackfillResult:
    """Fill price snapshots of order lines that have none.

    Args:
        db: Database session
        dry_run: Resolve prices but roll back instead of committing

    Returns:
        BackfillResult with the number of updated and skipped lines
    """
    result = BackfillResult()

    lines = (
        db.query(CustomerActivity)
        .options(joinedload(CustomerActivity.order), joinedload(CustomerActivity.activity))
        .filter(
            CustomerActivity.order_id.isnot(None),
            CustomerActivity.unit_price.is_(None),
        )
        .order_by(CustomerActivity.created_at)
        .all()
    )

    for line in lines:
        try:
            price = PriceService.get_price_for_customer(
                db,
                customer_id=line.customer_id,
                activity_id=line.activity_id,
                quantity=line.quantity,
                as_of=line.order.scheduled_date,
            )
        except PricingError as e:
            result.skipped += 1
            result.skipped_ids.append(line.id)
            logger.warning(
                f"Skipping order line {line.id}: {e.message}",
                extra={"order_id": line.order_id, "activity_id": line.activity_id},
            )
            continue

        line.unit_price = price.price
        line.line_total = line_total(price.price, line.quantity)
        line.currency = price.currency
        line.unit = price.unit
        line.price_source = price.source
        line.customer_price_id = price.price_id
        if line.activity.is_container:
            line.base_price = price.price
        result.updated += 1

    if dry_run:
        db.rollback()
    else:
        db.commit()

    logger.info(f"Snapshot backfill: {result.updated} updated, {result.skipped} skipped")
    return result
