"""Customer price tier CSV import service

Bulk-creates price tiers for one customer. Every row is validated with the same
schema as the create endpoint and created through PriceService.create_price_tier,
so the overlap rules apply row by row. Failing rows are reported; valid rows
are still imported.

CSV columns:
- activity_id (required)
- min_quantity (optional, default 1)
- max_quantity (optional, default DEFAULT_MAX_QUANTITY)
- price (required)
- currency (optional, default DEFAULT_CURRENCY)
- effective_from (required, YYYY-MM-DD)
- effective_to (optional, YYYY-MM-DD)
"""

import logging
from io import BytesIO
from typing import BinaryIO, Optional, Union
from uuid import UUID

import pandas as pd
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..audit.service import log_audit_event
from ..config import get_settings
from .errors import PricingError
from .schemas import PriceImportResult, PriceImportRow
from .service import PriceService

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("activity_id", "price", "effective_from")
OPTIONAL_COLUMNS = ("min_quantity", "max_quantity", "currency", "effective_to")


def _format_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )


class PriceImportService:
    """Service for importing a customer's price tiers from CSV files"""

    def __init__(self, db: Session, customer_id: UUID, actor_id: Optional[UUID] = None):
        self.db = db
        self.customer_id = customer_id
        self.actor_id = actor_id

    def parse_csv(self, file: Union[BinaryIO, bytes]) -> pd.DataFrame:
        """Parse CSV content into a pandas DataFrame of strings.

        Args:
            file: Binary file object or raw bytes

        Returns:
            DataFrame with one row per price tier

        Raises:
            ValueError: If CSV is malformed, empty or lacks required columns
        """
        if isinstance(file, (bytes, bytearray)):
            file = BytesIO(file)

        try:
            df = pd.read_csv(file, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            raise ValueError("CSV file is empty")
        except pd.errors.ParserError as e:
            raise ValueError(f"CSV parsing error: {str(e)}")

        if df.empty:
            raise ValueError("CSV file is empty")

        df.columns = [str(col).strip().lower() for col in df.columns]
        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"Missing required column(s): {', '.join(missing)}")

        return df

    def build_row(self, row: pd.Series) -> PriceImportRow:
        """Turn a CSV row into a validated import row, applying defaults.

        Raises:
            ValidationError: If a value is missing or malformed
        """
        settings = get_settings()
        values = {
            "min_quantity": 1,
            "max_quantity": settings.DEFAULT_MAX_QUANTITY,
            "currency": settings.DEFAULT_CURRENCY,
        }
        for column in REQUIRED_COLUMNS + OPTIONAL_COLUMNS:
            raw = row.get(column, "")
            raw = raw.strip() if isinstance(raw, str) else raw
            if raw not in ("", None):
                values[column] = raw

        return PriceImportRow(**values)

    def import_prices(self, file: Union[BinaryIO, bytes]) -> PriceImportResult:
        """Import price tiers from CSV content.

        Each valid row is committed on its own, so a failing row never undoes
        rows imported before it.

        Args:
            file: Binary file object or raw bytes (CSV content)

        Returns:
            PriceImportResult with counts and per-row errors
        """
        result = PriceImportResult()

        try:
            df = self.parse_csv(file)
        except ValueError as e:
            result.errors.append({"row": 0, "error": str(e)})
            result.failed = 1
            return result

        for idx, row in df.iterrows():
            row_num = idx + 2  # +2 because: +1 for 1-based indexing, +1 for header row

            try:
                import_row = self.build_row(row)
                PriceService.create_price_tier(
                    self.db,
                    self.customer_id,
                    import_row.to_create(),
                    actor_id=self.actor_id,
                )
            except ValidationError as e:
                result.errors.append({"row": row_num, "error": _format_validation_error(e)})
                result.failed += 1
                continue
            except PricingError as e:
                result.errors.append({"row": row_num, "error": e.message})
                result.failed += 1
                continue

            result.imported += 1

        log_audit_event(
            db=self.db,
            action="PRICE_TIERS_IMPORTED",
            actor_id=self.actor_id,
            entity_type="customer",
            entity_id=self.customer_id,
            metadata={"imported": result.imported, "failed": result.failed},
        )
        self.db.commit()

        logger.info(
            f"Price import completed: {result.imported} imported, {result.failed} failed",
            extra={"customer_id": self.customer_id},
        )
        return result
