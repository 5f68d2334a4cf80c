"""Monthly cleanup of settled expenses, run by an external scheduler"""

import logging
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from roomie_ledger.config import settings
from roomie_ledger.infrastructure.database.repositories import ExpenseRepository
from roomie_ledger.services.ledger import storage_errors
from roomie_ledger.utils.date_utils import local_date, previous_month_key, utc_now

logger = logging.getLogger(__name__)


def purge_settled_expenses(db: Session, month: Optional[str] = None, today: Optional[date] = None) -> int:
    """
    Delete settled expenses created in the given month (default: last month).

    Months are calendar months in settings.ledger_timezone, the same zone
    used to bucket expenses when they are recorded.

    Unsettled expenses are never touched, so balances and any in-flight
    settlement plan are unaffected. Settlement transfers are kept.

    Returns:
        Number of expense rows deleted
    """
    if month is None:
        today = today or local_date(utc_now(), settings.ledger_timezone)
        month = previous_month_key(today)

    with storage_errors(db):
        deleted = ExpenseRepository(db).delete_settled_in_month(month)
        db.commit()

    logger.info("Purged settled expenses", extra={"month_key": month, "deleted": deleted})
    return deleted
