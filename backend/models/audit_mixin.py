from sqlalchemy import Column, DateTime
from datetime import datetime
import pytz

from config import APP_TIMEZONE


def _now():
    return datetime.now(pytz.timezone(APP_TIMEZONE))


class TimestampMixin:
    """Mixin that provides created/updated timestamps.

    Upload rows are never edited in place, so ``updated_at`` only moves when a
    maintenance script (e.g. the manufacturer backfill) touches a row.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), onupdate=_now)
