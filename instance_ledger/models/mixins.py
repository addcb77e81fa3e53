from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


class TimestampMixin:
    """Adds created_at/updated_at columns maintained in UTC."""

    created_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=TimezoneUtils.utc_now,
        onupdate=TimezoneUtils.utc_now,
        nullable=False,
    )
