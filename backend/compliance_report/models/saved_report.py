import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from compliance_report.database import Base


def _uuid_str() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SavedReport(Base):
    """Snapshot of a compliance report saved by a signed-in user."""

    __tablename__ = "saved_reports"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=_uuid_str
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    bin: Mapped[str] = mapped_column(String(16), nullable=False)
    address: Mapped[str] = mapped_column(Text, default="")

    # Full PropertyData snapshot the score was computed from
    report_data: Mapped[dict] = mapped_column(JSON, default=dict)

    compliance_score: Mapped[int] = mapped_column(Integer, default=0)
    risk_level: Mapped[str] = mapped_column(String(10), default="high")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now
    )

    __table_args__ = (
        Index("ix_saved_reports_user_bin", user_id, bin),
    )
