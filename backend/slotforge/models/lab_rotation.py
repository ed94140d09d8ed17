from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from slotforge.db.base import Base


class LabRotationRecord(Base):
    __tablename__ = "lab_rotations"

    # Autoincrement order is the rotation history order.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    batch_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    sub_batch_id: Mapped[str] = mapped_column(String(80), nullable=False)
    session_number: Mapped[int] = mapped_column(Integer, nullable=False)
    lab_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
