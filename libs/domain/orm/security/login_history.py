# libs/domain/orm/security/login_history.py
from __future__ import annotations
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from libs.domain.orm.base import Base, SCHEMA


class LoginHistoryRow(Base):
    """Журнал входов. Только добавление."""

    __tablename__ = "login_history"
    __table_args__ = (
        Index("ix_login_history_user_id_timestamp", "user_id", "timestamp"),
        {"schema": SCHEMA},
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(255))
