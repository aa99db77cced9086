# libs/domain/orm/security/login_attempt.py
from __future__ import annotations
from datetime import datetime

from sqlalchemy import BigInteger, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from libs.domain.orm.base import Base, SCHEMA


class LoginAttemptRow(Base):
    __tablename__ = "login_attempts"
    __table_args__ = (
        UniqueConstraint("email", "timestamp", name="uq_login_attempts_email_timestamp"),
        # Диапазонный запрос email == X AND timestamp > Y идёт по этому индексу
        Index("ix_login_attempts_email_timestamp", "email", "timestamp"),
        {"schema": SCHEMA},
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    attempt_number: Mapped[int] = mapped_column(nullable=False, default=1)
