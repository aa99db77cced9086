# libs/domain/orm/security/account_lockout.py
from __future__ import annotations
from datetime import datetime

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from libs.domain.orm.base import Base, SCHEMA


class AccountLockoutRow(Base):
    """Активная блокировка: одна запись на email."""

    __tablename__ = "account_lockouts"
    __table_args__ = (
        CheckConstraint("unlock_at > locked_at", name="unlock_after_lock"),
        {"schema": SCHEMA},
    )

    email: Mapped[str] = mapped_column(String(320), primary_key=True)
    locked_at: Mapped[datetime] = mapped_column(nullable=False)
    unlock_at: Mapped[datetime] = mapped_column(nullable=False, index=True)
    failed_attempts: Mapped[int] = mapped_column(nullable=False)
    lockout_count: Mapped[int] = mapped_column(nullable=False)


class LockoutTallyRow(Base):
    """
    Счётчик блокировок email. Переживает удаление истёкшей блокировки,
    поэтому прогрессивный штраф не сбрасывается. Строка служит и мьютексом
    (SELECT ... FOR UPDATE) при выдаче новой блокировки.
    """

    __tablename__ = "lockout_tallies"
    __table_args__ = ({"schema": SCHEMA},)

    email: Mapped[str] = mapped_column(String(320), primary_key=True)
    lockout_count: Mapped[int] = mapped_column(nullable=False, default=0)
    last_locked_at: Mapped[datetime | None]
