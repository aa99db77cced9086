# libs/domain/orm/security/security_profile.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import Boolean, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from libs.domain.orm.base import Base, SCHEMA, utcnow


class UserSecurityProfileRow(Base):
    __tablename__ = "user_security_profiles"
    __table_args__ = ({"schema": SCHEMA},)

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    # Вложенные коллекции храним документом, как в исходном хранилище
    security_questions: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )
    password_change_history: Mapped[List[str]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )
    password_hashes: Mapped[List[str]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )

    last_password_change: Mapped[datetime | None]
    last_login_attempt: Mapped[datetime | None]
    last_successful_login: Mapped[datetime | None]
    account_recovery_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, default=utcnow, onupdate=utcnow
    )
