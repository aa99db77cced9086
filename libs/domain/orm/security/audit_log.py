# libs/domain/orm/security/audit_log.py
from __future__ import annotations
from typing import Any, Dict

from sqlalchemy import BigInteger, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from libs.domain.orm.base import Base, CreatedAtMixin, SCHEMA


class AuditLogRow(CreatedAtMixin, Base):
    __tablename__ = "audit_log"
    __table_args__ = ({"schema": SCHEMA},)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    actor: Mapped[str] = mapped_column(String(320), nullable=False)
    action: Mapped[str] = mapped_column(String(80), nullable=False)  # напр. admin.unlock
    target: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    details: Mapped[Dict[str, Any]] = mapped_column(
        JSONB, nullable=False, server_default=text("'{}'::jsonb")
    )
