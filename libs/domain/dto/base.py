from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Источник текущего времени; сервисы принимают его в конструкторе
Clock = Callable[[], datetime]


class BaseMessage(BaseModel):
    v: int = Field(1, description="Версия схемы")
    ts: datetime = Field(default_factory=utcnow, description="UTC-время отправки")
    request_id: Optional[str] = Field(None, description="Идентификатор запроса (если релевантно)")


class EventMessage(BaseMessage):
    """Событие, публикуемое в core.events (topic exchange)."""
    type: str = Field(..., pattern=r"^evt\.[a-z0-9_.-]+$", description="напр. 'evt.auth.credential_reset_requested'")
    producer: str = Field("security-svc", description="имя сервиса-производителя события")
    payload: Dict[str, Any] = Field(default_factory=dict)
