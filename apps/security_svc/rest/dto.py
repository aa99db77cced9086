# apps/security_svc/rest/dto.py
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

PayloadT = TypeVar("PayloadT")


class APIResponse(BaseModel, Generic[PayloadT]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[PayloadT] = None


class ApiQuestionsSetupResponse(BaseModel):
    user_id: str
    questions: int
