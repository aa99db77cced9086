from .base import (
    BaseMessage as BaseMessage,
    EventMessage as EventMessage,
    utcnow as utcnow,
)
from .rpc import RpcResponse as RpcResponse
from .security import (
    LoginAttempt as LoginAttempt,
    AccountLockout as AccountLockout,
    SecurityQuestion as SecurityQuestion,
    UserSecurityProfile as UserSecurityProfile,
    LoginRecord as LoginRecord,
    AuditEvent as AuditEvent,
    AccountIdentity as AccountIdentity,
    SecurityAnswer as SecurityAnswer,
    LockStatus as LockStatus,
    AccountSecurityStatus as AccountSecurityStatus,
    ChangeEligibility as ChangeEligibility,
    PasswordValidationResult as PasswordValidationResult,
    QuestionView as QuestionView,
    LastLoginInfo as LastLoginInfo,
    normalize_email as normalize_email,
)
