# libs/domain/orm/security/__init__.py
from .login_attempt import LoginAttemptRow
from .account_lockout import AccountLockoutRow, LockoutTallyRow
from .security_profile import UserSecurityProfileRow
from .login_history import LoginHistoryRow
from .audit_log import AuditLogRow

__all__ = [
    "LoginAttemptRow",
    "AccountLockoutRow",
    "LockoutTallyRow",
    "UserSecurityProfileRow",
    "LoginHistoryRow",
    "AuditLogRow",
]
