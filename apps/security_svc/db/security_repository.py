# apps/security_svc/db/security_repository.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libs.domain.dto.security import (
    AccountLockout,
    AuditEvent,
    LoginAttempt,
    LoginRecord,
    SecurityQuestion,
    UserSecurityProfile,
)
from libs.domain.orm.security import (
    AccountLockoutRow,
    AuditLogRow,
    LockoutTallyRow,
    LoginAttemptRow,
    LoginHistoryRow,
    UserSecurityProfileRow,
)
from libs.utils.db_errors import translate_db_errors
from .i_security_store import DurationPolicy, ISecurityStore

log = logging.getLogger(__name__)


def _lockout_from_row(row: AccountLockoutRow) -> AccountLockout:
    return AccountLockout(
        email=row.email,
        locked_at=row.locked_at,
        unlock_at=row.unlock_at,
        failed_attempts=row.failed_attempts,
        lockout_count=row.lockout_count,
    )


def _profile_from_row(row: UserSecurityProfileRow) -> UserSecurityProfile:
    return UserSecurityProfile(
        user_id=row.user_id,
        security_questions=[SecurityQuestion.model_validate(q) for q in row.security_questions],
        last_password_change=row.last_password_change,
        password_change_history=row.password_change_history,
        password_hashes=row.password_hashes,
        last_login_attempt=row.last_login_attempt,
        last_successful_login=row.last_successful_login,
        account_recovery_enabled=row.account_recovery_enabled,
    )


class SqlSecurityStore(ISecurityStore):
    """
    Реализация хранилища на SQLAlchemy 2.0 (asyncpg).
    Каждый метод открывает свою сессию и сам фиксирует транзакцию.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    # --- loginAttempts ---

    @translate_db_errors
    async def add_login_attempt(self, attempt: LoginAttempt) -> None:
        stmt = (
            pg_insert(LoginAttemptRow)
            .values(
                email=attempt.email,
                timestamp=attempt.timestamp,
                attempt_number=attempt.attempt_number,
            )
            # Две неудачи в одну и ту же микросекунду считаем одной
            .on_conflict_do_nothing(constraint="uq_login_attempts_email_timestamp")
        )
        async with self.session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    @translate_db_errors
    async def find_login_attempts(self, email: str, since: datetime) -> List[LoginAttempt]:
        stmt = (
            select(LoginAttemptRow)
            .where(LoginAttemptRow.email == email)
            .where(LoginAttemptRow.timestamp > since)
            .order_by(LoginAttemptRow.timestamp)
        )
        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            LoginAttempt(email=r.email, timestamp=r.timestamp, attempt_number=r.attempt_number)
            for r in rows
        ]

    @translate_db_errors
    async def delete_login_attempts(self, email: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(LoginAttemptRow).where(LoginAttemptRow.email == email)
            )
            await session.commit()
        return result.rowcount or 0

    @translate_db_errors
    async def purge_login_attempts(self, before: datetime) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(LoginAttemptRow).where(LoginAttemptRow.timestamp < before)
            )
            await session.commit()
        return result.rowcount or 0

    # --- accountLockouts ---

    @translate_db_errors
    async def get_lockout(self, email: str) -> Optional[AccountLockout]:
        async with self.session_factory() as session:
            row = await session.get(AccountLockoutRow, email)
            return _lockout_from_row(row) if row else None

    @translate_db_errors
    async def acquire_lockout(
        self,
        email: str,
        *,
        failed_attempts: int,
        now: datetime,
        duration_for: DurationPolicy,
    ) -> Optional[AccountLockout]:
        async with self.session_factory() as session:
            async with session.begin():
                # Строка-счётчик одновременно служит мьютексом для email
                await session.execute(
                    pg_insert(LockoutTallyRow)
                    .values(email=email, lockout_count=0)
                    .on_conflict_do_nothing(index_elements=["email"])
                )
                tally = (
                    await session.execute(
                        select(LockoutTallyRow)
                        .where(LockoutTallyRow.email == email)
                        .with_for_update()
                    )
                ).scalar_one()

                current = await session.get(AccountLockoutRow, email)
                if current is not None and current.unlock_at > now:
                    log.debug(f"acquire_lockout: {email} уже заблокирован до {current.unlock_at}")
                    return None

                previous = max(tally.lockout_count, current.lockout_count if current else 0)
                lockout = AccountLockout(
                    email=email,
                    locked_at=now,
                    unlock_at=now + duration_for(previous),
                    failed_attempts=failed_attempts,
                    lockout_count=previous + 1,
                )

                values = lockout.model_dump()
                stmt = pg_insert(AccountLockoutRow).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["email"],
                    set_={k: stmt.excluded[k] for k in values if k != "email"},
                )
                await session.execute(stmt)

                tally.lockout_count = lockout.lockout_count
                tally.last_locked_at = now
            return lockout

    @translate_db_errors
    async def delete_lockout(self, email: str, *, expired_at: Optional[datetime] = None) -> bool:
        stmt = delete(AccountLockoutRow).where(AccountLockoutRow.email == email)
        if expired_at is not None:
            stmt = stmt.where(AccountLockoutRow.unlock_at <= expired_at)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
        return bool(result.rowcount)

    @translate_db_errors
    async def purge_expired_lockouts(self, now: datetime) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(AccountLockoutRow).where(AccountLockoutRow.unlock_at <= now)
            )
            await session.commit()
        return result.rowcount or 0

    # --- userSecurityProfile ---

    @translate_db_errors
    async def get_profile(self, user_id: str) -> Optional[UserSecurityProfile]:
        async with self.session_factory() as session:
            row = await session.get(UserSecurityProfileRow, user_id)
            return _profile_from_row(row) if row else None

    @translate_db_errors
    async def save_profile(self, profile: UserSecurityProfile) -> None:
        doc = profile.model_dump(mode="json")
        values = {
            "user_id": profile.user_id,
            "security_questions": doc["security_questions"],
            "password_change_history": doc["password_change_history"],
            "password_hashes": profile.password_hashes,
            "last_password_change": profile.last_password_change,
            "last_login_attempt": profile.last_login_attempt,
            "last_successful_login": profile.last_successful_login,
            "account_recovery_enabled": profile.account_recovery_enabled,
        }
        stmt = pg_insert(UserSecurityProfileRow).values(**values)
        set_ = {k: stmt.excluded[k] for k in values if k != "user_id"}
        set_["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(index_elements=["user_id"], set_=set_)
        async with self.session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    # --- loginHistory ---

    @translate_db_errors
    async def append_login_record(self, record: LoginRecord) -> None:
        async with self.session_factory() as session:
            session.add(LoginHistoryRow(**record.model_dump()))
            await session.commit()

    @translate_db_errors
    async def count_login_records(self, user_id: str, *, since: datetime, success: bool) -> int:
        stmt = (
            select(func.count())
            .select_from(LoginHistoryRow)
            .where(LoginHistoryRow.user_id == user_id)
            .where(LoginHistoryRow.success.is_(success))
            .where(LoginHistoryRow.timestamp >= since)
        )
        async with self.session_factory() as session:
            return int((await session.execute(stmt)).scalar_one())

    # --- auditLog ---

    @translate_db_errors
    async def append_audit_event(self, event: AuditEvent) -> None:
        async with self.session_factory() as session:
            session.add(
                AuditLogRow(
                    actor=event.actor,
                    action=event.action,
                    target=event.target,
                    details=event.model_dump(mode="json")["details"],
                    created_at=event.created_at,
                )
            )
            await session.commit()
