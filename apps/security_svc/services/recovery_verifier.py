# apps/security_svc/services/recovery_verifier.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from libs.app.errors import AuthError, ErrorCode, PersistenceError, ValidationError
from libs.domain.dto.base import Clock, utcnow
from libs.domain.dto.security import (
    AuditEvent,
    QuestionView,
    SecurityAnswer,
    SecurityQuestion,
    UserSecurityProfile,
    normalize_email,
)
from apps.security_svc.config.security_policy import SecurityPolicy
from apps.security_svc.db.i_security_store import ISecurityStore
from apps.security_svc.providers.i_auth_provider import IAuthProvider
from apps.security_svc.utils.password_manager import PasswordManager
from apps.security_svc.utils.question_catalog import resolve_question_text
from .password_lifecycle import PasswordLifecycleService

log = logging.getLogger(__name__)

ACTION_KNOWLEDGE_RESET = "recovery.password_reset"


class RecoveryVerifier:
    """
    Восстановление доступа по контрольным вопросам.
    Ответы нормализуются (trim + lower) и хранятся только как bcrypt-хеши.
    """

    def __init__(
        self,
        store: ISecurityStore,
        auth_provider: IAuthProvider,
        password_manager: PasswordManager,
        password_lifecycle: PasswordLifecycleService,
        policy: SecurityPolicy,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.auth_provider = auth_provider
        self.password_manager = password_manager
        self.password_lifecycle = password_lifecycle
        self.policy = policy
        self.clock = clock

    # --- Настройка вопросов ---

    def _validate_setup(self, answers: Sequence[SecurityAnswer]) -> List[str]:
        p = self.policy
        errors: List[str] = []
        if len(answers) < p.min_security_questions:
            errors.append(f"Please answer at least {p.min_security_questions} security questions")
        if len(answers) > p.max_security_questions:
            errors.append(f"Please answer no more than {p.max_security_questions} security questions")

        seen: set[str] = set()
        for a in answers:
            if a.question_id in seen:
                errors.append(f"Duplicate question: {a.question_id}")
            seen.add(a.question_id)
            if len(a.answer.strip()) < p.min_answer_length:
                text = resolve_question_text(a.question_id, a.question)
                errors.append(f'Answer for "{text}" is too short. Please provide a detailed answer.')
        return errors

    async def setup_security_questions(self, user_id: str, answers: Sequence[SecurityAnswer]) -> None:
        """Заменяет набор вопросов целиком. История паролей при этом обнуляется."""
        errors = self._validate_setup(answers)
        if errors:
            raise ValidationError(errors)

        now = self.clock()
        questions = [
            SecurityQuestion(
                question_id=a.question_id,
                question=resolve_question_text(a.question_id, a.question),
                hashed_answer=self.password_manager.hash_secret(a.answer),
                created_at=now,
            )
            for a in answers
        ]
        profile = await self.store.get_profile(user_id) or UserSecurityProfile(user_id=user_id)
        await self.store.save_profile(
            profile.model_copy(
                update={
                    "security_questions": questions,
                    "password_hashes": [],
                    "account_recovery_enabled": True,
                }
            )
        )
        log.info(f"Контрольные вопросы настроены: {user_id} ({len(questions)} шт.)", extra={"user_id": user_id})

    async def has_security_questions(self, user_id: str) -> bool:
        try:
            profile = await self.store.get_profile(user_id)
        except PersistenceError as e:
            log.error(f"has_security_questions: {user_id}: {e}")
            return False
        return bool(profile and profile.security_questions)

    # --- Проверка ---

    async def _load_profile_by_email(self, email: str) -> Optional[UserSecurityProfile]:
        user_id = await self.auth_provider.resolve_user_id(email)
        if user_id is None:
            return None
        return await self.store.get_profile(user_id)

    async def get_user_security_questions(self, email: str) -> List[QuestionView]:
        """Вопросы без ответов. Если что-то недоступно, пустой список."""
        email = normalize_email(email)
        try:
            profile = await self._load_profile_by_email(email)
        except PersistenceError as e:
            log.error(f"get_user_security_questions: {email}: {e}")
            return []
        if profile is None:
            return []
        return [QuestionView(question_id=q.question_id, question=q.question) for q in profile.security_questions]

    async def verify_security_questions(self, email: str, answers: Sequence[SecurityAnswer]) -> bool:
        threshold = self.policy.recovery_min_correct_answers
        if len(answers) < threshold:
            raise ValidationError([f"Please answer at least {threshold} security questions"])

        email = normalize_email(email)
        profile = await self._load_profile_by_email(email)
        if profile is None or not profile.security_questions:
            # Неизвестный email и отсутствие вопросов неотличимы снаружи
            log.info(f"verify_security_questions: нет вопросов для {email}")
            return False

        stored: Dict[str, SecurityQuestion] = {q.question_id: q for q in profile.security_questions}
        matched: set[str] = set()
        for a in answers:
            q = stored.get(a.question_id)
            if q is None or a.question_id in matched:
                continue
            if self.password_manager.verify_secret(a.answer, q.hashed_answer):
                matched.add(a.question_id)

        verified = len(matched) >= threshold
        log.info(f"verify_security_questions: {email} верных ответов {len(matched)}, пройдено={verified}")
        return verified

    # --- Сброс ---

    async def reset_password_with_security_questions(
        self, email: str, answers: Sequence[SecurityAnswer], new_password: str
    ) -> None:
        email = normalize_email(email)
        if not await self.verify_security_questions(email, answers):
            raise AuthError("Security question verification failed", code=ErrorCode.RECOVERY_VERIFICATION_FAILED)

        self.password_lifecycle.ensure_strong(new_password)

        user_id = await self.auth_provider.resolve_user_id(email)
        if user_id is None:
            raise AuthError("Security question verification failed", code=ErrorCode.RECOVERY_VERIFICATION_FAILED)
        await self.password_lifecycle.ensure_not_reused(user_id, new_password)

        event = AuditEvent(
            actor=email,
            action=ACTION_KNOWLEDGE_RESET,
            target=user_id,
            details={"verified_by": "security_questions", "answers_submitted": len(answers)},
            created_at=self.clock(),
        )
        try:
            await self.store.append_audit_event(event)
        except PersistenceError as e:
            # Аудит не блокирует сброс
            log.error(f"reset_password_with_security_questions: аудит не записан для {user_id}: {e}",
                      extra={"user_id": user_id})

        # Сама замена пароля происходит вне сервиса (письмо провайдера); RateError идёт наверх
        await self.auth_provider.dispatch_credential_reset(email)
        await self.password_lifecycle.remember_password(user_id, new_password)
        log.info(f"Сброс пароля по контрольным вопросам: {user_id}", extra={"user_id": user_id})
