# apps/security_svc/rest/security_routes.py
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from libs.containers.security_container import SecurityContainer
from libs.domain.dto.security import (
    AccountSecurityStatus,
    AdminUnlockRequest,
    ChangeEligibility,
    ChangePasswordRequest,
    EmailRequest,
    LastLoginInfo,
    LockStatus,
    PasswordValidationResult,
    QuestionView,
    RecordLoginRequest,
    ResetPasswordRequest,
    SetupQuestionsRequest,
    UnlockResult,
    ValidatePasswordRequest,
    VerifyQuestionsRequest,
    VerifyResult,
    normalize_email,
)
from apps.security_svc.rest.dependencies import get_container
from apps.security_svc.rest.dto import APIResponse, ApiQuestionsSetupResponse

# Вызывающего аутентифицирует шлюз; сервис доверяет user_id и admin_email из запроса
router = APIRouter(prefix="/v1/security")


# --- Попытки входа и блокировки ---

@router.post("/attempts/failed", response_model=APIResponse[LockStatus])
async def record_failed_attempt(
    body: EmailRequest,
    container: SecurityContainer = Depends(get_container),
):
    await container.attempt_recorder.record_failed_attempt(body.email)
    status = await container.lockout_engine.is_locked(body.email)
    return APIResponse[LockStatus](success=True, data=status)


@router.get("/lockout", response_model=APIResponse[LockStatus])
async def is_account_locked(
    email: str = Query(...),
    container: SecurityContainer = Depends(get_container),
):
    status = await container.status_service.is_account_locked(email)
    return APIResponse[LockStatus](success=True, data=status)


@router.delete("/attempts", response_model=APIResponse[None])
async def clear_failed_attempts(
    email: str = Query(...),
    container: SecurityContainer = Depends(get_container),
):
    await container.attempt_recorder.clear_failed_attempts(email)
    return APIResponse[None](success=True, message="Failed attempts cleared")


@router.get("/status", response_model=APIResponse[AccountSecurityStatus])
async def get_account_security_status(
    email: str = Query(...),
    container: SecurityContainer = Depends(get_container),
):
    status = await container.status_service.get_account_security_status(email)
    return APIResponse[AccountSecurityStatus](success=True, data=status)


@router.post("/admin/unlock", response_model=APIResponse[UnlockResult])
async def admin_unlock_account(
    body: AdminUnlockRequest,
    container: SecurityContainer = Depends(get_container),
):
    """admin_email берётся из тела как есть: роль администратора проверяет шлюз до проксирования."""
    ok = await container.admin_override.admin_unlock_account(body.email, body.admin_email)
    return APIResponse[UnlockResult](
        success=ok,
        message=None if ok else "Failed to unlock account",
        data=UnlockResult(success=ok),
    )


# --- Пароль ---

@router.post("/password/change", response_model=APIResponse[None])
async def change_password(
    body: ChangePasswordRequest,
    container: SecurityContainer = Depends(get_container),
):
    await container.password_lifecycle.change_password(
        body.identity, body.current_password, body.new_password
    )
    return APIResponse[None](success=True, message="Password changed")


@router.get("/password/eligibility/{user_id}", response_model=APIResponse[ChangeEligibility])
async def can_change_password(
    user_id: str,
    container: SecurityContainer = Depends(get_container),
):
    eligibility = await container.password_lifecycle.can_change_password(user_id)
    return APIResponse[ChangeEligibility](success=True, data=eligibility)


@router.post("/password/validate", response_model=APIResponse[PasswordValidationResult])
async def validate_password(
    body: ValidatePasswordRequest,
    container: SecurityContainer = Depends(get_container),
):
    result = container.password_lifecycle.validate_password(body.password)
    return APIResponse[PasswordValidationResult](success=True, data=result)


@router.post("/password/reset", response_model=APIResponse[None])
async def reset_password_with_security_questions(
    body: ResetPasswordRequest,
    container: SecurityContainer = Depends(get_container),
):
    await container.recovery_verifier.reset_password_with_security_questions(
        body.email, body.answers, body.new_password
    )
    return APIResponse[None](
        success=True,
        message="Identity verified. Follow the link sent to your email to complete the reset.",
    )


# --- Контрольные вопросы ---

@router.put("/questions/{user_id}", response_model=APIResponse[ApiQuestionsSetupResponse])
async def setup_security_questions(
    user_id: str,
    body: SetupQuestionsRequest,
    container: SecurityContainer = Depends(get_container),
):
    """Сервис не сверяет user_id с вызывающим: шлюз обязан пропускать только владельца аккаунта."""
    await container.recovery_verifier.setup_security_questions(user_id, body.answers)
    return APIResponse[ApiQuestionsSetupResponse](
        success=True,
        data=ApiQuestionsSetupResponse(user_id=user_id, questions=len(body.answers)),
    )


@router.get("/questions", response_model=APIResponse[List[QuestionView]])
async def get_user_security_questions(
    email: str = Query(...),
    container: SecurityContainer = Depends(get_container),
):
    questions = await container.recovery_verifier.get_user_security_questions(normalize_email(email))
    return APIResponse[List[QuestionView]](success=True, data=questions)


@router.post("/questions/verify", response_model=APIResponse[VerifyResult])
async def verify_security_questions(
    body: VerifyQuestionsRequest,
    container: SecurityContainer = Depends(get_container),
):
    verified = await container.recovery_verifier.verify_security_questions(body.email, body.answers)
    return APIResponse[VerifyResult](success=True, data=VerifyResult(verified=verified))


# --- Журнал входов ---

@router.post("/logins", response_model=APIResponse[None])
async def record_login_attempt(
    body: RecordLoginRequest,
    container: SecurityContainer = Depends(get_container),
):
    await container.status_service.record_login_attempt(
        body.user_id, body.success, body.ip_address, body.user_agent
    )
    return APIResponse[None](success=True)


@router.get("/logins/{user_id}/last", response_model=APIResponse[LastLoginInfo])
async def get_last_login_info(
    user_id: str,
    container: SecurityContainer = Depends(get_container),
):
    info = await container.status_service.get_last_login_info(user_id)
    return APIResponse[LastLoginInfo](success=True, data=info)


@router.get("/policy", response_model=APIResponse[Dict[str, Any]])
async def get_security_audit(container: SecurityContainer = Depends(get_container)):
    return APIResponse[Dict[str, Any]](success=True, data=container.status_service.get_security_audit())


security_routes_router = router
