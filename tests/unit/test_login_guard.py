import pytest

from libs.app.errors import LockoutError

EMAIL = "user@example.com"


@pytest.fixture
def guard(container):
    return container.login_guard


@pytest.mark.anyio
async def test_third_failure_raises_lockout(guard, store):
    await guard.on_login_failed(EMAIL)
    status = await guard.on_login_failed(EMAIL, user_id="u1", ip_address="10.0.0.1")
    assert status.is_locked is False

    with pytest.raises(LockoutError) as exc:
        await guard.on_login_failed(EMAIL)
    assert exc.value.remaining_minutes == 15
    assert exc.value.lockout_count == 1
    assert exc.value.message == "Too many failed login attempts. Account is now locked for 15 minutes."

    # Журнал входов пишется только при известном user_id
    assert len(store.login_records) == 1
    assert store.login_records[0].success is False


@pytest.mark.anyio
async def test_locked_account_is_rejected_before_password_check(guard, clock):
    assert (await guard.ensure_not_locked(EMAIL)).is_locked is False
    await guard.on_login_failed(EMAIL)
    await guard.on_login_failed(EMAIL)
    with pytest.raises(LockoutError):
        await guard.on_login_failed(EMAIL)

    clock.advance(minutes=5)
    with pytest.raises(LockoutError) as exc:
        await guard.ensure_not_locked("User@Example.com")
    assert exc.value.remaining_minutes == 10
    assert "try again in 10 minutes" in exc.value.message


@pytest.mark.anyio
async def test_success_clears_attempts_and_records_login(guard, store, clock):
    await guard.on_login_failed(EMAIL)
    await guard.on_login_failed(EMAIL)
    await guard.on_login_succeeded(EMAIL, "u1", "10.0.0.1", "pytest")

    assert store.attempts == []
    assert store.profiles["u1"].last_successful_login == clock.now
    # После успеха счёт начинается заново
    assert (await guard.on_login_failed(EMAIL)).is_locked is False

