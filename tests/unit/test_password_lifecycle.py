from datetime import timedelta

import pytest

from libs.app.errors import AuthError, ReuseError, TooSoonError, ValidationError
from tests.fakes import STRONG_PASSWORD

OLD_PASSWORD = "0ld!Password"


@pytest.fixture
def identity(auth_provider):
    return auth_provider.add_user("u1", "u1@example.com", OLD_PASSWORD)


@pytest.fixture
def lifecycle(container):
    return container.password_lifecycle


@pytest.mark.anyio
async def test_change_password_updates_provider_and_history(lifecycle, identity, auth_provider, store, clock):
    await lifecycle.change_password(identity, OLD_PASSWORD, STRONG_PASSWORD)

    assert auth_provider.passwords["u1"] == STRONG_PASSWORD
    profile = store.profiles["u1"]
    assert len(profile.password_hashes) == 1
    assert profile.password_hashes[0] != STRONG_PASSWORD
    assert profile.last_password_change == clock.now
    assert profile.password_change_history == [clock.now]


@pytest.mark.anyio
async def test_weak_password_lists_all_errors(lifecycle, identity, auth_provider):
    with pytest.raises(ValidationError) as exc:
        await lifecycle.change_password(identity, OLD_PASSWORD, "weakpass")
    assert len(exc.value.errors) == 4  # длина, заглавная, цифра, символ
    assert exc.value.message.startswith("Password validation failed: ")
    assert auth_provider.passwords["u1"] == OLD_PASSWORD


@pytest.mark.anyio
async def test_wrong_current_password(lifecycle, identity, auth_provider, store):
    with pytest.raises(AuthError):
        await lifecycle.change_password(identity, "Wr0ng!Password", STRONG_PASSWORD)
    assert auth_provider.passwords["u1"] == OLD_PASSWORD
    assert "u1" not in store.profiles


@pytest.mark.anyio
async def test_change_too_soon(lifecycle, identity, clock):
    await lifecycle.change_password(identity, OLD_PASSWORD, STRONG_PASSWORD)

    clock.advance(hours=1)
    with pytest.raises(TooSoonError) as exc:
        await lifecycle.change_password(identity, STRONG_PASSWORD, "An0ther!Password")
    assert exc.value.hours_remaining == 23
    assert "24 hours" in exc.value.message

    clock.advance(hours=22, minutes=30)
    eligibility = await lifecycle.can_change_password("u1")
    assert eligibility.allowed is False
    assert eligibility.hours_remaining == 1


@pytest.mark.anyio
async def test_change_allowed_exactly_at_interval(lifecycle, identity, clock):
    await lifecycle.change_password(identity, OLD_PASSWORD, STRONG_PASSWORD)
    clock.advance(hours=24)
    assert (await lifecycle.can_change_password("u1")).allowed is True
    await lifecycle.change_password(identity, STRONG_PASSWORD, "An0ther!Password")


@pytest.mark.anyio
async def test_no_profile_means_change_allowed(lifecycle, store):
    assert (await lifecycle.can_change_password("nobody")).allowed is True
    store.fail_reads = True
    assert (await lifecycle.can_change_password("nobody")).allowed is True


@pytest.mark.anyio
async def test_reused_password_is_rejected_regardless_of_case_and_spaces(lifecycle, identity, clock):
    first, second = "First!Passw0rd", "Second!Passw0rd"
    await lifecycle.change_password(identity, OLD_PASSWORD, first)
    clock.advance(hours=25)
    await lifecycle.change_password(identity, first, second)
    clock.advance(hours=25)

    with pytest.raises(ReuseError) as exc:
        await lifecycle.change_password(identity, second, "  fIRST!PASSW0RD  ")
    assert exc.value.message == (
        "Cannot reuse any of your last 5 passwords. Please choose a different password."
    )


@pytest.mark.anyio
async def test_history_keeps_only_last_n(lifecycle, identity, auth_provider, clock, store, policy):
    passwords = [f"Passw0rd!{i}abc" for i in range(policy.password_history_size + 1)]
    current = OLD_PASSWORD
    for pw in passwords:
        await lifecycle.change_password(identity, current, pw)
        current = pw
        clock.advance(hours=24)

    profile = store.profiles["u1"]
    assert len(profile.password_hashes) == policy.password_history_size
    # Самый старый выпал из истории и снова допустим
    assert await lifecycle.is_password_reused("u1", passwords[0]) is False
    assert await lifecycle.is_password_reused("u1", passwords[-1]) is True


@pytest.mark.anyio
async def test_change_history_is_capped(store, clock, auth_provider, password_manager, policy):
    from apps.security_svc.services.password_lifecycle import PasswordLifecycleService

    lifecycle = PasswordLifecycleService(
        store,
        auth_provider,
        password_manager,
        policy.model_copy(update={"password_change_history_size": 2}),
        clock=clock,
    )
    stamps = []
    for i in range(3):
        await lifecycle.remember_password("u1", f"Passw0rd!{i}abc")
        stamps.append(clock.now)
        clock.advance(hours=24)

    assert store.profiles["u1"].password_change_history == stamps[-2:]


@pytest.mark.anyio
async def test_remember_password_surfaces_storage_failure(lifecycle, store):
    from libs.app.errors import PersistenceError

    store.fail_writes = True
    with pytest.raises(PersistenceError):
        await lifecycle.remember_password("u1", STRONG_PASSWORD)


def test_validate_password_passthrough(lifecycle):
    result = lifecycle.validate_password("short")
    assert result.is_valid is False
    assert result.strength == "weak"


@pytest.mark.anyio
async def test_long_password_is_remembered(lifecycle, identity, auth_provider, store, clock):
    long_password = "Aa1!" + "x" * 80
    await lifecycle.change_password(identity, OLD_PASSWORD, long_password)

    assert auth_provider.passwords["u1"] == long_password
    assert store.profiles["u1"].last_password_change == clock.now
    assert await lifecycle.is_password_reused("u1", long_password) is True
    assert await lifecycle.is_password_reused("u1", "Aa1!" + "x" * 79 + "y") is False
