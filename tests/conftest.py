# tests/conftest.py
import pytest

from apps.security_svc.config.security_policy import DEFAULT_POLICY, SecurityPolicy
from apps.security_svc.utils.password_manager import PasswordManager
from libs.containers.security_container import SecurityContainer
from tests.fakes import FakeAuthProvider, FakeClock, InMemorySecurityStore


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemorySecurityStore:
    return InMemorySecurityStore()


@pytest.fixture
def auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture(scope="session")
def password_manager() -> PasswordManager:
    # Минимальная стоимость bcrypt, чтобы тесты шли быстро
    return PasswordManager(rounds=4)


@pytest.fixture
def policy() -> SecurityPolicy:
    return DEFAULT_POLICY


@pytest.fixture
def container(store, auth_provider, password_manager, policy, clock) -> SecurityContainer:
    return SecurityContainer.build(
        policy=policy,
        store=store,
        auth_provider=auth_provider,
        password_manager=password_manager,
        clock=clock,
    )
