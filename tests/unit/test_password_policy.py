import pytest

from apps.security_svc.utils.password_manager import PasswordManager
from apps.security_svc.utils.password_policy import validate_password


def test_strong_password():
    result = validate_password("Str0ng!Passw0rd")
    assert result.is_valid is True
    assert result.errors == []
    assert result.strength == "strong"


def test_length_must_exceed_nine():
    # Ровно 10 символов проходит, 9 нет
    assert validate_password("Abcdef1!gh").is_valid is True
    result = validate_password("Abcdef1!g")
    assert result.is_valid is False
    assert len(result.errors) == 1
    assert result.strength == "medium"


@pytest.mark.parametrize(
    "password, missing",
    [
        ("str0ng!passw0rd", "uppercase"),
        ("STR0NG!PASSW0RD", "lowercase"),
        ("Strong!Password", "number"),
        ("Str0ngPassw0rd", "special character"),
    ],
)
def test_each_rule_reported(password: str, missing: str):
    result = validate_password(password)
    assert result.is_valid is False
    assert any(missing in e for e in result.errors)


def test_every_failed_rule_is_listed():
    result = validate_password("abc")
    assert len(result.errors) == 4  # длина, заглавная, цифра, символ
    assert result.strength == "weak"


@pytest.mark.parametrize("symbol", list("[]{};':\"\\|,.<>/?-=_+"))
def test_symbol_set(symbol: str):
    assert validate_password(f"Abcdefgh1{symbol}").is_valid is True


def test_secret_comparison_ignores_case_and_outer_whitespace(password_manager: PasswordManager):
    hashed = password_manager.hash_secret("My First Dog Rex")
    assert hashed.startswith("$2")
    assert password_manager.verify_secret("  my first dog rex ", hashed) is True
    assert password_manager.verify_secret("my first cat", hashed) is False


def test_same_secret_gets_different_salts(password_manager: PasswordManager):
    assert password_manager.hash_secret("Elm Street") != password_manager.hash_secret("Elm Street")


def test_broken_hash_is_a_mismatch(password_manager: PasswordManager):
    assert password_manager.verify_secret("anything", "not-a-bcrypt-hash") is False
    assert password_manager.matches_any("anything", []) is False


def test_secrets_longer_than_bcrypt_limit(password_manager: PasswordManager):
    # Совпадают в первых 72 байтах, различаются дальше
    prefix = "the name of my first elementary school teacher was mrs. smith, springfield "
    hashed = password_manager.hash_secret(prefix + "illinois")

    assert password_manager.verify_secret(prefix + "illinois", hashed) is True
    assert password_manager.verify_secret(prefix + "ohio", hashed) is False
    assert password_manager.verify_secret("Ж" * 100, password_manager.hash_secret("ж" * 100)) is True
