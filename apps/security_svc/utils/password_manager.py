# apps/security_svc/utils/password_manager.py
import base64
import hashlib
from typing import Iterable

import bcrypt


class PasswordManager:
    """
    Хеширование истории паролей и ответов на контрольные вопросы.
    bcrypt с солью на каждый хеш; сравнение только через checkpw.

    bcrypt принимает не больше 72 байт, поэтому нормализованное значение
    сначала сворачивается в base64(sha256) фиксированной длины (44 байта).
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    @staticmethod
    def normalize(secret: str) -> str:
        """Ответы и пароли в истории сравниваются без учёта регистра и пробелов по краям."""
        return secret.strip().lower()

    def _prehash(self, secret: str) -> bytes:
        digest = hashlib.sha256(self.normalize(secret).encode("utf-8")).digest()
        return base64.b64encode(digest)

    def hash_secret(self, secret: str) -> str:
        """Hash нормализованного значения с использованием bcrypt."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._prehash(secret), salt).decode("utf-8")

    def verify_secret(self, secret: str, hashed: str) -> bool:
        """Проверяет, соответствует ли значение хешу. Битый хеш считается несовпадением."""
        try:
            return bcrypt.checkpw(self._prehash(secret), hashed.encode("utf-8"))
        except ValueError:
            return False

    def matches_any(self, secret: str, hashes: Iterable[str]) -> bool:
        return any(self.verify_secret(secret, h) for h in hashes)
