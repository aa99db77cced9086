# libs/utils/redis_keys.py


def make_key(*parts: str) -> str:
    """Собирает стандартизированный ключ для Redis: core:<part1>:<part2>..."""
    return f"core:{':'.join(parts)}"


# --- Ключи для домена Security ---


def key_security_lockout(email: str) -> str:
    """Кэш активной блокировки аккаунта. Живёт не дольше самой блокировки."""
    return make_key("security", "lockout", email)


def key_security_rpc_reply(correlation_id: str) -> str:
    """Готовый ответ RPC по correlation_id: повторная доставка получает его без повторной обработки."""
    return make_key("security", "rpc_reply", correlation_id)
