# libs/messaging/rabbitmq_names.py

class Exchanges:
    """Центральные обменники."""
    RPC = "core.rpc.v1"
    EVENTS = "core.events.v1"
    DLX = "core.dlx.v1"


class Queues:
    """
    Базовые имена RPC очередей.
    Суффиксы .retry и .dlq генерируются автоматически при необходимости.
    """
    # Обслуживает security_svc (вызывает auth-сервис в процессе входа)
    SECURITY_CHECK_LOCK_RPC = "core.security.rpc.check_lock.v1"
    SECURITY_LOGIN_FAILED_RPC = "core.security.rpc.login_failed.v1"
    SECURITY_LOGIN_SUCCEEDED_RPC = "core.security.rpc.login_succeeded.v1"

    # Обслуживает внешний auth-сервис (вызывает security_svc)
    AUTH_REAUTHENTICATE_RPC = "core.auth.rpc.reauthenticate.v1"
    AUTH_UPDATE_CREDENTIAL_RPC = "core.auth.rpc.update_credential.v1"
    AUTH_LOOKUP_ACCOUNT_RPC = "core.auth.rpc.lookup_account.v1"


class Events:
    """Routing key событий в Exchanges.EVENTS."""
    AUTH_CREDENTIAL_RESET_REQUESTED = "evt.auth.credential_reset_requested"


def get_retry_queue_name(base_name: str) -> str:
    """Генерирует имя retry-очереди."""
    return f"{base_name}.retry"


def get_dlq_name(base_name: str) -> str:
    """Генерирует имя DLQ."""
    return f"{base_name}.dlq"
