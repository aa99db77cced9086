# libs/utils/db_errors.py
import functools
import logging
from typing import Any, Callable, Coroutine, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from libs.app.errors import PersistenceError

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger(__name__)


def translate_db_errors(
    func: Callable[P, Coroutine[Any, Any, R]],
) -> Callable[P, Coroutine[Any, Any, R]]:
    """
    Декоратор для асинхронных методов хранилища.
    Ошибки драйвера и SQLAlchemy логируются и пробрасываются как PersistenceError,
    чтобы сервисный слой решал сам: fail-open, проглотить или показать клиенту.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except PersistenceError:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Ошибка хранилища в методе {func.__name__}: {e}", exc_info=True)
            raise PersistenceError(f"Storage operation '{func.__name__}' failed") from e

    return wrapper
