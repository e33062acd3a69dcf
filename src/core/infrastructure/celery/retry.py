"""Celery task retry helpers.

只对基础设施错误重试；抓取 / 解析失败在服务内部已经降级处理。
"""

from kombu.exceptions import OperationalError as KombuOperationalError
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from src.core.domain.exceptions import StoreError
from src.core.infrastructure.redis.client import RedisUnavailableError


class RetryableTaskError(RuntimeError):
    """Explicitly retryable task error."""


DEFAULT_RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    RetryableTaskError,
    RedisUnavailableError,
    RedisError,
    StoreError,
    KombuOperationalError,
    SQLAlchemyError,
    TimeoutError,
)
