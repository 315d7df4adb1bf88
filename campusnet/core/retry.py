# campusnet/core/retry.py
"""Bounded retry with exponential backoff for idempotent store reads."""

import logging
import random
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, TypeVar

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy.exc import OperationalError

from campusnet.config.settings import settings
from campusnet.core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    RedisConnectionError,
    RedisTimeoutError,
    ConnectionError,
    TimeoutError,
)


@dataclass
class RetryConfig:
    attempts: int = 3
    initial_delay: float = 0.1  # seconds
    max_delay: float = 2.0
    multiplier: float = 2.0
    jitter: float = 0.25


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    delay = min(config.initial_delay * (config.multiplier ** attempt), config.max_delay)
    jitter_range = delay * config.jitter
    return max(0.0, delay + random.uniform(-jitter_range, jitter_range))


def _config_from(cfg_settings) -> RetryConfig:
    return RetryConfig(
        attempts=max(1, cfg_settings.store_retry_attempts),
        initial_delay=cfg_settings.store_retry_initial_delay,
    )


_default_config = _config_from(settings)


def configure_retry(cfg_settings) -> RetryConfig:
    """Replace the default used by every ``retry_read`` without an explicit config."""
    global _default_config
    _default_config = _config_from(cfg_settings)
    return _default_config


def retry_read(config: RetryConfig | None = None):
    """Retry an idempotent read on transient store failures.

    After ``config.attempts`` tries the last failure is surfaced as
    ``TransientStoreError``. Without an explicit config the default set by
    ``configure_retry`` is read on each call. Never wrap writes with this.
    """

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):
            cfg = config or _default_config
            for attempt in range(cfg.attempts):
                try:
                    return fn(*args, **kwargs)
                except TRANSIENT_ERRORS as e:
                    if attempt >= cfg.attempts - 1:
                        raise TransientStoreError() from e
                    # repositórios descartam a transação quebrada antes de tentar de novo
                    recover = getattr(args[0], "_recover_from_transient", None) if args else None
                    if callable(recover):
                        recover()
                    delay = calculate_delay(attempt, cfg)
                    logger.warning(
                        "%s failed (%s), retry %d/%d in %.2fs",
                        fn.__qualname__, type(e).__name__, attempt + 1, cfg.attempts - 1, delay,
                    )
                    time.sleep(delay)
            raise TransientStoreError()

        return wrapper  # type: ignore[return-value]

    return decorator
