"""Shared error handling utilities for API routers."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Coroutine, Optional, TypeVar

from fastapi import HTTPException

from ticker_identifier.core.errors import TickerIdentifierError, ValidationError

T = TypeVar("T")

logger = logging.getLogger(__name__)


def service_error_handler(
    *,
    failure_detail: Optional[str] = None,
    validation_status: int = 400,
    failure_status: int = 500,
) -> Callable[
    [Callable[..., Coroutine[Any, Any, T]]],
    Callable[..., Coroutine[Any, Any, T]],
]:
    """Decorator that maps service exceptions to HTTPException.

    ``failure_detail`` replaces the message of non-validation failures so
    internal details stay out of responses.
    """

    def decorator(
        fn: Callable[..., Coroutine[Any, Any, T]],
    ) -> Callable[..., Coroutine[Any, Any, T]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await fn(*args, **kwargs)
            except (ValidationError, ValueError) as exc:
                raise HTTPException(
                    status_code=validation_status, detail=str(exc)
                ) from exc
            except TickerIdentifierError as exc:
                logger.warning("%s failed: %s", fn.__name__, exc)
                raise HTTPException(
                    status_code=failure_status, detail=failure_detail or str(exc)
                ) from exc

        return wrapper

    return decorator
