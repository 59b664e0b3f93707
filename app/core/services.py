"""
Service layer base classes.

- ServiceResult: outcome of an operation whose failure is expected and
  already handled (e.g. a refund the gateway declined and we recorded)
- BaseService: logger and transaction helpers shared by services

Exceptions remain the channel for everything else: callers not allowed
to act, lock contention, database errors.

Usage:
    from core.services import BaseService, ServiceResult

    class RefundService(BaseService):
        def refund(self, order) -> ServiceResult[Order]:
            with self.atomic():
                ...
            if declined:
                return ServiceResult.failure("Declined", error_code="GATEWAY_REFUND_FAILED", data=order)
            return ServiceResult.success(order)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Success or expected failure of a service call.

    Attributes:
        success: Whether the operation succeeded
        data: Result payload; failures may carry the record they updated
        error: Human-readable message when failed
        error_code: Machine-readable code when failed
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        data: T | None = None,
    ) -> ServiceResult[T]:
        return cls(success=False, data=data, error=error, error_code=error_code)

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for services.

    Ledger-style services are stateless and use classmethods only;
    services wrapping an external capability (a gateway) receive it in
    __init__.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named after the concrete service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """Run the block in a database transaction (thin transaction.atomic wrapper)."""
        with transaction.atomic():
            yield
