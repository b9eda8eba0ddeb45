"""
Customer persistence.

`CustomerRepository` is the narrow port the service layer talks to; it is
async so the service never assumes storage is in-process. `SqlCustomerRepository`
implements it on a SQLAlchemy session (request-scoped in the web app).

Absence and failure are separate channels: `get_by_id` returns None for a
missing row and raises for infrastructure errors.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.shopping.modules.customers.models import Customer

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("first_name", "last_name", "address", "discount")


class RepositoryError(Exception):
    """Base class for errors raised by customer repositories."""


class ConcurrencyConflictError(RepositoryError):
    """The stored row changed (or vanished) since the caller last read it."""

    def __init__(self, customer_id: int | None, message: str | None = None) -> None:
        self.customer_id = customer_id
        super().__init__(message or f"Customer {customer_id} was modified by someone else.")


class CustomerNotFoundError(RepositoryError):
    def __init__(self, customer_id: int) -> None:
        self.customer_id = customer_id
        super().__init__(f"Customer {customer_id} not found.")


class CustomerRepository(ABC):
    @abstractmethod
    async def get_all(self) -> list[Customer]:
        ...

    @abstractmethod
    async def get_by_id(self, customer_id: int) -> Customer | None:
        ...

    @abstractmethod
    async def add(self, customer: Customer) -> None:
        """Persist a new customer; assigns `customer.id`."""
        ...

    @abstractmethod
    async def update(self, customer: Customer) -> None:
        """Replace the editable fields. Raises ConcurrencyConflictError on a stale version."""
        ...

    @abstractmethod
    async def remove(self, customer_id: int) -> None:
        ...


class SqlCustomerRepository(CustomerRepository):
    def __init__(self, s: Session) -> None:
        self.s = s

    async def get_all(self) -> list[Customer]:
        return self.s.query(Customer).order_by(Customer.id.asc()).all()

    async def get_by_id(self, customer_id: int) -> Customer | None:
        return self.s.query(Customer).filter(Customer.id == customer_id).one_or_none()

    async def add(self, customer: Customer) -> None:
        now = datetime.utcnow()
        # Identity is always assigned by the database.
        customer.id = None  # type: ignore[assignment]
        customer.created_at = now
        customer.updated_at = now
        self.s.add(customer)
        self._commit()
        logger.info("customer.create id=%s", customer.id)

    async def update(self, customer: Customer) -> None:
        stored = self.s.query(Customer).filter(Customer.id == customer.id).one_or_none()
        if stored is None:
            raise ConcurrencyConflictError(customer.id, f"Customer {customer.id} no longer exists.")
        if customer.version is None or stored.version != customer.version:
            raise ConcurrencyConflictError(customer.id)

        for attr in EDITABLE_FIELDS:
            setattr(stored, attr, getattr(customer, attr))
        stored.updated_at = datetime.utcnow()
        try:
            self._commit()
        except StaleDataError as e:
            raise ConcurrencyConflictError(customer.id) from e
        # Hand the new token back so a re-rendered form carries it.
        customer.version = stored.version
        logger.info("customer.update id=%s version=%s", stored.id, stored.version)

    async def remove(self, customer_id: int) -> None:
        stored = self.s.query(Customer).filter(Customer.id == customer_id).one_or_none()
        if stored is None:
            raise CustomerNotFoundError(customer_id)
        self.s.delete(stored)
        self._commit()
        logger.info("customer.delete id=%s", customer_id)

    def _commit(self) -> None:
        try:
            self.s.commit()
        except Exception:
            self.s.rollback()
            raise
