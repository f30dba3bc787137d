"""
Customer business rules.

Two invariants are enforced here before the repository is asked to mutate:
- no two customers share an email
- update/delete only act on an existing customer

The email pre-check is advisory: it and the write are separate statements, so
two concurrent creates can both pass it. The unique constraint on
customers.email rejects the loser, and that IntegrityError is reported as the
same DuplicateEmailError.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from app.crm.errors import DuplicateEmailError, NotFoundError, StorageError
from app.crm.modules.customers.models import Customer
from app.crm.modules.customers.repository import CustomerRepository

logger = logging.getLogger(__name__)


def is_email_conflict(e: IntegrityError) -> bool:
    """True when the violated constraint is the unique index on email."""
    text = str(getattr(e, "orig", None) or e).lower()
    return "email" in text and ("unique" in text or "duplicate" in text)


class CustomerService:
    def __init__(self, repository: CustomerRepository):
        self.repository = repository

    def _classify(self, e: IntegrityError) -> Exception:
        self.repository.rollback()
        if is_email_conflict(e):
            return DuplicateEmailError()
        return StorageError("Constraint violation")

    def create(self, data: dict[str, Any]) -> Customer:
        if self.repository.get_customer_by_email(data["email"]) is not None:
            raise DuplicateEmailError()
        try:
            customer = self.repository.create_customer(data)
        except IntegrityError as e:
            raise self._classify(e) from e
        logger.info("Created customer %s", customer.id)
        return customer

    def find_all(self, search: str | None = None) -> list[Customer]:
        if search:
            return self.repository.search_customers(search)
        return self.repository.get_all_customers()

    def find_one(self, customer_id: Any) -> Customer:
        customer = self.repository.get_customer_by_id(customer_id)
        if customer is None:
            raise NotFoundError()
        return customer

    def update(self, customer_id: Any, data: dict[str, Any]) -> Customer:
        existing = self.repository.get_customer_by_id(customer_id)
        if existing is None:
            raise NotFoundError()
        email = data.get("email")
        if email is not None:
            owner = self.repository.get_customer_by_email(email)
            if owner is not None and owner.id != existing.id:
                raise DuplicateEmailError()
        try:
            customer = self.repository.update_customer(existing.id, data)
        except IntegrityError as e:
            raise self._classify(e) from e
        if customer is None:
            # Deleted between the existence check and the update.
            raise NotFoundError()
        logger.info("Updated customer %s (fields=%s)", customer.id, sorted(data))
        return customer

    def remove(self, customer_id: Any) -> Customer:
        deleted = self.repository.delete_customer(customer_id)
        if deleted is None:
            raise NotFoundError()
        logger.info("Deleted customer %s", deleted.id)
        return deleted
