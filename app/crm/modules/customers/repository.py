from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.crm.errors import StorageError
from app.crm.modules.customers.models import Customer

# Columns a caller may set; id and created_at are owned by the store.
WRITABLE_COLUMNS = frozenset(
    {"first_name", "last_name", "email", "phone_number", "address", "city", "state", "country"}
)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_customer_id(customer_id: Any) -> uuid.UUID | None:
    """Coerce a path value to a UUID; anything unparseable cannot match a row."""
    if isinstance(customer_id, uuid.UUID):
        return customer_id
    try:
        return uuid.UUID(str(customer_id))
    except (TypeError, ValueError):
        return None


class CustomerRepository:
    """
    Data access for the `customers` table.

    Every method is a single statement, flushed immediately. Committing is the
    caller's job (request handler or session_scope).
    """

    def __init__(self, s: Session):
        self.s = s

    @contextmanager
    def _storage(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError:
            # Constraint violations are classified by the service.
            raise
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to {action}") from e

    def create_customer(self, fields: dict[str, Any]) -> Customer:
        customer = Customer(**{k: v for k, v in fields.items() if k in WRITABLE_COLUMNS})
        with self._storage("create customer"):
            self.s.add(customer)
            self.s.flush()
        return customer

    def get_all_customers(self) -> list[Customer]:
        with self._storage("fetch customers"):
            return self.s.query(Customer).order_by(Customer.created_at.asc()).all()

    def get_customer_by_id(self, customer_id: Any) -> Customer | None:
        cid = parse_customer_id(customer_id)
        if cid is None:
            return None
        with self._storage("fetch customer"):
            return self.s.query(Customer).filter(Customer.id == cid).one_or_none()

    def get_customer_by_email(self, email: str) -> Customer | None:
        with self._storage("fetch customer by email"):
            return self.s.query(Customer).filter(Customer.email == email).one_or_none()

    def search_customers(self, term: str | None) -> list[Customer]:
        term = (term or "").strip()
        if not term:
            return []
        like = f"%{_escape_like(term)}%"
        with self._storage("search customers"):
            return (
                self.s.query(Customer)
                .filter(
                    or_(
                        Customer.email.ilike(like, escape="\\"),
                        Customer.first_name.ilike(like, escape="\\"),
                        Customer.last_name.ilike(like, escape="\\"),
                    )
                )
                .order_by(Customer.created_at.asc())
                .all()
            )

    def update_customer(self, customer_id: Any, fields: dict[str, Any]) -> Customer | None:
        customer = self.get_customer_by_id(customer_id)
        if customer is None:
            return None
        for col, value in fields.items():
            if col in WRITABLE_COLUMNS:
                setattr(customer, col, value)
        with self._storage("update customer"):
            self.s.flush()
        return customer

    def delete_customer(self, customer_id: Any) -> Customer | None:
        customer = self.get_customer_by_id(customer_id)
        if customer is None:
            return None
        with self._storage("delete customer"):
            self.s.delete(customer)
            self.s.flush()
        return customer

    def rollback(self) -> None:
        self.s.rollback()
