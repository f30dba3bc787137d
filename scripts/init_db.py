"""
Local/dev database bootstrap.

Creates the tables straight from the ORM metadata (no Alembic) and, with
--seed, inserts a few demo customers. Seeding goes through the service layer,
so re-running it skips customers whose email already exists.

Usage:
  python scripts/init_db.py [--seed]
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.crm.errors import DuplicateEmailError
from app.crm.models import Base
from app.crm.modules.customers.repository import CustomerRepository
from app.crm.modules.customers.service import CustomerService
from app.crm.modules.customers.validation import validate_customer_payload
from scripts._db_utils import create_script_engine, script_session

DEMO_CUSTOMERS = [
    {
        "firstName": "John",
        "lastName": "Doe",
        "email": "john.doe@example.com",
        "phoneNumber": "+1234567890",
        "address": "123 Main St",
        "city": "New York",
        "state": "NY",
        "country": "USA",
    },
    {
        "firstName": "Jane",
        "lastName": "Smith",
        "email": "jane.smith@example.com",
        "phoneNumber": "+1987654321",
        "city": "Austin",
        "state": "TX",
        "country": "USA",
    },
]


def create_tables(*, database_url: str) -> None:
    engine = create_script_engine(database_url)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()


def seed_customers(*, database_url: str) -> int:
    """Insert DEMO_CUSTOMERS; returns how many were created."""
    created = 0
    with script_session(database_url) as s:
        service = CustomerService(CustomerRepository(s))
        for raw in DEMO_CUSTOMERS:
            try:
                service.create(validate_customer_payload(raw))
                created += 1
            except DuplicateEmailError:
                print(f"Skipping existing customer {raw['email']}", flush=True)
    return created


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create CRM tables (dev) and optionally seed demo customers.")
    parser.add_argument("--seed", action="store_true", help="insert demo customers")
    parser.add_argument("--database-url", default=None, help="defaults to $DATABASE_URL or sqlite:///crm.db")
    args = parser.parse_args(argv)

    db_url = (args.database_url or os.environ.get("DATABASE_URL") or "sqlite:///crm.db").strip()
    create_tables(database_url=db_url)
    print("Tables created.", flush=True)
    if args.seed:
        n = seed_customers(database_url=db_url)
        print(f"Seeded {n} customer(s).", flush=True)


if __name__ == "__main__":
    main()
