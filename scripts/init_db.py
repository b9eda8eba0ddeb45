"""
Create tables and seed demo customers (idempotent).

Usage:
  python scripts/init_db.py            # create tables only
  python scripts/init_db.py --seed     # also insert the demo customers
"""

from __future__ import annotations

import argparse
import os
import sys
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.shopping.models import Base, Customer  # noqa: E402

DEMO_CUSTOMERS = (
    ("Ramil", "Naum", "Los-Ang", "5"),
    ("Bob", "Dillan", "Berlin", "7"),
    ("Kile", "Rise", "London", "0"),
    ("John", "Konor", "Vashington", "3"),
)


@contextmanager
def _session_scope(database_url: str):
    engine = create_engine(database_url, future=True)
    Base.metadata.create_all(bind=engine)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def seed_customers(s: Session) -> int:
    added = 0
    for first_name, last_name, address, discount in DEMO_CUSTOMERS:
        exists = (
            s.query(Customer)
            .filter(Customer.first_name == first_name, Customer.last_name == last_name)
            .one_or_none()
        )
        if exists:
            continue
        s.add(Customer(first_name=first_name, last_name=last_name, address=address, discount=discount))
        added += 1
    return added


def init_db(*, database_url: str | None = None, seed: bool = False) -> None:
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///shopping.db").strip()
    with _session_scope(db_url) as s:
        added = seed_customers(s) if seed else 0
    print(f"Initialized database ({db_url.split('@')[-1]}); demo customers added: {added}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="insert demo customers")
    args = parser.parse_args()
    init_db(seed=args.seed)


if __name__ == "__main__":
    main()
