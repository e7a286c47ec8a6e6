#!/usr/bin/env python3
"""
Create all tables and optionally seed a demo catalog.
Run from the project root: python -m scripts.init_db [--seed]
or: PYTHONPATH=. python scripts/init_db.py --seed
"""
import argparse
import os
import sys

# project root on PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import app.models  # noqa: F401  registers every table on Base.metadata
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.chapter import ACCESS_TIER_FREE, ACCESS_TIER_PAID
from app.models.currency_transaction import TX_BONUS
from app.services.chapters.service import ChapterService
from app.services.currency.service import CurrencyService
from app.services.users.service import UserService


def seed(db) -> None:
    users = UserService(db)
    if users.get_by_username("demo") is not None:
        print("Demo data already present.")
        return
    user = users.create_user("demo", "demo@example.com", email_verified=True)
    CurrencyService(db).credit(user.id, 100, tx_type=TX_BONUS, description="Welcome bonus")

    chapters = ChapterService(db)
    series = chapters.create_series("Demo Series", "Seeded by scripts/init_db.py")
    chapters.create_chapter(series.id, 1, "Prologue", access_tier=ACCESS_TIER_FREE, publish=True)
    chapters.create_chapter(series.id, 2, "First Price", access_tier=ACCESS_TIER_PAID, unlock_cost=30, publish=True)
    chapters.create_chapter(series.id, 3, "Draft", access_tier=ACCESS_TIER_PAID, unlock_cost=50)
    db.commit()
    print(f"Seeded user demo ({user.id}) with 100 coins and series {series.slug} ({series.id}).")


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="insert a demo user and catalog")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    print("Tables created.")
    if not args.seed:
        return
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
