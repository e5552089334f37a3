#!/usr/bin/env python3
"""
Database management script for the GigWallet backend.
Handles table creation, seeding and ledger reconciliation.
"""

import sys
import json
import asyncio
import logging
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from app.infrastructure.db.database import Base, engine, SessionLocal
from app.infrastructure.db import models  # noqa: F401  registers the tables
from app.infrastructure.auth.password_hasher import BcryptPasswordHasher
from app.infrastructure.repositories.unit_of_work import SQLAlchemyUnitOfWork
from app.application.use_cases.wallet_use_cases import build_reconciliation_report
from app.domain.models.base import DomainException
from app.domain.models.user import User, UserRole
from app.domain.models.escrow import Contract
from app.domain.models.wallet import WalletTransaction, TransactionType

logger = logging.getLogger("manage_db")

SEED_PASSWORD = "password123"
SEED_CLIENT_FUNDS = 100_000

# username, role
SEED_ACCOUNTS = [
    ("client", UserRole.CLIENT),
    ("freelancer", UserRole.FREELANCER),
    ("admin", UserRole.ADMIN),
    ("support", UserRole.SUPPORT),
    ("qa", UserRole.QA),
    ("disputes", UserRole.DISPUTE_RESOLUTION),
    ("accounts", UserRole.ACCOUNTS),
]


def init_database():
    """Create all tables."""
    print("Creating tables...")
    Base.metadata.create_all(bind=engine)
    print("Done.")


def drop_database():
    """Drop all tables - WARNING: This will drop all data!"""
    response = input("This will drop ALL data. Type 'yes' to continue: ")
    if response.lower() == 'yes':
        print("Dropping tables...")
        Base.metadata.drop_all(bind=engine)
        print("Done.")
    else:
        print("Drop cancelled.")


async def seed_database():
    """Create one test account per role and a funded demo contract."""
    hasher = BcryptPasswordHasher()
    users = {}

    async with SQLAlchemyUnitOfWork(SessionLocal) as uow:
        for username, role in SEED_ACCOUNTS:
            email = f"{username}@example.com"
            user = await uow.users.find_by_email(email)
            if user is None:
                user = User(
                    email=email,
                    username=username,
                    password_hash=hasher.hash_password(SEED_PASSWORD),
                    full_name=f"Test {role.value.replace('_', ' ').title()}",
                    role=role
                )
                await uow.users.save(user)
                print(f"  created {role.value:<20} {email}")
            else:
                print(f"  exists  {role.value:<20} {email}")
            users[role] = user

        client = users[UserRole.CLIENT]
        freelancer = users[UserRole.FREELANCER]

        if client.wallet_balance == 0:
            client.credit(SEED_CLIENT_FUNDS)
            await uow.transactions.add(WalletTransaction.create(
                user_id=client.id,
                amount=SEED_CLIENT_FUNDS,
                type=TransactionType.DEPOSIT,
                description="Seed funds",
                reference=f"seed-deposit-{client.id}",
                completed=True
            ))
            await uow.users.save(client)
            print(f"  credited {SEED_CLIENT_FUNDS} to {client.username}")

        if not await uow.contracts.find_by_party(client.id):
            contract = await uow.contracts.save(Contract(
                client_id=client.id,
                freelancer_id=freelancer.id,
                terms="Demo contract",
                amount=50_000
            ))
            print(f"  created demo contract #{contract.id}")

        await uow.commit()

    print(f"Seed complete. Accounts use the password '{SEED_PASSWORD}'.")


async def reconcile_user(user_id: int) -> bool:
    """Print the ledger drift report of a user."""
    async with SQLAlchemyUnitOfWork(SessionLocal) as uow:
        report = await build_reconciliation_report(uow, user_id)
    print(json.dumps(report, indent=2, default=str))
    return report["consistent"]


def main():
    """Main CLI function."""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if len(sys.argv) < 2:
        print("Usage: python manage_db.py [command]")
        print("Commands:")
        print("  init                - Create all tables")
        print("  drop                - Drop all tables (WARNING: drops all data)")
        print("  seed                - Create test accounts and a demo contract")
        print("  reconcile <user_id> - Check a wallet and its escrows against the ledger")
        return

    command_name = sys.argv[1]

    if command_name == "init":
        init_database()
    elif command_name == "drop":
        drop_database()
    elif command_name == "seed":
        init_database()
        asyncio.run(seed_database())
    elif command_name == "reconcile":
        if len(sys.argv) < 3 or not sys.argv[2].isdigit():
            print("Usage: python manage_db.py reconcile <user_id>")
            sys.exit(2)
        try:
            consistent = asyncio.run(reconcile_user(int(sys.argv[2])))
        except DomainException as e:
            print(f"Error: {e.message}")
            sys.exit(2)
        sys.exit(0 if consistent else 1)
    else:
        print(f"Unknown command: {command_name}")
        sys.exit(2)


if __name__ == "__main__":
    main()
