#!/usr/bin/env python3
"""Create the first admin account.

Accounts can only be created by an admin, so a fresh database needs one
seeded out of band.

Usage:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=SecurePass123 python scripts/bootstrap_admin.py
    python scripts/bootstrap_admin.py --email admin@example.com --password SecurePass123
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


async def bootstrap_admin(email: str, password: str) -> dict:
    from config import ApplicationConfig
    from authgate.adapter.services.password_hasher import BcryptPasswordHasher
    from authgate.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
    from authgate.depends import AsyncSessionLocal, init_db
    from authgate.domain.entities import Account, AccountRole, AccountStatus

    await init_db()
    hasher = BcryptPasswordHasher(rounds=int(ApplicationConfig.BCRYPT_ROUNDS))

    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUnitOfWork(session) as uow:
            existing = await uow.accounts.get_by_email(email)
            if existing is not None:
                return {"account_id": existing.id, "email": existing.email, "status": "exists"}

            account = await uow.accounts.create(
                Account(
                    email=email,
                    password_hash=hasher.hash(password),
                    role=AccountRole.admin,
                    status=AccountStatus.active,
                )
            )
            result = {"account_id": account.id, "email": account.email, "status": "created"}
            await uow.commit()
            return result


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the first admin account")
    parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD"))
    args = parser.parse_args()

    if not args.email or not args.password:
        parser.error("email and password are required (flags or ADMIN_EMAIL/ADMIN_PASSWORD)")
    if len(args.password) < 6:
        parser.error("password must be at least 6 characters")

    result = asyncio.run(bootstrap_admin(args.email, args.password))
    print(f"{result['status']}: {result['email']} (id: {result['account_id']})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
