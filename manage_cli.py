#!/usr/bin/env python3
"""
Operator CLI for seeding the back office database
"""

import argparse
import sys

from dotenv import load_dotenv

load_dotenv()

from app.database import Base, SessionLocal, engine
from app.auth.utils import get_password_hash
from app.models import Admin, Lawyer
from app.services.taxonomy import seed_case_types


def create_admin(email: str, password: str) -> int:
    """Create an admin account, or reset the password of an existing one."""
    if len(password) < 6:
        print("❌ Password must be at least 6 characters")
        return 1

    db = SessionLocal()
    try:
        if db.query(Lawyer).filter(Lawyer.email == email).first():
            print(f"❌ {email} is already registered as an avocat")
            return 1

        admin = db.query(Admin).filter(Admin.email == email).first()
        if admin:
            admin.password_hash = get_password_hash(password)
            print(f"🔑 Password updated for admin {email}")
        else:
            db.add(Admin(email=email, password_hash=get_password_hash(password)))
            print(f"✅ Admin {email} created")
        db.commit()
        return 0
    finally:
        db.close()


def seed_types(force: bool = False) -> int:
    db = SessionLocal()
    try:
        inserted = seed_case_types(db, force=force)
        print(f"📚 Inserted {inserted} case types")
        return 0
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Law Firm Back Office CLI Tool")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    admin_parser = subparsers.add_parser("create-admin", help="Create or reset an admin account")
    admin_parser.add_argument("--email", required=True, help="Admin email")
    admin_parser.add_argument("--password", required=True, help="Admin password")

    types_parser = subparsers.add_parser("seed-types", help="Insert the default case types")
    types_parser.add_argument("--force", action="store_true", help="Add missing categories to a non-empty table")

    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)

    if args.command == "create-admin":
        return create_admin(args.email, args.password)
    elif args.command == "seed-types":
        return seed_types(force=args.force)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
