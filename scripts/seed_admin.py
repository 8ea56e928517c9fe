"""
Create the default Administrator account if it does not exist yet.

Usage:
    python scripts/seed_admin.py [--email EMAIL] [--password PASSWORD] [--name NAME]
"""
import sys
import os
import argparse

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Load environment variables first
try:
    from dotenv import load_dotenv
    load_dotenv()
except Exception as e:
    print(f"WARNING: Could not load .env file: {e}")

from assettag.config import settings
from assettag.db import SessionLocal, create_tables
from assettag.models.models import User
from assettag.auth.security import get_password_hash
from assettag.services.permissions import role_defaults


def seed_admin(email: str, password: str, name: str) -> User:
    if settings.database_url.startswith("sqlite:///./"):
        os.makedirs("var", exist_ok=True)
    create_tables()
    db = SessionLocal()
    try:
        email = email.strip().lower()
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"[SKIP] User already exists: {existing.name} ({existing.email}) - {existing.role}")
            return existing
        admin = User(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            role="Administrator",
            status="Active",
            department="Administration",
            permissions=role_defaults("Administrator"),
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        print(f"[OK] Administrator created: {admin.email}")
        return admin
    except Exception as e:
        db.rollback()
        print(f"Error seeding administrator: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the default administrator")
    parser.add_argument("--email", default=settings.admin_email)
    parser.add_argument("--password", default=settings.admin_password)
    parser.add_argument("--name", default=settings.admin_name)
    args = parser.parse_args()
    seed_admin(args.email, args.password, args.name)
