"""
Reset a user's password by email (defaults to the configured admin account).

Usage:
    python scripts/update_admin_password.py --password NEW_PASSWORD [--email EMAIL]
"""
import sys
import os
import argparse

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

try:
    from dotenv import load_dotenv
    load_dotenv()
except Exception as e:
    print(f"WARNING: Could not load .env file: {e}")

from assettag.config import settings
from assettag.db import SessionLocal
from assettag.models.models import User
from assettag.auth.security import get_password_hash, MIN_PASSWORD_LENGTH


def update_password(email: str, password: str) -> bool:
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"[ERROR] Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return False
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user:
            print(f"[ERROR] No user found with email: {email}")
            print("Available users:")
            for u in db.query(User).order_by(User.created_at.asc()).all():
                print(f"  - {u.name} ({u.email}) - {u.role}")
            return False
        user.password_hash = get_password_hash(password)
        user.reset_password_token = None
        user.reset_password_expire = None
        db.commit()
        print(f"[OK] Password updated for {user.name} ({user.email}) - {user.role}")
        return True
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reset a user's password")
    parser.add_argument("--email", default=settings.admin_email)
    parser.add_argument("--password", required=True)
    args = parser.parse_args()
    sys.exit(0 if update_password(args.email, args.password) else 1)
