"""
Bootstrap the first admin account (auth identity + profile).

Usage:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... python scripts/create_admin.py
"""
import sys
import os
import logging
from sqlalchemy import func
from sqlalchemy.orm import Session

# Ensure we can import talentflow modules
sys.path.append(os.getcwd())

from talentflow.database import SessionLocal, init_db
from talentflow.models.user import AuthIdentity, UserProfile, UserRole
from talentflow.services.auth import get_password_hash

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_admin_user():
    email = os.getenv("ADMIN_EMAIL", "admin@example.com").lower()
    password = os.getenv("ADMIN_PASSWORD", "Admin123!")

    init_db()
    db: Session = SessionLocal()
    try:
        existing = db.query(AuthIdentity).filter(func.lower(AuthIdentity.email) == email).first()
        if existing:
            logger.warning(f"Admin user '{email}' already exists.")
            return

        identity = AuthIdentity(
            email=email,
            hashed_password=get_password_hash(password),
            email_confirmed=True,
            user_metadata={"created_by_admin": False, "bootstrap": True},
        )
        db.add(identity)
        db.flush()
        db.add(UserProfile(
            id=identity.id,
            email=email,
            full_name="System Administrator",
            role=UserRole.ADMIN,
            is_active=True,
        ))
        db.commit()

        logger.info("Admin user created successfully. You can now login.")
        logger.info(f"Email: {email}")

    except Exception as e:
        logger.error(f"Error creating admin user: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    create_admin_user()
