"""Create all tables. Run on app startup.

The first start creates an Admin account with a random password printed
once to the console. Change it after first login.
"""
import secrets

from medistock.db.base import Base
from medistock.db.session import engine, SessionLocal
from medistock import models  # noqa: F401 - register models
from medistock.models.user import Role, User
from medistock.core.security import get_password_hash

DEFAULT_ADMIN_EMAIL = "admin@pharmacy.com"


def init_db(bind=None, session_factory=None):
    Base.metadata.create_all(bind=bind or engine)

    db = (session_factory or SessionLocal)()
    try:
        if db.query(User).count() == 0:
            default_password = secrets.token_urlsafe(16)
            db.add(User(
                email=DEFAULT_ADMIN_EMAIL,
                name="Administrator",
                role=Role.ADMIN,
                hashed_password=get_password_hash(default_password),
            ))
            db.commit()

            print("\n" + "=" * 70)
            print("DEFAULT ADMIN USER CREATED")
            print("=" * 70)
            print(f"Email:    {DEFAULT_ADMIN_EMAIL}")
            print(f"Password: {default_password}")
            print("\nChange this password immediately after first login!")
            print("=" * 70 + "\n")
    finally:
        db.close()
