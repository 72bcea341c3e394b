# create_tables.py
import argparse
import os

from taskhub.config.settings import get_settings
from taskhub.database import Base, build_engine, build_session_factory, create_all
from taskhub.models.enums import UserRole
from taskhub.models.user import User
from taskhub.utils.security import hash_password


def create_tables(engine, drop: bool = False):
    """Create all tables, optionally dropping existing ones first"""
    if drop:
        Base.metadata.drop_all(bind=engine)
        print("Dropped existing tables")
    create_all(engine)
    print("All tables created successfully!")


def create_default_admin(session_factory, settings):
    """Create a default admin user if one doesn't exist yet"""
    email = os.getenv("ADMIN_EMAIL", "admin@example.com").lower()
    password = os.getenv("ADMIN_PASSWORD", "admin123")

    db = session_factory()
    try:
        # Check if admin user already exists
        if db.query(User).filter(User.email == email).first():
            print(f"Admin user {email} already exists")
            return

        db.add(
            User(
                name="Administrator",
                email=email,
                hashed_password=hash_password(password, settings.bcrypt_rounds),
                role=UserRole.ADMIN,
            )
        )
        db.commit()
        print(f"Default admin user created: {email}")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create TaskHub database tables")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    parser.add_argument("--no-admin", action="store_true", help="skip the default admin user")
    args = parser.parse_args()

    settings = get_settings()
    engine = build_engine(settings)
    create_tables(engine, drop=args.drop)
    if not args.no_admin:
        create_default_admin(build_session_factory(engine), settings)


if __name__ == "__main__":
    main()
