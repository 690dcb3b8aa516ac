"""
Seed demo users and the default leave catalogue into the configured database.

    python scripts/seed_users.py
"""
from attendly.core.init_system import DEMO_USERS, seed_demo_users, seed_leave_types
from attendly.core.logging import setup_logging
from attendly.database import SessionLocal, init_db


def main():
    setup_logging()
    init_db()
    db = SessionLocal()
    try:
        seed_leave_types(db)
        for user in seed_demo_users(db):
            print(f"Created {user.role.value} -> {user.email}")
    finally:
        db.close()

    print("\nDemo logins:")
    for name, email, password, role, _, _ in DEMO_USERS:
        print(f"  {role.value:<8} {email} / {password}")


if __name__ == "__main__":
    main()
