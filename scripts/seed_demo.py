# scripts/seed_demo.py
"""
Create the tables and load the demo schools.
Run from project root: python scripts/seed_demo.py

Prints a bearer token for every demo user so the API can be exercised
without an identity provider.
"""
from lesson_approval.core.db import create_tables, db_session
from lesson_approval.core.logging import configure_logging
from lesson_approval.core.security import create_token
from lesson_approval.services.helpers.seed_demo import seed_demo


def main():
    configure_logging()
    create_tables()
    with db_session() as db:
        data = seed_demo(db)
        for key, user in data.users.items():
            print(f"{key:8} {user.role.value:20} {user.email}")
            print(f"         {create_token(user.id, user.school_id)}")


if __name__ == "__main__":
    main()
