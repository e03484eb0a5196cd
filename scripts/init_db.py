#!/usr/bin/env python3
"""Create all database tables, optionally with demo data."""
import argparse
import datetime
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from taskboard.auth import hash_password
from taskboard.config import BCRYPT_ROUNDS
from taskboard.db import engine, SessionLocal, init_db
from taskboard.models import Task, User, utcnow

DEMO_EMAIL = "john@example.com"
DEMO_PASSWORD = "password123"

# (title, description, status, priority, due offset in days)
DEMO_TASKS = [
    ("Complete project proposal", "Finish the detailed project proposal for the client meeting",
     "in-progress", "high", 1),
    ("Weekly team meeting", "Prepare agenda for the weekly team sync-up", "todo", "medium", 2),
    ("Research new technologies", "Look into new frameworks for the upcoming project", "todo", "low", 3),
    ("Code review session", "Review pull requests from the development team", "completed", "medium", -1),
    ("Project deadline", "Final submission for the client project", "pending", "high", -2),
]


def seed(db) -> bool:
    if db.query(User).filter(User.email == DEMO_EMAIL).first():
        return False
    now = utcnow()
    user = User(
        name="John Doe",
        email=DEMO_EMAIL,
        password_hash=hash_password(DEMO_PASSWORD, BCRYPT_ROUNDS),
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.flush()
    for title, description, status, priority, days in DEMO_TASKS:
        db.add(Task(
            title=title,
            description=description,
            status=status,
            priority=priority,
            due_date=now + datetime.timedelta(days=days),
            assigned_by=user.id,
            created_at=now,
            updated_at=now,
        ))
    db.commit()
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="insert the demo user and tasks")
    args = parser.parse_args()

    init_db(engine)
    print(f"Database created at {engine.url}")
    if args.seed:
        db = SessionLocal()
        try:
            if seed(db):
                print(f"Seeded demo user {DEMO_EMAIL} / {DEMO_PASSWORD}")
            else:
                print("Demo user already present, nothing to seed")
        finally:
            db.close()
