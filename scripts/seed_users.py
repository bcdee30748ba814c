"""
Seed demo accounts and a couple of weekend shifts so the compensation
endpoints have something to show.

Usage: python scripts/seed_users.py
"""
import sys
import os
import logging
from datetime import date, datetime, timedelta
from typing import Optional

sys.path.append(os.getcwd())

from app.core.clock import today_local
from app.database import SessionLocal, init_db
from app.models.user import User, UserRole, ContractType
from app.models.time_entry import TimeEntry, WorkType, EntryStatus
from app.services.auth import get_password_hash

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("admin@jobflow.nl", "Admin123!", UserRole.ADMIN, "Anna Admin"),
    ("manager@jobflow.nl", "Manager123!", UserRole.MANAGER, "Mila Manager"),
    ("employee@jobflow.nl", "Employee123!", UserRole.EMPLOYEE, "Eva Employee"),
]


def create_user(db, email, password, role, full_name):
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        logger.warning(f"User {email} already exists. Skipping.")
        return existing_user

    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
        full_name=full_name,
        contract_type=ContractType.PERMANENT_FULL_TIME,
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created {role.value} -> {email}")
    return user


def last_saturday(today: date) -> date:
    """Most recent Saturday strictly before today."""
    return today - timedelta(days=(today.weekday() - 5) % 7 or 7)


def seed_weekend_shifts(db, user, weeks=2, today: Optional[date] = None):
    """Add Saturday 10:00-19:00 shifts for the last few weeks, in company-local time."""
    saturday = last_saturday(today or today_local())
    for week in range(weeks):
        start = datetime.combine(saturday - timedelta(weeks=week), datetime.min.time()) + timedelta(hours=10)
        db.add(TimeEntry(
            user_id=user.id,
            start_time=start,
            end_time=start + timedelta(hours=9),
            total_break_minutes=0,
            work_type=WorkType.REGULAR,
            approved=True,
            status=EntryStatus.APPROVED,
            description="Weekend shift",
        ))
    db.commit()
    logger.info(f"Seeded {weeks} weekend shifts for {user.email}")


def main():
    init_db()
    db = SessionLocal()
    try:
        users = [create_user(db, *spec) for spec in DEMO_USERS]
        employee = users[-1]
        if not db.query(TimeEntry).filter(TimeEntry.user_id == employee.id).first():
            seed_weekend_shifts(db, employee)
    finally:
        db.close()


if __name__ == "__main__":
    main()
