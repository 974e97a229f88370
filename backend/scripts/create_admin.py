#!/usr/bin/env python3
"""
Create Admin Script

Marks a student as administrator. The student row is created when the
identity provider's user has never saved a profile.

Usage:
    cd backend
    python -m scripts.create_admin --student-id <uuid> [--email admin@example.com]
"""

import argparse
import asyncio
import logging
from uuid import UUID

# Add parent directory to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config.settings import settings
from app.infrastructure.db.database import DatabaseManager
from app.infrastructure.db.repositories.student_repository import StudentRepository

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def create_admin(student_id: UUID, email: str | None, revoke: bool) -> None:
    db = DatabaseManager.from_settings(settings)
    try:
        async with db.session() as session:
            student = await StudentRepository(session).set_admin(
                student_id, email=email, is_admin=not revoke
            )
        state = "revoked" if revoke else "granted"
        logger.info(f"Admin {state} for {student.id} ({student.email or 'no email'})")
    finally:
        await db.close()


def main():
    parser = argparse.ArgumentParser(description="Grant or revoke administrator access")
    parser.add_argument("--student-id", type=UUID, required=True)
    parser.add_argument("--email", default=None)
    parser.add_argument("--revoke", action="store_true", help="Remove admin access instead")
    args = parser.parse_args()

    asyncio.run(create_admin(args.student_id, args.email, args.revoke))


if __name__ == "__main__":
    main()
