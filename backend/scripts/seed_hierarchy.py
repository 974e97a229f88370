#!/usr/bin/env python3
"""
Seed Hierarchy Script

Merges a small sample of universities, colleges and departments into the
database. Existing entries are reused, so running it twice is harmless.

Usage:
    cd backend
    python -m scripts.seed_hierarchy
"""

import asyncio
import logging

# Add parent directory to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config.settings import settings
from app.infrastructure.db.database import DatabaseManager
from app.infrastructure.services.hierarchy_import_service import HierarchyImportService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


SEED_ROWS = [
    # (university, college, department, capacity)
    ("대곽대학교", "자연전공", "물리학과", 6),
    ("대곽대학교", "자연전공", "화학과", 8),
    ("대곽대학교", "자연전공", "생물학과", 10),
    ("대곽대학교", "공학전공", "정보학과", 4),
    ("대곽대학교", "인문전공", "지구과학과", 2),
    ("짭곽대학교", "자연과학대학", "물리학과", 5),
    ("짭곽대학교", "자연과학대학", "수학과", 7),
    ("짭곽대학교", "공과대학", "컴퓨터공학과", 6),
]


async def seed_database() -> None:
    db = DatabaseManager.from_settings(settings)
    if settings.database_create_tables:
        await db.create_tables()

    rows = [
        {
            "university": university,
            "college": college,
            "department": department,
            "capacity": str(capacity),
        }
        for university, college, department, capacity in SEED_ROWS
    ]

    try:
        async with db.session() as session:
            result = await HierarchyImportService(session).merge(rows)
        logger.info(f"Seeding complete: {result.message}")
    finally:
        await db.close()


async def main():
    print("\n=== Hierarchy Seed Script ===")
    print(f"Rows to merge: {len(SEED_ROWS)}\n")
    await seed_database()


if __name__ == "__main__":
    asyncio.run(main())
