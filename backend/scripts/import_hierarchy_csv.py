#!/usr/bin/env python3
"""
Import Hierarchy CSV Script

Merges a university/college/department/capacity CSV file into the
database, the same way the admin import endpoint does.

Usage:
    cd backend
    python -m scripts.import_hierarchy_csv path/to/departments.csv
"""

import argparse
import asyncio
import logging

# Add parent directory to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config.settings import settings
from app.infrastructure.db.database import DatabaseManager
from app.infrastructure.exceptions import AdmissionsError
from app.infrastructure.services.hierarchy_import_service import HierarchyImportService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def import_file(path: Path) -> int:
    text = path.read_text(encoding="utf-8-sig")
    db = DatabaseManager.from_settings(settings)
    try:
        async with db.session() as session:
            result = await HierarchyImportService(session).import_csv(text)
    except AdmissionsError as e:
        logger.error(f"Import failed ({e.code}): {e.message} {e.details}")
        return 1
    finally:
        await db.close()

    print(f"\n{result.message}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Merge a hierarchy CSV into the database")
    parser.add_argument("csv_path", type=Path, help="CSV file with a header row")
    args = parser.parse_args()

    if not args.csv_path.is_file():
        parser.error(f"{args.csv_path} is not a file")

    return asyncio.run(import_file(args.csv_path))


if __name__ == "__main__":
    sys.exit(main())
