"""
Hierarchy Import Service

Merges an externally supplied university/college/department table into the
stored hierarchy. Matching is by natural key:
1. University by name
2. College by (university, name)
3. Department by (college, name)

Only missing entities are created. An existing department keeps its
capacity and its application counter, so re-importing the same sheet is
harmless. Bad rows are skipped; only a missing column aborts the batch.
"""

import logging
from typing import Mapping, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.csv_import import parse_csv, resolve_columns, to_hierarchy_row
from app.domain.models import MergeResult
from app.infrastructure.exceptions import (
    AdmissionsError,
    ConflictError,
    MalformedInputError,
    StoreFailureError,
)
from app.infrastructure.services.hierarchy_store import HierarchyStore

logger = logging.getLogger(__name__)


class HierarchyImportService:
    """Bulk hierarchy merge on top of the HierarchyStore."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._store = HierarchyStore(session)

    async def import_csv(self, text: str) -> MergeResult:
        """
        Parse CSV text and merge its rows.

        Rows with the wrong number of fields are counted as skipped.
        """
        parsed = parse_csv(text)
        resolve_columns(parsed.headers)
        if not parsed.rows:
            raise MalformedInputError("CSV input has no data rows")

        result = await self.merge(parsed.rows)
        if parsed.skipped:
            result.skipped += parsed.skipped
            result.message = _summary(result)
        return result

    async def merge(self, rows: Sequence[Mapping[str, Optional[str]]]) -> MergeResult:
        """
        Merge header-keyed rows into the hierarchy and commit once.

        Raises:
            MalformedInputError: no rows, or a required column is missing
            ConflictError: a concurrent writer created the same natural key
            StoreFailureError: the store rejected the batch
        """
        if not rows:
            raise MalformedInputError("Import has no data rows")
        columns = resolve_columns(rows[0].keys())

        try:
            result = await self._merge_rows(rows, columns)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.error(f"Import collided with a concurrent write: {e}")
            raise ConflictError(
                "The hierarchy changed during import, please retry",
                operation="import",
                resource="hierarchy",
                original_error=e,
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Import failed: {e}")
            raise StoreFailureError(
                "Could not save the imported hierarchy",
                operation="import",
                resource="hierarchy",
                original_error=e,
            ) from e
        except AdmissionsError:
            await self.session.rollback()
            raise

        logger.info(f"Import finished: {result.message}")
        return result

    async def _merge_rows(
        self,
        rows: Sequence[Mapping[str, Optional[str]]],
        columns: Mapping[str, str],
    ) -> MergeResult:
        # Load-once indexes; new entities are added as they are created
        universities = await self._store.university_index()
        colleges = await self._store.college_index()
        departments = await self._store.department_index()

        result = MergeResult()

        for row_number, raw in enumerate(rows, start=1):
            row = to_hierarchy_row(raw, columns)
            if row is None:
                logger.warning(f"Row {row_number}: missing field or invalid capacity, skipping")
                result.skipped += 1
                continue

            university_id = universities.get(row.university)
            if university_id is None:
                university = await self._store.create_university(row.university)
                university_id = university.id
                universities[row.university] = university_id
                result.new_universities += 1

            college_key = (university_id, row.college)
            college_id = colleges.get(college_key)
            if college_id is None:
                college = await self._store.create_college(university_id, row.college)
                college_id = college.id
                colleges[college_key] = college_id
                result.new_colleges += 1

            department_key = (college_id, row.department)
            if department_key not in departments:
                department = await self._store.create_department(
                    college_id, row.department, row.capacity
                )
                departments[department_key] = department.id
                result.new_departments += 1

        result.added = result.new_departments
        result.message = _summary(result)
        return result


def _summary(result: MergeResult) -> str:
    message = (
        f"Added {result.new_universities} universities, {result.new_colleges} colleges, "
        f"{result.new_departments} departments"
    )
    if result.skipped:
        message += f" ({result.skipped} rows skipped)"
    return message
