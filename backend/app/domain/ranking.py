"""
Applicant ordering for department rankings.

Higher GPA ranks first. Equal GPAs keep submission order (earlier first),
then application id so the order is total and reproducible. Applicants
without a GPA sink to the bottom.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from app.domain.models import RankingEntry


@dataclass(frozen=True)
class Applicant:
    application_id: UUID
    student_id: UUID
    gpa: Optional[float]
    submitted_at: datetime


def ranking_key(applicant: Applicant) -> Tuple[bool, float, datetime, str]:
    has_no_gpa = applicant.gpa is None
    return (
        has_no_gpa,
        0.0 if has_no_gpa else -applicant.gpa,
        applicant.submitted_at,
        str(applicant.application_id),
    )


def rank_applicants(
    applicants: Iterable[Applicant],
    requesting_student_id: Optional[UUID] = None,
) -> List[RankingEntry]:
    ordered = sorted(applicants, key=ranking_key)
    return [
        RankingEntry(
            rank=position,
            gpa=applicant.gpa,
            is_requesting_student=(
                requesting_student_id is not None
                and applicant.student_id == requesting_student_id
            ),
        )
        for position, applicant in enumerate(ordered, start=1)
    ]
