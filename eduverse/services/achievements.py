"""
Badges gagnés à partir des enregistrements de progression.
"""
from typing import Iterable, List

from eduverse.models.firestore_models import Progress
from eduverse.schemas.dashboard import Achievement

FIRST_COURSE_COMPLETED = Achievement(
    id="first-course-completed",
    name="First Course Completed",
    description="You completed your first course.",
    icon="star",
)

TOP_PERFORMER = Achievement(
    id="top-performer",
    name="Top Performer",
    description="You completed more than one course.",
    icon="award",
)

ALL_ACHIEVEMENTS = [FIRST_COURSE_COMPLETED, TOP_PERFORMER]


def get_earned_achievements(progress_records: Iterable[Progress]) -> List[Achievement]:
    records = list(progress_records)
    earned = []
    if any(p.completed and p.completed_at for p in records):
        earned.append(FIRST_COURSE_COMPLETED)
    if sum(1 for p in records if p.completed) > 1:
        earned.append(TOP_PERFORMER)
    return earned
