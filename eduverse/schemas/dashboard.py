"""
Schémas des tableaux de bord
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from eduverse.models.firestore_models import Course, EnrollmentRequest, Progress
from eduverse.schemas.common import CamelModel


class Achievement(CamelModel):
    id: str
    name: str
    description: str
    icon: str


class UserStats(CamelModel):
    total: int = 0
    active: int = 0
    suspended: int = 0
    new_this_month: int = 0
    by_role: Dict[str, int] = Field(default_factory=dict)


class CourseStats(CamelModel):
    total: int = 0
    published: int = 0
    pending_approval: int = 0
    draft: int = 0
    rejected: int = 0


class EnrollmentStats(CamelModel):
    total: int = 0
    completed: int = 0
    average_completion_rate: float = 0
    pending_requests: int = 0


class ActivityItem(CamelModel):
    type: str
    user: str
    action: str
    time: Optional[datetime] = None


class AdminDashboard(CamelModel):
    users: UserStats
    courses: CourseStats
    enrollments: EnrollmentStats
    recent_activity: List[ActivityItem] = Field(default_factory=list)


class InstructorCourseSummary(CamelModel):
    id: str
    title: str
    status: str
    student_count: int = 0
    lesson_count: int = 0


class FormateurDashboard(CamelModel):
    courses: List[InstructorCourseSummary] = Field(default_factory=list)
    total_courses: int = 0
    published_courses: int = 0
    total_students: int = 0
    quiz_count: int = 0
    pending_requests: List[EnrollmentRequest] = Field(default_factory=list)


class EnrolledCourse(CamelModel):
    course: Course
    progress: Progress


class StudentDashboard(CamelModel):
    enrolled_courses: List[EnrolledCourse] = Field(default_factory=list)
    completed_count: int = 0
    in_progress_count: int = 0
    average_progress: float = 0
    achievements: List[Achievement] = Field(default_factory=list)
    pending_requests: List[EnrollmentRequest] = Field(default_factory=list)
