"""
Agrégats pour les tableaux de bord admin, formateur et étudiant.
"""
import logging
from collections import Counter
from datetime import timezone

from eduverse.models.firestore_models import (
    COURSES,
    ENROLLMENT_REQUESTS,
    PROGRESS,
    QUIZZES,
    USERS,
    Course,
    EnrollmentRequest,
    Progress,
    UserProfile,
    list_models,
    newest_first,
    query,
    utcnow,
)
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.dashboard import (
    ActivityItem,
    AdminDashboard,
    CourseStats,
    EnrolledCourse,
    EnrollmentStats,
    FormateurDashboard,
    InstructorCourseSummary,
    StudentDashboard,
    UserStats,
)
from eduverse.services.achievements import get_earned_achievements
from eduverse.services.courses import count_lessons, list_courses_by_instructor
from eduverse.services.progress import get_progress_for_user

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10


def _average(values) -> float:
    values = list(values)
    return round(sum(values) / len(values), 2) if values else 0


def admin_dashboard(db) -> AdminDashboard:
    users = list_models(db, UserProfile, USERS)
    courses = list_models(db, Course, COURSES)
    progress = list_models(db, Progress, PROGRESS)
    requests = list_models(db, EnrollmentRequest, ENROLLMENT_REQUESTS)

    month_start = utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    def _is_new(user: UserProfile) -> bool:
        if user.created_at is None:
            return False
        created = user.created_at if user.created_at.tzinfo else user.created_at.replace(tzinfo=timezone.utc)
        return created >= month_start

    statuses = Counter(c.status for c in courses)
    recent = [
        ActivityItem(
            type="enrollment_request",
            user=r.student_name or "Unknown Student",
            action=f'requested enrollment in "{r.course_title or "Unknown Course"}"',
            time=r.created_at,
        )
        for r in newest_first(requests)[:RECENT_ACTIVITY_LIMIT]
    ]

    return AdminDashboard(
        users=UserStats(
            total=len(users),
            active=sum(1 for u in users if u.status == "active"),
            suspended=sum(1 for u in users if u.status == "suspended"),
            new_this_month=sum(1 for u in users if _is_new(u)),
            by_role=dict(Counter(u.role for u in users)),
        ),
        courses=CourseStats(
            total=len(courses),
            published=statuses.get("Published", 0),
            pending_approval=statuses.get("pending_approval", 0),
            draft=statuses.get("Draft", 0),
            rejected=statuses.get("rejected", 0),
        ),
        enrollments=EnrollmentStats(
            total=len(progress),
            completed=sum(1 for p in progress if p.completed),
            average_completion_rate=_average(p.progress for p in progress),
            pending_requests=sum(1 for r in requests if r.status == "pending"),
        ),
        recent_activity=recent,
    )


def formateur_dashboard(db, user: CurrentUser) -> FormateurDashboard:
    courses = list_courses_by_instructor(db, user.uid)
    course_ids = {c.id for c in courses}

    pending = list_models(db, EnrollmentRequest, ENROLLMENT_REQUESTS,
                          where=[("instructorId", "==", user.uid), ("status", "==", "pending")])
    quiz_count = sum(
        1 for doc in db.collection(QUIZZES).stream() if (doc.to_dict() or {}).get("courseId") in course_ids
    )

    return FormateurDashboard(
        courses=[
            InstructorCourseSummary(
                id=c.id,
                title=c.title,
                status=c.status,
                student_count=c.student_count,
                lesson_count=count_lessons(c),
            )
            for c in courses
        ],
        total_courses=len(courses),
        published_courses=sum(1 for c in courses if c.is_published),
        total_students=sum(c.student_count for c in courses),
        quiz_count=quiz_count,
        pending_requests=newest_first(pending),
    )


def student_dashboard(db, user: CurrentUser) -> StudentDashboard:
    records = get_progress_for_user(db, user.uid)

    enrolled = []
    for record in records:
        course = Course.from_doc(db.collection(COURSES).document(record.course_id).get())
        if course is None:
            logger.warning(f"Progress {record.id} points to missing course {record.course_id}")
            continue
        enrolled.append(EnrolledCourse(course=course, progress=record))

    pending = list(query(db, ENROLLMENT_REQUESTS,
                         where=[("studentId", "==", user.uid), ("status", "==", "pending")]).stream())

    return StudentDashboard(
        enrolled_courses=enrolled,
        completed_count=sum(1 for e in enrolled if e.progress.completed),
        in_progress_count=sum(1 for e in enrolled if not e.progress.completed),
        average_progress=_average(e.progress.progress for e in enrolled),
        achievements=get_earned_achievements(records),
        pending_requests=newest_first([EnrollmentRequest.from_doc(d) for d in pending]),
    )
