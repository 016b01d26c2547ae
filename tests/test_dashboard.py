from datetime import timedelta

from eduverse.models.firestore_models import ENROLLMENT_REQUESTS, PROGRESS, Progress, QUIZZES, USERS, utcnow
from eduverse.services import dashboard as service
from eduverse.services.achievements import FIRST_COURSE_COMPLETED, TOP_PERFORMER, get_earned_achievements
from eduverse.services.enrollment_requests import request_enrollment
from eduverse.services.progress import complete_lesson, create_progress


def test_achievements():
    now = utcnow()
    done = Progress(user_id="s", course_id="a", completed=True, completed_at=now, progress=100)
    started = Progress(user_id="s", course_id="b", progress=40)

    assert get_earned_achievements([started]) == []
    assert get_earned_achievements([done, started]) == [FIRST_COURSE_COMPLETED]
    assert get_earned_achievements([done, done.model_copy(update={"course_id": "c"})]) == [
        FIRST_COURSE_COMPLETED, TOP_PERFORMER,
    ]


def test_admin_dashboard_counts(db, admin, formateur, student, make_user, make_course, course_id):
    make_user("student", uid="student-old")
    db.collection(USERS).document("student-old").update({"createdAt": utcnow() - timedelta(days=400),
                                                         "status": "suspended"})
    make_course(title="Draft", status="Draft")
    create_progress(db, student.uid, course_id)
    other = make_user("student", uid="student-2", display_name="Sara Benali")
    request_enrollment(db, other, course_id)

    dashboard = service.admin_dashboard(db)

    assert dashboard.users.total == 5
    assert dashboard.users.suspended == 1
    assert dashboard.users.new_this_month == 4
    assert dashboard.users.by_role == {"admin": 1, "formateur": 1, "student": 3}
    assert (dashboard.courses.total, dashboard.courses.published, dashboard.courses.draft) == (2, 1, 1)
    assert dashboard.enrollments.total == 1
    assert dashboard.enrollments.pending_requests == 1
    assert dashboard.recent_activity[0].user == "Sara Benali"


def test_formateur_dashboard(db, formateur, student, course_id, make_course):
    make_course(title="Someone else's", instructor_id="formateur-9")
    db.collection(QUIZZES).document("quiz-1").set({"title": "Q", "courseId": course_id, "questions": []})
    request_enrollment(db, student, course_id)

    dashboard = service.formateur_dashboard(db, formateur)

    assert dashboard.total_courses == 1
    assert dashboard.published_courses == 1
    assert dashboard.courses[0].lesson_count == 3
    assert dashboard.quiz_count == 1
    assert [r.student_id for r in dashboard.pending_requests] == [student.uid]


def test_student_dashboard(db, student, course_id, make_course):
    second = make_course(title="Second", lessons=("a",))
    create_progress(db, student.uid, course_id)
    create_progress(db, student.uid, second)
    complete_lesson(db, student, second, "a")
    complete_lesson(db, student, course_id, "l1")
    db.collection(PROGRESS).document("dangling").set({"userId": student.uid, "courseId": "gone"})

    dashboard = service.student_dashboard(db, student)

    assert len(dashboard.enrolled_courses) == 2
    assert dashboard.completed_count == 1
    assert dashboard.in_progress_count == 1
    assert dashboard.average_progress == 66.5
    assert dashboard.achievements == [FIRST_COURSE_COMPLETED]
    assert dashboard.pending_requests == []


def test_dashboard_endpoints(login, student, formateur, admin, db, course_id):
    request_enrollment(db, student, course_id)

    body = login(student).get("/api/v1/dashboard/student").json()
    assert body["enrolledCourses"] == []
    assert len(body["pendingRequests"]) == 1

    assert login(formateur).get("/api/v1/dashboard/formateur").json()["totalCourses"] == 1
    assert login(admin).get("/api/v1/admin/dashboard").json()["courses"]["published"] == 1
    assert db.docs(ENROLLMENT_REQUESTS)
