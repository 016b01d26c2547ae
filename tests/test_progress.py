import pytest

from eduverse.core.exceptions import NotFoundError, PermissionDeniedError
from eduverse.models.firestore_models import COURSES, NOTIFICATIONS, PROGRESS
from eduverse.schemas.course import CourseUpdate, LessonIn, ModuleIn
from eduverse.services import progress as service
from eduverse.services.courses import get_course, lesson_ids, update_course


@pytest.fixture
def enrolled(db, student, course_id):
    service.create_progress(db, student.uid, course_id)
    return course_id


@pytest.mark.parametrize("completed, total, expected", [
    (0, 3, 0),
    (1, 3, 33),
    (2, 3, 67),
    (3, 3, 100),
    (4, 3, 100),
    (1, 0, 0),
])
def test_compute_percentage(completed, total, expected):
    assert service.compute_percentage(completed, total) == expected


def test_create_progress_is_idempotent(db, student, course_id):
    first = service.create_progress(db, student.uid, course_id)
    second = service.create_progress(db, student.uid, course_id)
    assert first == second
    assert len(db.docs(PROGRESS)) == 1
    assert service.is_enrolled(db, student.uid, course_id)


def test_completing_lessons_updates_percentage(db, student, enrolled):
    record = service.complete_lesson(db, student, enrolled, "l1")
    assert record.completed_lessons == ["l1"]
    assert record.progress == 33
    assert record.completed is False

    again = service.complete_lesson(db, student, enrolled, "l1")
    assert again.completed_lessons == ["l1"]


def test_course_completion_sets_completed_at_once(db, admin, student, enrolled):
    for lesson in ("l1", "l2", "l3"):
        record = service.complete_lesson(db, student, enrolled, lesson)

    assert record.progress == 100
    assert record.completed is True
    completed_at = record.completed_at
    assert completed_at is not None

    assert service.complete_lesson(db, student, enrolled, "l3").completed_at == completed_at
    admin_notes = [n for n in db.docs(NOTIFICATIONS).values() if n["userId"] == admin.uid]
    assert [n["title"] for n in admin_notes] == ["Course Completion"]


def test_lessons_removed_by_an_edit_do_not_count(db, student, formateur, make_course):
    course_id = make_course(title="Short course", lessons=("a", "b"))
    service.create_progress(db, student.uid, course_id)
    service.complete_lesson(db, student, course_id, "a")

    # resent without ids, so both lessons get fresh ones
    update_course(db, formateur, course_id, CourseUpdate(modules=[
        ModuleIn(title="Basics", lessons=[LessonIn(title="Lesson a"), LessonIn(title="Lesson b")]),
    ]))
    new_ids = lesson_ids(get_course(db, course_id))
    assert "a" not in new_ids

    record = service.complete_lesson(db, student, course_id, new_ids[0])

    assert record.progress == 50
    assert record.completed is False
    assert record.completed_at is None


def test_unknown_lesson_is_not_found(db, student, enrolled):
    with pytest.raises(NotFoundError):
        service.complete_lesson(db, student, enrolled, "missing")


def test_lessons_require_enrollment(db, student, course_id):
    with pytest.raises(PermissionDeniedError):
        service.complete_lesson(db, student, course_id, "l1")


def test_unenroll_removes_record_and_decrements(db, student, enrolled):
    db.collection(COURSES).document(enrolled).update({"studentCount": 1})

    service.unenroll(db, student.uid, enrolled)

    assert db.docs(PROGRESS) == {}
    assert db.docs(COURSES)[enrolled]["studentCount"] == 0
    with pytest.raises(NotFoundError):
        service.unenroll(db, student.uid, enrolled)


def test_unenroll_never_goes_below_zero(db, student, enrolled):
    service.unenroll(db, student.uid, enrolled)
    assert db.docs(COURSES)[enrolled]["studentCount"] == 0


def test_progress_endpoints(login, student, enrolled):
    client = login(student)

    response = client.post(f"/api/v1/progress/{enrolled}/lessons/l2/complete")
    assert response.status_code == 200
    assert response.json()["completedLessons"] == ["l2"]

    assert client.get(f"/api/v1/progress/{enrolled}").json()["progress"] == 33
    assert len(client.get("/api/v1/progress").json()) == 1
    assert client.get("/api/v1/progress/unknown-course").status_code == 404
