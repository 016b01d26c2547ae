import pytest

from eduverse.core.config import settings
from eduverse.core.exceptions import ConflictError, PermissionDeniedError
from eduverse.models.firestore_models import COURSES, ENROLLMENT_REQUESTS, NOTIFICATIONS, PROGRESS
from eduverse.schemas.course import CourseCreate, CourseUpdate
from eduverse.services import courses as service
from eduverse.services.enrollment_requests import request_enrollment, respond_to_enrollment_request
from eduverse.services.progress import create_progress


def _payload(**overrides):
    data = {
        "title": "Data Analysis with pandas",
        "description": "Series, DataFrames and grouping",
        "modules": [{"title": "Basics", "lessons": [{"title": "Series"}, {"title": "DataFrames"}]}],
    }
    data.update(overrides)
    return CourseCreate(**data)


def test_formateur_course_goes_to_review(db, admin, formateur):
    course = service.create_course(db, formateur, _payload())

    assert course.status == "pending_approval"
    assert course.instructor_id == formateur.uid
    assert course.image_url == settings.DEFAULT_COURSE_IMAGE
    stored = db.docs(COURSES)[course.id]
    lessons = stored["modules"][0]["lessons"]
    assert stored["modules"][0]["id"]
    assert all(lesson["id"] for lesson in lessons)
    assert [n["userId"] for n in db.docs(NOTIFICATIONS).values()] == [admin.uid]


@pytest.mark.parametrize("overrides, expected", [
    ({"saveAsDraft": True}, "Draft"),
    ({"publish": True}, "pending_approval"),
])
def test_formateur_status_choices(db, formateur, overrides, expected):
    assert service.create_course(db, formateur, _payload(**overrides)).status == expected


def test_admin_can_publish_directly(db, admin):
    assert service.create_course(db, admin, _payload(publish=True)).status == "Published"


def test_student_cannot_create_course(db, student):
    with pytest.raises(PermissionDeniedError):
        service.create_course(db, student, _payload())


def test_titles_are_unique(db, formateur, course_id):
    with pytest.raises(ConflictError):
        service.create_course(db, formateur, _payload(title="Introduction to Python"))


def test_blob_image_is_replaced(db, formateur):
    course = service.create_course(db, formateur, _payload(imageUrl="blob:http://localhost/abc"))
    assert course.image_url == settings.DEFAULT_COURSE_IMAGE


def test_only_owner_updates(db, formateur, make_user, course_id):
    other = make_user("formateur", uid="formateur-2")
    with pytest.raises(PermissionDeniedError):
        service.update_course(db, other, course_id, CourseUpdate(description="hijacked"))

    updated = service.update_course(db, formateur, course_id, CourseUpdate(description="Now with exercises"))
    assert updated.description == "Now with exercises"
    assert updated.status == "Published"


def test_review_approves_pending_course(db, admin, formateur):
    course = service.create_course(db, formateur, _payload())

    reviewed = service.review_course(db, admin, course.id, "approve")

    assert reviewed.status == "Published"
    assert reviewed.approved_by == admin.uid
    instructor_notes = [n for n in db.docs(NOTIFICATIONS).values() if n["userId"] == formateur.uid]
    assert instructor_notes[0]["title"] == "Course Approved!"


def test_review_rejects_with_reason(db, admin, formateur):
    course = service.create_course(db, formateur, _payload())
    reviewed = service.review_course(db, admin, course.id, "reject", reason="Add more lessons")
    assert reviewed.status == "rejected"
    assert reviewed.approval_reason == "Add more lessons"

    resubmitted = service.submit_course_for_review(db, formateur, course.id)
    assert resubmitted.status == "pending_approval"


def test_review_requires_pending_course(db, admin, course_id):
    with pytest.raises(ConflictError, match="not pending approval"):
        service.review_course(db, admin, course_id, "approve")


def test_review_is_admin_only(db, formateur):
    course = service.create_course(db, formateur, _payload())
    with pytest.raises(PermissionDeniedError):
        service.review_course(db, formateur, course.id, "approve")


def test_delete_course_removes_progress(db, formateur, student, course_id):
    create_progress(db, student.uid, course_id)

    assert service.delete_course(db, formateur, course_id) == 1
    assert db.docs(COURSES) == {}
    assert db.docs(PROGRESS) == {}


def test_delete_course_drops_pending_requests(db, admin, formateur, student, make_user, course_id):
    answered = make_user("student", uid="student-2")
    answered_id = request_enrollment(db, answered, course_id).request_id
    respond_to_enrollment_request(db, admin, answered_id, "denied")
    pending_id = request_enrollment(db, student, course_id).request_id

    service.delete_course(db, formateur, course_id)

    requests = db.docs(ENROLLMENT_REQUESTS)
    assert pending_id not in requests
    assert requests[answered_id]["status"] == "denied"


def test_cleanup_blob_image_urls(db, make_course):
    blob = make_course(title="A", imageUrl="blob:http://localhost/1")
    empty = make_course(title="B", imageUrl="")
    kept = make_course(title="C", imageUrl="https://res.cloudinary.com/demo/image/upload/c.jpg")

    assert service.cleanup_blob_image_urls(db) == 2
    courses = db.docs(COURSES)
    assert courses[blob]["imageUrl"] == settings.DEFAULT_COURSE_IMAGE
    assert courses[empty]["imageUrl"] == settings.DEFAULT_COURSE_IMAGE
    assert courses[kept]["imageUrl"].startswith("https://res.cloudinary.com")


def test_catalog_and_draft_visibility(login, student, formateur, make_course):
    published = make_course(title="Published one")
    draft = make_course(title="Draft one", status="Draft")

    client = login(student)
    assert [c["id"] for c in client.get("/api/v1/courses").json()] == [published]
    assert client.get(f"/api/v1/courses/{draft}").status_code == 404

    client = login(formateur)
    assert client.get(f"/api/v1/courses/{draft}").json()["status"] == "Draft"
    assert len(client.get("/api/v1/courses/mine").json()) == 2


def test_admin_review_endpoint(login, admin, formateur, db):
    course = service.create_course(db, formateur, _payload())

    response = login(admin).post(f"/api/v1/admin/courses/{course.id}/review", json={"action": "approve"})
    assert response.status_code == 200
    assert response.json()["status"] == "Published"

    response = login(admin).post(f"/api/v1/admin/courses/{course.id}/review", json={"action": "approve"})
    assert response.status_code == 409
    assert response.json() == {"detail": "Course is not pending approval"}
