"""
Routes des cours : catalogue, édition formateur, soumission à validation
"""
from typing import List

from fastapi import APIRouter, Depends, status

from eduverse.core.exceptions import NotFoundError
from eduverse.core.firebase_connector import get_db
from eduverse.core.permissions import Roles
from eduverse.core.security import get_current_active_user, require_roles
from eduverse.models.firestore_models import Course
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.course import CourseCreate, CourseUpdate
from eduverse.services import courses as course_service

router = APIRouter()

authors = require_roles(Roles.ADMIN, Roles.FORMATEUR)


@router.get("", response_model=List[Course])
def read_catalog(current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    """Published courses."""
    return course_service.list_published_courses(db)


@router.get("/mine", response_model=List[Course])
def read_my_courses(current_user: CurrentUser = Depends(authors), db=Depends(get_db)):
    return course_service.list_courses_by_instructor(db, current_user.uid)


@router.get("/{course_id}", response_model=Course)
def read_course(course_id: str, current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    course = course_service.get_course(db, course_id)
    # unpublished courses are only visible to their author and admins
    if not course.is_published and not (current_user.is_admin or course.instructor_id == current_user.uid):
        raise NotFoundError("Course not found")
    return course


@router.post("", response_model=Course, status_code=status.HTTP_201_CREATED)
def create_course(payload: CourseCreate, current_user: CurrentUser = Depends(authors), db=Depends(get_db)):
    return course_service.create_course(db, current_user, payload)


@router.patch("/{course_id}", response_model=Course)
def update_course(
    course_id: str,
    changes: CourseUpdate,
    current_user: CurrentUser = Depends(authors),
    db=Depends(get_db),
):
    return course_service.update_course(db, current_user, course_id, changes)


@router.post("/{course_id}/submit", response_model=Course)
def submit_course(course_id: str, current_user: CurrentUser = Depends(authors), db=Depends(get_db)):
    """Send a draft or rejected course back to the admins for review."""
    return course_service.submit_course_for_review(db, current_user, course_id)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(course_id: str, current_user: CurrentUser = Depends(authors), db=Depends(get_db)):
    course_service.delete_course(db, current_user, course_id)
