from typing import List

from fastapi import APIRouter, Depends, status

from eduverse.core.exceptions import NotFoundError
from eduverse.core.firebase_connector import get_db
from eduverse.core.security import get_current_active_user
from eduverse.models.firestore_models import Progress
from eduverse.schemas.auth import CurrentUser
from eduverse.services import progress as progress_service

router = APIRouter()


@router.get("", response_model=List[Progress])
def read_my_progress(current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    return progress_service.get_progress_for_user(db, current_user.uid)


@router.get("/{course_id}", response_model=Progress)
def read_course_progress(course_id: str, current_user: CurrentUser = Depends(get_current_active_user),
                         db=Depends(get_db)):
    record = progress_service.get_progress(db, current_user.uid, course_id)
    if record is None:
        raise NotFoundError("Not enrolled in this course")
    return record


@router.post("/{course_id}/lessons/{lesson_id}/complete", response_model=Progress)
def complete_lesson(course_id: str, lesson_id: str,
                    current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    return progress_service.complete_lesson(db, current_user, course_id, lesson_id)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def unenroll(course_id: str, current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    progress_service.unenroll(db, current_user.uid, course_id)
