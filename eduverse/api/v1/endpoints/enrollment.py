"""
Routes d'inscription et de traitement des demandes
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from eduverse.core.firebase_connector import get_db
from eduverse.core.security import get_current_active_user
from eduverse.models.firestore_models import EnrollmentRequest
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.enrollment import EnrollmentCreate, EnrollmentRespond, EnrollmentResult
from eduverse.services import enrollment_requests as enrollment_service

router = APIRouter()


@router.post("/enrollment", response_model=EnrollmentResult, status_code=status.HTTP_201_CREATED)
def enroll(payload: EnrollmentCreate, current_user: CurrentUser = Depends(get_current_active_user),
           db=Depends(get_db)):
    """
    Enroll directly when the course does not require approval, otherwise
    create a pending enrollment request.
    """
    return enrollment_service.request_enrollment(db, current_user, payload.course_id, payload.message)


@router.get("/enrollment-requests", response_model=List[EnrollmentRequest])
def list_requests(
    status: Optional[Literal["pending", "approved", "denied"]] = Query(None),
    current_user: CurrentUser = Depends(get_current_active_user),
    db=Depends(get_db),
):
    return enrollment_service.list_enrollment_requests(db, current_user, status)


@router.post("/enrollment-requests/{request_id}/respond", response_model=EnrollmentRequest)
def respond(
    request_id: str,
    payload: EnrollmentRespond,
    current_user: CurrentUser = Depends(get_current_active_user),
    db=Depends(get_db),
):
    return enrollment_service.respond_to_enrollment_request(
        db, current_user, request_id, payload.status, payload.response_message
    )


@router.delete("/enrollment-requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel(request_id: str, current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    enrollment_service.cancel_enrollment_request(db, current_user, request_id)
