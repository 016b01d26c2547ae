"""
Routes d'administration : validation des cours, maintenance, tableau de bord
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from eduverse.core.firebase_connector import get_db
from eduverse.core.permissions import Roles
from eduverse.core.security import require_roles
from eduverse.models.firestore_models import Course
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.course import CleanupResult, CourseReview, CourseReviewResult
from eduverse.schemas.dashboard import AdminDashboard
from eduverse.services import courses as course_service
from eduverse.services import dashboard as dashboard_service

router = APIRouter()

admin_only = require_roles(Roles.ADMIN)


@router.get("/courses", response_model=List[Course])
def list_all_courses(
    status: Optional[str] = Query(None, description="Draft, pending_approval, Published or rejected"),
    current_user: CurrentUser = Depends(admin_only),
    db=Depends(get_db),
):
    return course_service.list_courses(db, status)


@router.post("/courses/{course_id}/review", response_model=CourseReviewResult)
def review_course(
    course_id: str,
    review: CourseReview,
    current_user: CurrentUser = Depends(admin_only),
    db=Depends(get_db),
):
    course = course_service.review_course(db, current_user, course_id, review.action, review.reason)
    return CourseReviewResult(
        course_id=course_id,
        status=course.status,
        message=f"Course {'approved' if review.action == 'approve' else 'rejected'} successfully",
    )


@router.post("/maintenance/cleanup-blob-urls", response_model=CleanupResult)
def cleanup_blob_urls(current_user: CurrentUser = Depends(admin_only), db=Depends(get_db)):
    """Remplace les URLs `blob:` des images de cours par l'image par défaut."""
    fixed = course_service.cleanup_blob_image_urls(db)
    return CleanupResult(fixed=fixed, message=f"Fixed {fixed} course image(s)")


@router.get("/dashboard", response_model=AdminDashboard)
def read_admin_dashboard(current_user: CurrentUser = Depends(admin_only), db=Depends(get_db)):
    return dashboard_service.admin_dashboard(db)
