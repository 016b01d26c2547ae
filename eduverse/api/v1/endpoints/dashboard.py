from typing import List

from fastapi import APIRouter, Depends

from eduverse.core.firebase_connector import get_db
from eduverse.core.permissions import Roles
from eduverse.core.security import get_current_active_user, require_roles
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.dashboard import Achievement, FormateurDashboard, StudentDashboard
from eduverse.services import dashboard as dashboard_service
from eduverse.services.achievements import get_earned_achievements
from eduverse.services.progress import get_progress_for_user

router = APIRouter()


@router.get("/student", response_model=StudentDashboard)
def read_student_dashboard(current_user: CurrentUser = Depends(require_roles(Roles.STUDENT)),
                           db=Depends(get_db)):
    return dashboard_service.student_dashboard(db, current_user)


@router.get("/formateur", response_model=FormateurDashboard)
def read_formateur_dashboard(current_user: CurrentUser = Depends(require_roles(Roles.FORMATEUR)),
                             db=Depends(get_db)):
    return dashboard_service.formateur_dashboard(db, current_user)


@router.get("/achievements", response_model=List[Achievement])
def read_achievements(current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    return get_earned_achievements(get_progress_for_user(db, current_user.uid))
