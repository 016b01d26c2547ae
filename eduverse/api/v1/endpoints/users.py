"""
Routes pour la gestion des utilisateurs
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from eduverse.core.firebase_connector import get_db
from eduverse.core.exceptions import PermissionDeniedError
from eduverse.core.permissions import Roles, can_manage_role
from eduverse.core.security import require_roles
from eduverse.models.firestore_models import UserProfile
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.user import StatusChange, UserCreate, UserUpdate
from eduverse.services import users as user_service

router = APIRouter()

managers = require_roles(Roles.ADMIN, Roles.FORMATEUR)


@router.get("", response_model=List[UserProfile])
def list_users(
    role: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(managers),
    db=Depends(get_db),
):
    """Admins see everyone, formateurs their students."""
    return user_service.list_users(db, current_user, role)


@router.post("", response_model=UserProfile, status_code=status.HTTP_201_CREATED, summary="Create a new user")
def create_user(user_in: UserCreate, current_user: CurrentUser = Depends(managers), db=Depends(get_db)):
    """
    Créer un utilisateur dans Firebase Auth et son profil Firestore.
    Les formateurs ne peuvent créer que des étudiants.
    """
    return user_service.create_user(db, current_user, user_in)


@router.get("/{uid}", response_model=UserProfile)
def read_user(uid: str, current_user: CurrentUser = Depends(managers), db=Depends(get_db)):
    target = user_service.get_user(db, uid)
    if uid != current_user.uid and not can_manage_role(current_user.role, target.role):
        raise PermissionDeniedError("You cannot view this user.")
    return target


@router.patch("/{uid}", response_model=UserProfile)
def update_user(uid: str, changes: UserUpdate, current_user: CurrentUser = Depends(managers), db=Depends(get_db)):
    return user_service.update_user(db, current_user, uid, changes)


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(uid: str, current_user: CurrentUser = Depends(require_roles(Roles.ADMIN)), db=Depends(get_db)):
    user_service.delete_user(db, current_user, uid)


@router.post("/{uid}/suspend", response_model=UserProfile)
def suspend_user(
    uid: str,
    body: Optional[StatusChange] = Body(None),
    current_user: CurrentUser = Depends(managers),
    db=Depends(get_db),
):
    return user_service.set_user_status(db, current_user, uid, "suspended", body.reason if body else None)


@router.post("/{uid}/activate", response_model=UserProfile)
def activate_user(uid: str, current_user: CurrentUser = Depends(managers), db=Depends(get_db)):
    return user_service.set_user_status(db, current_user, uid, "active")
