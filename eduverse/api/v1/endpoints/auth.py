import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from firebase_admin import auth as firebase_auth

from eduverse.core.config import settings
from eduverse.core.firebase_connector import get_db
from eduverse.core.security import create_access_token, get_current_active_user
from eduverse.models.firestore_models import USERS, UserProfile, utcnow
from eduverse.schemas.auth import CurrentUser, FirebaseLoginRequest, LoginResponse, SignupRequest
from eduverse.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/login", response_model=LoginResponse)
def login_with_firebase(request: FirebaseLoginRequest, response: Response, db=Depends(get_db)):
    """
    Authenticates with a Firebase ID token, creates a Firestore profile on first login,
    and returns a local API access token (also set as the auth cookie).
    """
    try:
        decoded_token = firebase_auth.verify_id_token(request.id_token)
    except firebase_auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Your session has expired. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (firebase_auth.InvalidIdTokenError, firebase_auth.RevokedIdTokenError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Firebase ID token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    uid = decoded_token["uid"]
    email = decoded_token.get("email")
    users_ref = db.collection(USERS).document(uid)
    profile = UserProfile.from_doc(users_ref.get())

    if profile is None:
        # Create the profile on first login (accounts made outside the API)
        profile = UserProfile(
            id=uid,
            email=email,
            display_name=decoded_token.get("name") or (email.split("@")[0] if email else uid),
            role=decoded_token.get("role") or "student",
            status="active",
            created_at=utcnow(),
        )
        users_ref.set(profile.to_dict())
        logger.info(f"Created Firestore profile for uid={uid} on first login")

    if profile.status == "suspended":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account suspended")

    access_token = create_access_token(data={"sub": uid, "role": profile.role})
    _set_auth_cookie(response, access_token)

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        user={
            "uid": uid,
            "email": profile.email,
            "displayName": profile.display_name,
            "role": profile.role,
        },
    )


@router.post("/logout")
def logout(response: Response) -> Any:
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"success": True}


@router.post("/signup", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, db=Depends(get_db)):
    """Public registration (student or formateur)."""
    return user_service.signup(db, payload)


@router.get("/me", response_model=UserProfile)
def read_users_me(current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    """
    Get current user.
    """
    return user_service.get_user(db, current_user.uid)
