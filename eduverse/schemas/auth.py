"""
Schémas d'authentification
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


class Token(BaseModel):
    """Token d'accès"""
    access_token: str
    token_type: str = "bearer"


class FirebaseLoginRequest(BaseModel):
    id_token: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: str = "student"

    @field_validator("role")
    @classmethod
    def public_roles_only(cls, v: str) -> str:
        if v not in ("student", "formateur"):
            raise ValueError("role must be 'student' or 'formateur'")
        return v


class CurrentUser(BaseModel):
    """Lightweight view of the authenticated user, built from `users/{uid}`."""
    uid: str
    email: Optional[str] = None
    display_name: str = ""
    role: str = "student"
    status: str = "active"

    @property
    def is_active(self) -> bool:
        return self.status != "suspended"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_formateur(self) -> bool:
        return self.role == "formateur"

    @property
    def is_student(self) -> bool:
        return self.role == "student"

    @classmethod
    def from_profile(cls, uid: str, data: Dict[str, Any]) -> "CurrentUser":
        return cls(
            uid=uid,
            email=data.get("email"),
            display_name=data.get("displayName") or data.get("display_name") or "",
            role=data.get("role") or "student",
            status=data.get("status") or "active",
        )


class LoginResponse(Token):
    user: Dict[str, Any]
