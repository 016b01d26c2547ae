"""
Schémas utilisateurs
"""
from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from eduverse.schemas.common import CamelModel

RoleName = Literal["admin", "formateur", "student"]


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    display_name: str = Field(min_length=1)
    role: RoleName = "student"
    course_ids: List[str] = Field(default_factory=list)


class UserUpdate(CamelModel):
    display_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[RoleName] = None


class StatusChange(CamelModel):
    reason: Optional[str] = None
