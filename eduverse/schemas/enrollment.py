"""
Schémas d'inscription
"""
from typing import Literal, Optional

from pydantic import Field

from eduverse.schemas.common import CamelModel


class EnrollmentCreate(CamelModel):
    course_id: str = Field(min_length=1)
    message: Optional[str] = Field(default=None, max_length=1000)


class EnrollmentRespond(CamelModel):
    status: Literal["approved", "denied"]
    response_message: Optional[str] = Field(default=None, max_length=1000)


class EnrollmentResult(CamelModel):
    requires_approval: bool
    enrolled: bool = False
    request_id: Optional[str] = None
    progress_id: Optional[str] = None
    message: str
