"""
Schémas des cours
"""
from typing import List, Literal, Optional

from pydantic import Field

from eduverse.schemas.common import CamelModel


class LessonIn(CamelModel):
    id: Optional[str] = None
    title: str = Field(min_length=1)
    description: Optional[str] = None
    content_type: Literal["video", "document", "text"] = "text"
    video_source: Optional[Literal["youtube", "vimeo", "gdrive", "self-hosted"]] = None
    url: Optional[str] = None
    content: Optional[str] = None


class ModuleIn(CamelModel):
    id: Optional[str] = None
    title: str = Field(min_length=1)
    lessons: List[LessonIn] = Field(default_factory=list)


class CourseCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    modules: List[ModuleIn] = Field(default_factory=list)
    image_url: Optional[str] = None
    category: Optional[str] = None
    level: Optional[str] = None
    requires_approval: bool = True
    save_as_draft: bool = False
    # only honoured for admins
    publish: bool = False


class CourseUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    modules: Optional[List[ModuleIn]] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    level: Optional[str] = None
    requires_approval: Optional[bool] = None


class CourseReview(CamelModel):
    action: Literal["approve", "reject"]
    reason: Optional[str] = None


class CourseReviewResult(CamelModel):
    course_id: str
    status: str
    message: str


class CleanupResult(CamelModel):
    fixed: int
    message: str
