from typing import Any

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from eduverse.core.security import get_current_active_user
from eduverse.schemas.auth import CurrentUser
from eduverse.services import cloudinary as cloudinary_service

router = APIRouter()


@router.post("/image")
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Form("community-posts"),
    current_user: CurrentUser = Depends(get_current_active_user),
) -> Any:
    """Upload an image to Cloudinary and return its hosted URL."""
    content = await file.read()
    return await run_in_threadpool(
        cloudinary_service.upload_image, content, file.filename or "", file.content_type, folder
    )
