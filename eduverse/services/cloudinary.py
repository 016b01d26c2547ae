"""
Hébergement des images sur Cloudinary
"""
import logging
from typing import Any, Dict, Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from eduverse.core.config import settings
from eduverse.core.exceptions import ServiceUnavailableError, ValidationFailedError

logger = logging.getLogger(__name__)

UPLOAD_FOLDERS = ("course-images", "user-avatars", "formateur-avatars", "community-posts")

# Eager transformations applied per folder
TRANSFORMATIONS: Dict[str, Dict[str, Any]] = {
    "course-images": {"width": 800, "height": 600, "crop": "fill", "quality": "auto", "fetch_format": "auto"},
    "user-avatars": {"width": 200, "height": 200, "crop": "fill", "gravity": "face", "quality": "auto",
                     "fetch_format": "auto"},
    "formateur-avatars": {"width": 300, "height": 300, "crop": "fill", "gravity": "face", "quality": "auto",
                          "fetch_format": "auto"},
    "community-posts": {"quality": "auto", "fetch_format": "auto"},
}


def _configure() -> None:
    if not settings.cloudinary_configured:
        raise ServiceUnavailableError("Image uploads are not configured.")
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )


def validate_upload(content: bytes, content_type: Optional[str], folder: str) -> None:
    if folder not in UPLOAD_FOLDERS:
        raise ValidationFailedError(f"Unknown upload folder '{folder}'.")
    if not content:
        raise ValidationFailedError("No file provided.")
    if not content_type or not content_type.startswith("image/"):
        raise ValidationFailedError("Only image files can be uploaded.")
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationFailedError(
            f"File is too large (max {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB)."
        )


def upload_image(content: bytes, filename: str, content_type: Optional[str],
                 folder: str = "community-posts") -> Dict[str, Any]:
    validate_upload(content, content_type, folder)
    _configure()

    try:
        result = cloudinary.uploader.upload(
            content,
            folder=f"{settings.CLOUDINARY_ROOT_FOLDER}/{folder}",
            resource_type="image",
            use_filename=bool(filename),
            filename_override=filename or None,
            unique_filename=True,
            overwrite=False,
            transformation=[TRANSFORMATIONS[folder]],
        )
    except cloudinary.exceptions.Error as e:
        logger.error(f"Cloudinary upload failed for {filename}: {e}")
        raise ServiceUnavailableError("Image upload failed. Please try again.")

    logger.info(f"Image uploaded to Cloudinary: {result.get('public_id')}")
    return {
        "public_id": result.get("public_id"),
        "secure_url": result.get("secure_url"),
        "width": result.get("width"),
        "height": result.get("height"),
        "format": result.get("format"),
        "bytes": result.get("bytes"),
    }


def delete_image(public_id: str) -> bool:
    _configure()
    try:
        result = cloudinary.uploader.destroy(public_id, resource_type="image")
    except cloudinary.exceptions.Error as e:
        logger.error(f"Cloudinary delete failed for {public_id}: {e}")
        raise ServiceUnavailableError("Image deletion failed.")
    return result.get("result") == "ok"


def is_cloudinary_url(url: Optional[str]) -> bool:
    return bool(url) and "res.cloudinary.com" in url


def is_blob_url(url: Optional[str]) -> bool:
    """Object URLs created by the browser are only valid in the tab that made them."""
    return bool(url) and url.startswith("blob:")
