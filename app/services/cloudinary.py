import logging
from typing import Optional

from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
import cloudinary
import cloudinary.uploader

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
)

COURSE_FOLDER = "courses"
LESSON_FOLDER = "lessons"

class CloudinaryService:

    def _upload(self, file, folder: str, resource_type: str) -> dict:
        try:
            result = cloudinary.uploader.upload(file, folder=folder, resource_type=resource_type)
        except Exception as e:
            logger.error(f"Cloudinary upload to {folder} failed: {e}")
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Media upload failed")
        return {"public_id": result["public_id"], "url": result["secure_url"]}

    async def upload_image(self, file, folder: str = COURSE_FOLDER) -> dict:
        return await run_in_threadpool(self._upload, file, folder, "image")

    async def upload_video(self, file, folder: str = LESSON_FOLDER) -> dict:
        return await run_in_threadpool(self._upload, file, folder, "video")

    async def destroy(self, public_id: Optional[str], resource_type: str = "image") -> None:
        if not public_id:
            return
        try:
            await run_in_threadpool(cloudinary.uploader.destroy, public_id, resource_type=resource_type)
        except Exception as e:
            logger.error(f"Cloudinary destroy of {public_id} failed: {e}")
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Media removal failed")

cloudinary_service = CloudinaryService()
