"""Provider image storage on Cloudflare R2 (S3 compatible)"""

import logging
import uuid

import boto3
from botocore.config import Config
from fastapi import HTTPException, UploadFile

from .config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_SECRET_ACCESS_KEY

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB

ALLOWED_IMAGE_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
    )


class ImageStore:
    """Uploads provider images and returns the object key stored on the provider"""

    def __init__(self, bucket: str = R2_BUCKET_NAME):
        self.bucket = bucket

    async def save_provider_image(self, file: UploadFile) -> str:
        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(
                status_code=400,
                detail="Invalid file type. Only PNG, JPEG, WebP and GIF images are allowed.",
            )

        contents = await file.read()
        if len(contents) > MAX_IMAGE_SIZE:
            raise HTTPException(
                status_code=400,
                detail=f"File size exceeds 5MB limit. Your file is {len(contents) / (1024 * 1024):.2f}MB.",
            )

        key = f"providers/{uuid.uuid4()}.{ALLOWED_IMAGE_TYPES[file.content_type]}"
        try:
            get_r2_client().put_object(
                Bucket=self.bucket,
                Key=key,
                Body=contents,
                ContentType=file.content_type,
            )
        except Exception as e:
            logger.error(f"❌ Failed to upload provider image: {e}")
            raise HTTPException(status_code=502, detail="Image upload failed") from e

        logger.info(f"✅ Provider image uploaded: {key}")
        return key


def get_image_store() -> ImageStore:
    """Dependency injection for the image store"""
    return ImageStore()
