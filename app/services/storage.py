"""
Storage Service - S3-compatible object storage

Partner and brand logos, banner slides, gallery, product and blog images,
plus the downloadable font files sold with each product.
Works against AWS S3 or any S3-compatible endpoint (R2, MinIO).

Objects are stored under one folder per image kind; the folder name also
marks where the object key starts inside a public URL, which is how a
database row's image_url is turned back into a key for deletion.
"""
import logging
import os
import uuid
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.utils import slugify, utcnow

logger = logging.getLogger(__name__)

FOLDER_PARTNER_LOGOS = "partner_logos"
FOLDER_BRAND_LOGOS = "brand_logos"
FOLDER_BANNER_IMAGES = "banner_images"
FOLDER_GALLERY_IMAGES = "gallery_images"
FOLDER_PRODUCT_IMAGES = "product_images"
FOLDER_BLOG_IMAGES = "blog_images"
# Font files are uploaded by the packaging pipeline, we only delete them
FOLDER_FONT_FILES = "font_files"

IMAGE_FOLDERS = (
    FOLDER_PARTNER_LOGOS,
    FOLDER_BRAND_LOGOS,
    FOLDER_BANNER_IMAGES,
    FOLDER_GALLERY_IMAGES,
    FOLDER_PRODUCT_IMAGES,
    FOLDER_BLOG_IMAGES,
)
STORED_FOLDERS = IMAGE_FOLDERS + (FOLDER_FONT_FILES,)


@dataclass
class UploadResult:
    """Result of a file upload."""
    success: bool
    url: Optional[str] = None
    key: Optional[str] = None
    error: Optional[str] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None


def key_from_url(url: Optional[str]) -> Optional[str]:
    """
    Object key inside a public URL, found by its folder marker.

    https://cdn.example/stylish-type/brand_logos/x.png -> brand_logos/x.png
    """
    if not url:
        return None
    for folder in STORED_FOLDERS:
        marker = f"/{folder}/"
        index = url.find(marker)
        if index != -1:
            return url[index + 1:].split("?", 1)[0]
    return None


# Content type -> (extension, leading bytes); SVG and WebP have no fixed prefix we check
IMAGE_TYPES = {
    "image/png": (".png", b"\x89PNG"),
    "image/jpeg": (".jpg", b"\xff\xd8"),
    "image/gif": (".gif", b"GIF8"),
    "image/webp": (".webp", None),
    "image/svg+xml": (".svg", None),
}

MAX_IMAGE_BYTES = 5 * 1024 * 1024

# Stored images are immutable; a replacement gets a new key
IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"


def image_problem(content: bytes, content_type: str) -> Optional[str]:
    """Why this upload is not an acceptable image, or None."""
    if content_type not in IMAGE_TYPES:
        return f"Unsupported image type {content_type}; use PNG, JPEG, GIF, WebP or SVG"
    if not content:
        return "Empty file"
    if len(content) > MAX_IMAGE_BYTES:
        return f"Image is {len(content) / (1024 * 1024):.1f}MB; the limit is 5MB"
    signature = IMAGE_TYPES[content_type][1]
    if signature and not content.startswith(signature):
        return f"File content does not match {content_type}"
    return None

# Font files are stored by extension; browsers send inconsistent MIME types for them
FONT_TYPES = {
    ".otf": "font/otf",
    ".ttf": "font/ttf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}

MAX_FONT_BYTES = 20 * 1024 * 1024


def font_problem(content: bytes, filename: str) -> Optional[str]:
    """Why this upload is not an acceptable font file, or None."""
    ext = os.path.splitext(filename)[1].lower()
    if ext not in FONT_TYPES:
        return f"Unsupported font file {filename}; use OTF, TTF, WOFF or WOFF2"
    if not content:
        return "Empty file"
    if len(content) > MAX_FONT_BYTES:
        return f"Font file is {len(content) / (1024 * 1024):.1f}MB; the limit is 20MB"
    return None


def object_key(folder: str, filename: str) -> str:
    """folder/<yyyymm>/<random>-<slugified stem><ext>"""
    stem, _, ext = filename.rpartition(".")
    name = slugify(stem or ext) or "image"
    suffix = f".{ext.lower()}" if stem and ext else ""
    return f"{folder}/{utcnow():%Y%m}/{uuid.uuid4().hex[:10]}-{name}{suffix}"


class StorageService:
    """Uploads and deletes against one bucket of an S3-compatible store."""

    def __init__(self):
        self._client = None
        self._bucket = settings.S3_BUCKET

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=settings.S3_REGION,
                endpoint_url=settings.S3_ENDPOINT or None,
                aws_access_key_id=settings.S3_ACCESS_KEY or None,
                aws_secret_access_key=settings.S3_SECRET_KEY or None,
                config=Config(signature_version="s3v4", retries={"max_attempts": 3, "mode": "standard"}),
            )
        return self._client

    def public_url(self, key: str) -> str:
        if settings.S3_ENDPOINT:
            return f"{settings.S3_ENDPOINT.rstrip('/')}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{settings.S3_REGION}.amazonaws.com/{key}"

    async def upload_image(
        self,
        folder: str,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> UploadResult:
        """Validate and store an image under one of IMAGE_FOLDERS."""
        if folder not in IMAGE_FOLDERS:
            return UploadResult(success=False, error=f"Unknown image folder: {folder}")

        problem = image_problem(content, content_type)
        if problem:
            return UploadResult(success=False, error=problem)

        if not self.is_configured():
            return UploadResult(success=False, error="Storage is not configured")

        key = object_key(folder, filename)
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
                CacheControl=IMMUTABLE_CACHE_CONTROL,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Image upload to {key} failed: {e}")
            return UploadResult(success=False, error="Upload failed")

        url = self.public_url(key)
        logger.info(f"Stored {folder} image {key} ({len(content)} bytes)")
        return UploadResult(success=True, url=url, key=key, content_type=content_type, size_bytes=len(content))

    async def upload_font_file(self, content: bytes, filename: str) -> UploadResult:
        """Store a downloadable font file under FOLDER_FONT_FILES."""
        problem = font_problem(content, filename)
        if problem:
            return UploadResult(success=False, error=problem)

        if not self.is_configured():
            return UploadResult(success=False, error="Storage is not configured")

        content_type = FONT_TYPES[os.path.splitext(filename)[1].lower()]
        key = object_key(FOLDER_FONT_FILES, filename)
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
                CacheControl=IMMUTABLE_CACHE_CONTROL,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Font upload to {key} failed: {e}")
            return UploadResult(success=False, error="Upload failed")

        logger.info(f"Stored font file {key} ({len(content)} bytes)")
        return UploadResult(
            success=True, url=self.public_url(key), key=key, content_type=content_type, size_bytes=len(content)
        )

    async def delete_object(self, key: str) -> bool:
        """Delete an object from S3."""
        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self._bucket, Key=key)
            logger.info(f"Deleted object: {key}")
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Delete failed for {key}: {e}")
            return False

    async def delete_by_url(self, url: Optional[str]) -> bool:
        """Delete the object behind a stored public URL; URLs we don't own are left alone."""
        key = key_from_url(url)
        if not key:
            if url:
                logger.warning(f"No storage key found in {url}; skipping delete")
            return False
        return await self.delete_object(key)

    def is_configured(self) -> bool:
        """Missing keys are allowed; boto3 falls back to the default credential chain."""
        return bool(settings.S3_BUCKET)


_storage: Optional[StorageService] = None


def get_storage() -> StorageService:
    global _storage
    if _storage is None:
        _storage = StorageService()
    return _storage
