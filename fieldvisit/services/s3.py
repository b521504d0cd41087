import uuid
from functools import lru_cache

import boto3
from botocore.config import Config as BotoConfig

from fieldvisit.core.config import settings

ALLOWED_PHOTO_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
}


@lru_cache()
def _client():
    session = boto3.session.Session(
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        region_name=settings.AWS_REGION,
    )
    return session.client("s3", config=BotoConfig(signature_version="s3v4"))


def _sanitize_prefix(raw_prefix: str | None) -> str:
    """Keep lowercase letters, numbers, dashes and slashes; always end with a slash."""
    label = (raw_prefix or "").strip().lower().replace(" ", "-")
    safe = "".join(ch for ch in label if ("a" <= ch <= "z") or ("0" <= ch <= "9") or ch in "-/")
    safe = safe.strip("/")
    return f"{safe}/" if safe else ""


def make_key_for_photo(agent_id: str, filename: str, content_type: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
    if ext not in ("jpg", "jpeg", "png"):
        ext = ALLOWED_PHOTO_TYPES.get(content_type, "jpg")
    prefix = _sanitize_prefix(settings.S3_PREFIX)
    return f"{prefix}agent/{agent_id}/{uuid.uuid4()}.{ext}"


def public_url(key: str) -> str:
    if settings.CLOUDFRONT_URL:
        return f"{settings.CLOUDFRONT_URL.rstrip('/')}/{key}"
    return f"https://{settings.S3_BUCKET}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"


def presign_post(key: str, content_type: str) -> dict:
    """Generate a presigned POST so clients can upload with HTTP POST multipart/form-data.

    Returns a dict with 'url' and 'fields' suitable to send as form-data along with the file.
    """
    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    return _client().generate_presigned_post(
        Bucket=settings.S3_BUCKET,
        Key=key,
        Fields={
            "Content-Type": content_type,
        },
        Conditions=[
            {"Content-Type": content_type},
            ["content-length-range", 1, max_bytes],
        ],
        ExpiresIn=settings.PRESIGNED_TTL_SECONDS,
    )
