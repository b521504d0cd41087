import logging

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends

from fieldvisit.core.deps import require_field_agent
from fieldvisit.core.errors import ValidationError, DependencyError
from fieldvisit.models.profile import Profile
from fieldvisit.schemas.upload import PhotoPresignRequest, PhotoPresignResponse
from fieldvisit.services import s3 as s3_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/presign", response_model=PhotoPresignResponse)
def presign_photo_upload(
    payload: PhotoPresignRequest,
    current_user: Profile = Depends(require_field_agent),
):
    """
    Presigned S3 POST for one visit photo.
    Upload the file with the returned fields, then submit public_url in the visit.
    """
    if payload.content_type not in s3_service.ALLOWED_PHOTO_TYPES:
        raise ValidationError("Only JPEG and PNG images are allowed")

    key = s3_service.make_key_for_photo(current_user.id, payload.filename or "", payload.content_type)
    try:
        post = s3_service.presign_post(key, payload.content_type)
    except (BotoCoreError, ClientError):
        logger.exception("Presign failed for key %s", key)
        raise DependencyError("Failed to prepare photo upload")

    return PhotoPresignResponse(
        upload_url=post["url"],
        fields=post["fields"],
        key=key,
        public_url=s3_service.public_url(key),
    )
