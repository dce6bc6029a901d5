"""
Image upload endpoint backed by the ImageKit CDN.
"""
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from byteinit.api.deps import get_current_user_context
from byteinit.db import schemas
from byteinit.services.upload_service import (
    MAX_IMAGE_BYTES,
    UploadError,
    UploadNotConfiguredError,
    get_upload_service,
)

router = APIRouter(tags=["uploads"])


@router.post("/upload", response_model=schemas.UploadResponse)
def upload_image(
    file: UploadFile = File(...),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only image uploads are allowed")

    # One byte past the limit is enough to reject
    content = file.file.read(MAX_IMAGE_BYTES + 1)
    if len(content) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image must be 5MB or smaller")
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    try:
        result = get_upload_service().upload_image(
            user_id=user.id,
            filename=file.filename or "image",
            content=content,
            content_type=file.content_type,
        )
    except UploadNotConfiguredError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Image uploads are not configured")
    except UploadError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to upload image")
    return schemas.UploadResponse(**result)
