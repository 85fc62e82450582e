import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from storefront.services.storage_service import UploadError, get_storage, store_image
from storefront.core.errors import bad_request, server_error

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image",
    description="""
    Multipart upload of one image in the `file` field.

    - jpeg, png, webp or gif
    - 5MB at most
    - the returned url is what category, product and review records store
    """,
)
async def upload_image(file: Optional[UploadFile] = File(None), storage=Depends(get_storage)):
    try:
        data = await store_image(file, storage)
        return {"message": "Image uploaded successfully", "data": data}

    except UploadError as e:
        logger.warning(f"Rejected upload: {str(e)}")
        raise bad_request(str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error uploading image: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to upload image")
