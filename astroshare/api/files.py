"""File upload endpoint."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile

from astroshare.api.dependencies import get_current_user_id, get_file_store
from astroshare.exceptions import InternalError, ValidationError
from astroshare.services.files import FileStoreError, LocalFileStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/file", tags=["files"])


@router.post("")
async def upload_file(
    current_user_id: Annotated[int, Depends(get_current_user_id)],
    files: Annotated[LocalFileStore, Depends(get_file_store)],
    file: Annotated[UploadFile | None, File()] = None,
):
    """Store an uploaded file and return its public URL."""
    if file is None:
        raise ValidationError("No file uploaded")
    data = await file.read()
    if not data:
        raise ValidationError("No file uploaded")
    try:
        url = await files.save(data, file.filename)
    except FileStoreError as e:
        logger.error(f"Upload by user {current_user_id} failed: {e}")
        raise InternalError("Failed to upload file") from None
    return {"url": url}
