"""
Upload endpoint - photos for tickets and resolution proof.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from civicdesk.models.user import AuthenticatedUser
from civicdesk.routes.deps import get_current_user
from civicdesk.services.upload_service import UploadService, get_upload_service

router = APIRouter(prefix="/upload", tags=["Uploads"])


@router.post("")
def upload_file(
    file: UploadFile = File(...),
    user: AuthenticatedUser = Depends(get_current_user),
    uploads: UploadService = Depends(get_upload_service),
):
    """
    Store an image or video and return a signed URL to put on a ticket.
    """
    # Read at most one byte past the limit
    data = file.file.read(uploads.max_bytes + 1)
    result = uploads.upload(user.id, file.filename, file.content_type, data)
    return {**result, "message": "File uploaded successfully"}
