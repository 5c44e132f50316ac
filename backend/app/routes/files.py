"""
Flock Backend — Hosted Image Route
====================================

What:  GET /api/files/{path} serves images hosted by ImageService.
Who:   <img> tags for avatars, covers and post images.

No session is required to fetch an image.
"""

import mimetypes

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.exceptions import NotFoundError
from app.schemas.common import ErrorResponse
from app.services.image_service import image_service

router = APIRouter(prefix="/api", tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve a hosted image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Path escapes the storage root", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = image_service.resolve_path(file_path)

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    media_type, _ = mimetypes.guess_type(full_path.name)
    return FileResponse(
        path=str(full_path),
        media_type=media_type or "application/octet-stream",
        # Hosted images are never rewritten in place, only released
        headers={"Cache-Control": "public, max-age=86400"},
    )
