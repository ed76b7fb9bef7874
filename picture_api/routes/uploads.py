"""
Picture API — Uploaded File Route
===================================

What:  Serves stored uploads at /<upload_dir>/<filename> (default /uploads/...).
Why:   A picture's slug is the URL path of its file, so clients can fetch
       the image by prefixing the slug with "/".

Security:
    - Only files directly inside the upload directory are served
    - Paths resolving outside it are rejected with 400
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from picture_api.config import settings
from picture_api.exceptions import NotFoundError, ValidationError
from picture_api.services.file_service import file_service

router = APIRouter(tags=["Uploads"])


@router.get(
    f"/{settings.upload_dir}/{{filename:path}}",
    name="serve_upload",
    summary="Serve an uploaded picture file",
    responses={
        200: {"description": "Stored file"},
        400: {"description": "Invalid path"},
        404: {"description": "File not found (empty body)"},
    },
)
async def serve_upload(filename: str) -> FileResponse:
    path = file_service.resolve_slug(f"{file_service.upload_dir}/{filename}")
    if path is None:
        raise ValidationError(message="Chemin de fichier invalide", field="filename")

    if not path.is_file():
        raise NotFoundError(resource="file", resource_id=filename)

    # Media type is guessed from the filename; uploads never change once written
    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
