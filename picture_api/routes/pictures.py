"""
Picture API — Picture Route Handlers
======================================

What:  CRUD endpoints under /api/picture.
Why:   HTTP entry point for the picture resource.
How:   Parses the request (JSON or multipart, chosen by Content-Type),
       delegates to PictureService, and sets status codes and headers.

Routes:
    POST   /api/picture        201 + body + Location   (JSON or multipart)
    GET    /api/picture        200 + array
    GET    /api/picture/{id}   200 + body | 404 empty
    PUT    /api/picture/{id}   204 | 404 empty          (JSON or multipart)
    DELETE /api/picture/{id}   204 | 404 empty

Both create variants share one path, as do both edit variants: a
multipart/form-data body means an upload, anything else is read as JSON.
"""

import logging
from typing import List, NamedTuple, Optional, Type, TypeVar

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from picture_api.database import get_db_session
from picture_api.exceptions import ValidationError
from picture_api.schemas.picture import (
    ErrorResponse,
    PictureCreate,
    PictureResponse,
    PictureUpdate,
)
from picture_api.services.picture_service import picture_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/picture", tags=["Pictures"])

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_MISSING_TYPES = {"missing", "string_too_short"}


class UploadForm(NamedTuple):
    """Fields of a multipart picture request; absent parts are None."""
    title: Optional[str]
    filename: Optional[str]
    content: Optional[bytes]
    content_length: Optional[int]
    restaurant_id: Optional[int]


# ══════════════════════════════════════════════════════════════════════════
# Request Parsing
# ══════════════════════════════════════════════════════════════════════════


def _is_multipart(request: Request) -> bool:
    return request.headers.get("content-type", "").lower().startswith("multipart/form-data")


def _field_name(error: dict) -> str:
    return ".".join(str(part) for part in error["loc"]) or "body"


def _parse_restaurant_id(value) -> Optional[int]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        restaurant_id = int(value)
    except ValueError:
        restaurant_id = 0
    if restaurant_id < 1:
        raise ValidationError(
            message="Identifiant de restaurant invalide",
            field="restaurant",
            context={"value": value},
        )
    return restaurant_id


async def _read_json(request: Request, schema: Type[SchemaT]) -> SchemaT:
    """
    Parse the request body into `schema`.

    An empty body counts as {}. Malformed JSON and schema failures become
    ValidationError (400) naming the offending fields.
    """
    body = await request.body()
    try:
        data = await request.json() if body.strip() else {}
    except ValueError:
        raise ValidationError(message="Corps JSON invalide", field="body")

    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors()
        # A blank title fails min_length; report it like an absent one
        missing = [_field_name(err) for err in errors if err["type"] in _MISSING_TYPES]
        if missing:
            raise ValidationError.missing_fields(missing)
        invalid = sorted({_field_name(err) for err in errors})
        raise ValidationError(
            message=f"Champs invalides : {', '.join(invalid)}",
            context={"invalid": invalid},
        )


async def _read_upload_form(request: Request) -> UploadForm:
    """Read title, file and restaurant from a multipart body."""
    form = await request.form()
    try:
        title = form.get("title")
        upload = form.get("file")
        restaurant_id = _parse_restaurant_id(form.get("restaurant"))

        if not isinstance(upload, UploadFile):
            return UploadForm(
                title=title if isinstance(title, str) else None,
                filename=None,
                content=None,
                content_length=None,
                restaurant_id=restaurant_id,
            )

        content = await upload.read()
        logger.info(
            "Received upload: filename=%s, size=%d bytes",
            upload.filename or "unknown",
            len(content),
        )
        return UploadForm(
            title=title if isinstance(title, str) else None,
            filename=upload.filename,
            content=content,
            content_length=upload.size,
            restaurant_id=restaurant_id,
        )
    finally:
        # Always close the spooled upload files
        await form.close()


# ══════════════════════════════════════════════════════════════════════════
# Routes
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "",
    status_code=201,
    response_model=PictureResponse,
    responses={
        201: {"description": "Picture created", "model": PictureResponse},
        400: {"description": "Missing fields or unknown restaurant", "model": ErrorResponse},
    },
    summary="Create a picture",
    description=(
        "JSON body {title, slug?, restaurant?} creates a metadata-only picture. "
        "A multipart body with `title` and `file` (and optional `restaurant`) "
        "stores the file under /uploads and uses its path as the slug."
    ),
)
async def create_picture(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> PictureResponse:
    if _is_multipart(request):
        form = await _read_upload_form(request)
        result = await picture_service.upload_picture(
            db=db,
            title=form.title,
            filename=form.filename,
            content=form.content,
            content_length=form.content_length,
            restaurant_id=form.restaurant_id,
        )
    else:
        payload = await _read_json(request, PictureCreate)
        result = await picture_service.create_picture(db=db, payload=payload)

    response.headers["Location"] = str(request.url_for("show_picture", picture_id=result.id))
    return result


@router.get(
    "",
    response_model=List[PictureResponse],
    summary="List all pictures",
)
async def list_pictures(
    db: AsyncSession = Depends(get_db_session),
) -> List[PictureResponse]:
    return await picture_service.list_pictures(db=db)


@router.get(
    "/{picture_id}",
    name="show_picture",
    response_model=PictureResponse,
    responses={404: {"description": "Picture not found (empty body)"}},
    summary="Get a picture by id",
)
async def show_picture(
    picture_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> PictureResponse:
    return await picture_service.get_picture(db=db, picture_id=picture_id)


@router.put(
    "/{picture_id}",
    status_code=204,
    response_class=Response,
    responses={
        400: {"description": "Invalid body or unknown restaurant", "model": ErrorResponse},
        404: {"description": "Picture not found (empty body)"},
    },
    summary="Partially update a picture",
    description=(
        "Fields present in the body overwrite the stored ones; absent fields are "
        "kept. A multipart `file` replaces the stored upload and the slug."
    ),
)
async def edit_picture(
    picture_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    # Unknown ids answer 404 whatever the body holds
    await picture_service.get_picture(db=db, picture_id=picture_id)

    if _is_multipart(request):
        form = await _read_upload_form(request)
        await picture_service.update_picture_upload(
            db=db,
            picture_id=picture_id,
            title=form.title,
            filename=form.filename,
            content=form.content,
            content_length=form.content_length,
            restaurant_id=form.restaurant_id,
        )
    else:
        payload = await _read_json(request, PictureUpdate)
        await picture_service.update_picture(db=db, picture_id=picture_id, payload=payload)

    return Response(status_code=204)


@router.delete(
    "/{picture_id}",
    status_code=204,
    response_class=Response,
    responses={404: {"description": "Picture not found (empty body)"}},
    summary="Delete a picture",
)
async def delete_picture(
    picture_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await picture_service.delete_picture(db=db, picture_id=picture_id)
    return Response(status_code=204)
