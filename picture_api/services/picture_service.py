"""
Picture API — Picture Service (Business Logic)
================================================

What:  Owns the lifecycle of a Picture: create, show, edit, delete, list.
Why:   Keeps business rules (required fields, restaurant checks, partial
       updates, timestamps, upload naming) independent of HTTP concerns.
How:   Composes the repositories (persistence) and FileService (uploads).
Who:   Called by the /api/picture route handlers.

Create (upload) Flow:
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │  Form    │───▶│  Required    │───▶│  Store file  │───▶│  Save &  │
    │  (Route) │    │  fields +    │    │  (FileServ)  │    │  commit  │
    └──────────┘    │  restaurant  │    └──────────────┘    └──────────┘
                    └──────────────┘

    Validation runs before any byte is written, so a rejected request never
    leaves a file behind. If saving fails after the write, the new file is
    removed again and the error propagates.

Design Decision:
    PictureService is stateless: it receives the request-scoped session on
    each call and builds its repositories from it.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from picture_api.config import settings
from picture_api.exceptions import NotFoundError, ValidationError
from picture_api.models.picture import Picture
from picture_api.repository import PictureRepository, RestaurantRepository
from picture_api.schemas.picture import PictureCreate, PictureResponse, PictureUpdate
from picture_api.services.file_service import file_service

logger = logging.getLogger(__name__)

RESTAURANT_NOT_FOUND = "Restaurant introuvable"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _has_text(value: Optional[str]) -> bool:
    return bool(value and value.strip())


class PictureService:
    """
    Business logic layer for picture operations.

    Responsibilities:
        - create_picture():         JSON metadata create
        - upload_picture():         multipart create with file
        - get_picture():            single picture, NotFoundError if absent
        - update_picture():         JSON partial update
        - update_picture_upload():  multipart partial update
        - delete_picture():         removal
        - list_pictures():          every picture, by id

    Error Handling Strategy:
        Client mistakes raise ValidationError (400) and unknown ids raise
        NotFoundError (404). Database faults are not caught here.
    """

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def to_response(picture: Picture) -> PictureResponse:
        return PictureResponse(
            id=picture.id,
            title=picture.title,
            slug=picture.slug,
            restaurant=picture.restaurant_id,
            created_at=picture.created_at,
            updated_at=picture.updated_at,
        )

    async def _require_restaurant(self, db: AsyncSession, restaurant_id: int) -> None:
        if not await RestaurantRepository(db).exists(restaurant_id):
            raise ValidationError(
                message=RESTAURANT_NOT_FOUND,
                field="restaurant",
                context={"restaurant_id": restaurant_id},
            )

    async def _find_or_raise(self, pictures: PictureRepository, picture_id: int) -> Picture:
        picture = await pictures.find_by_id(picture_id)
        if picture is None:
            raise NotFoundError(resource="picture", resource_id=picture_id)
        return picture

    async def _discard_upload(self, slug: Optional[str]) -> None:
        if settings.remove_orphaned_uploads:
            await file_service.remove_upload(slug)

    # ── Create ────────────────────────────────────────────────────────────

    async def create_picture(self, db: AsyncSession, payload: PictureCreate) -> PictureResponse:
        """
        Create a picture from JSON metadata.

        The slug is taken as given. A restaurant id, when present, must
        reference an existing restaurant.
        """
        if payload.restaurant is not None:
            await self._require_restaurant(db, payload.restaurant)

        pictures = PictureRepository(db)
        picture = Picture(
            title=payload.title,
            slug=payload.slug,
            restaurant_id=payload.restaurant,
            created_at=_now(),
        )
        await pictures.save(picture)
        await pictures.commit()

        logger.info("Picture %s created (slug=%s)", picture.id, picture.slug)
        return self.to_response(picture)

    async def upload_picture(
        self,
        db: AsyncSession,
        title: Optional[str],
        filename: Optional[str],
        content: Optional[bytes],
        content_length: Optional[int] = None,
        restaurant_id: Optional[int] = None,
    ) -> PictureResponse:
        """
        Create a picture from a multipart upload.

        Args:
            db: Async database session (injected by FastAPI)
            title: Form field `title`; required and non-blank
            filename: Client filename of the `file` part
            content: Bytes of the `file` part; None when the part is absent
            content_length: Size announced by the client, if any
            restaurant_id: Owning restaurant; settings.default_restaurant_id when None

        Raises:
            ValidationError: missing fields, unknown restaurant, bad file size
            FileStorageError: the file could not be written
        """
        missing = []
        if not _has_text(title):
            missing.append("title")
        if content is None:
            missing.append("file")
        if missing:
            raise ValidationError.missing_fields(missing)

        if restaurant_id is None:
            restaurant_id = settings.default_restaurant_id
        await self._require_restaurant(db, restaurant_id)

        slug = await file_service.store_upload(filename, content, content_length)

        pictures = PictureRepository(db)
        try:
            picture = Picture(
                title=title.strip(),
                slug=slug,
                restaurant_id=restaurant_id,
                created_at=_now(),
            )
            await pictures.save(picture)
            await pictures.commit()
        except Exception:
            # Don't leave a file behind for a record that was never stored
            await file_service.remove_upload(slug)
            raise

        logger.info("Picture %s uploaded: %s", picture.id, slug)
        return self.to_response(picture)

    # ── Read ──────────────────────────────────────────────────────────────

    async def get_picture(self, db: AsyncSession, picture_id: int) -> PictureResponse:
        picture = await self._find_or_raise(PictureRepository(db), picture_id)
        return self.to_response(picture)

    async def list_pictures(self, db: AsyncSession) -> List[PictureResponse]:
        pictures = await PictureRepository(db).find_all()
        return [self.to_response(picture) for picture in pictures]

    # ── Update ────────────────────────────────────────────────────────────

    async def update_picture(
        self,
        db: AsyncSession,
        picture_id: int,
        payload: PictureUpdate,
    ) -> None:
        """
        Apply a JSON partial update.

        Each field is checked on its own: present keys overwrite, absent keys
        leave the stored value alone. `updated_at` is stamped even when the
        body changes nothing.
        """
        pictures = PictureRepository(db)
        picture = await self._find_or_raise(pictures, picture_id)
        present = payload.model_fields_set

        if "title" in present and payload.title is not None:
            picture.title = payload.title
        if "slug" in present:
            picture.slug = payload.slug
        if "restaurant" in present:
            if payload.restaurant is not None:
                await self._require_restaurant(db, payload.restaurant)
            picture.restaurant_id = payload.restaurant

        picture.updated_at = _now()
        await pictures.save(picture)
        await pictures.commit()

        logger.info("Picture %s updated (fields=%s)", picture_id, sorted(present))

    async def update_picture_upload(
        self,
        db: AsyncSession,
        picture_id: int,
        title: Optional[str] = None,
        filename: Optional[str] = None,
        content: Optional[bytes] = None,
        content_length: Optional[int] = None,
        restaurant_id: Optional[int] = None,
    ) -> None:
        """
        Apply a multipart partial update.

        A non-blank title overwrites the current one. A file is stored under
        a new unique name and becomes the slug; the superseded upload is
        removed after the commit when settings.remove_orphaned_uploads is on.
        """
        pictures = PictureRepository(db)
        picture = await self._find_or_raise(pictures, picture_id)

        if restaurant_id is not None:
            await self._require_restaurant(db, restaurant_id)
            picture.restaurant_id = restaurant_id
        if _has_text(title):
            picture.title = title.strip()

        previous_slug: Optional[str] = None
        new_slug: Optional[str] = None
        if content is not None:
            new_slug = await file_service.store_upload(filename, content, content_length)
            previous_slug, picture.slug = picture.slug, new_slug

        picture.updated_at = _now()
        try:
            await pictures.save(picture)
            await pictures.commit()
        except Exception:
            if new_slug:
                await file_service.remove_upload(new_slug)
            raise

        if previous_slug and previous_slug != new_slug:
            await self._discard_upload(previous_slug)

        logger.info("Picture %s updated (file=%s)", picture_id, new_slug or "unchanged")

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_picture(self, db: AsyncSession, picture_id: int) -> None:
        pictures = PictureRepository(db)
        picture = await self._find_or_raise(pictures, picture_id)
        slug = picture.slug

        await pictures.delete(picture)
        await pictures.commit()
        await self._discard_upload(slug)

        logger.info("Picture %s deleted", picture_id)


# ── Singleton Instance ────────────────────────────────────────────────────
picture_service = PictureService()
