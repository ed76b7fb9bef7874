"""
Picture API — Picture Service Tests
=====================================

What:  Tests for PictureService business logic.
How:   Runs against the per-test in-memory SQLite database and the temporary
       upload directory from conftest (no HTTP involved).

What we test:
    ✅ JSON create stamps createdAt and leaves updatedAt unset
    ✅ Upload create: required fields, restaurant check, file naming
    ✅ Rejected uploads write no file and no row
    ✅ Partial updates only touch present fields and always stamp updatedAt
    ✅ Replaced and deleted uploads are removed (unless disabled)
    ✅ Not-found ids raise NotFoundError
"""

import pytest
from unittest.mock import AsyncMock, patch

from picture_api.config import settings
from picture_api.exceptions import NotFoundError, ValidationError
from picture_api.schemas.picture import PictureCreate, PictureUpdate
from picture_api.services.picture_service import PictureService


@pytest.fixture
def service():
    return PictureService()


def _stored_files(upload_root):
    return sorted(p.name for p in upload_root.iterdir()) if upload_root.exists() else []


class TestCreate:
    """Tests for create_picture and upload_picture."""

    @pytest.mark.asyncio
    async def test_create_from_metadata(self, service, db_session):
        result = await service.create_picture(
            db_session, PictureCreate(title="Sunset", slug="uploads/sunset.png")
        )

        assert result.id == 1
        assert result.title == "Sunset"
        assert result.slug == "uploads/sunset.png"
        assert result.restaurant is None
        assert result.created_at is not None
        assert result.updated_at is None

    @pytest.mark.asyncio
    async def test_create_from_metadata_with_unknown_restaurant(self, service, db_session):
        with pytest.raises(ValidationError, match="Restaurant introuvable"):
            await service.create_picture(db_session, PictureCreate(title="Sunset", restaurant=7))

    @pytest.mark.asyncio
    async def test_upload_stores_file_and_record(
        self, service, db_session, restaurant, upload_root, sample_image_bytes
    ):
        result = await service.upload_picture(
            db_session,
            title="Plate",
            filename="dish.jpg",
            content=sample_image_bytes,
        )

        assert result.title == "Plate"
        assert result.restaurant == 1
        assert result.slug.startswith("uploads/")
        assert result.slug.endswith("-dish.jpg")
        assert (upload_root.parent / result.slug).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_upload_lists_every_missing_field(self, service, db_session, restaurant, upload_root):
        with pytest.raises(ValidationError) as exc_info:
            await service.upload_picture(db_session, title=None, filename=None, content=None)

        assert exc_info.value.message == "Champs requis manquants : title, file"
        assert exc_info.value.context["missing"] == ["title", "file"]

    @pytest.mark.asyncio
    async def test_upload_blank_title_counts_as_missing(
        self, service, db_session, restaurant, upload_root, sample_image_bytes
    ):
        with pytest.raises(ValidationError, match="title"):
            await service.upload_picture(
                db_session, title="   ", filename="dish.jpg", content=sample_image_bytes
            )
        assert _stored_files(upload_root) == []

    @pytest.mark.asyncio
    async def test_upload_without_restaurant_writes_nothing(
        self, service, db_session, upload_root, sample_image_bytes
    ):
        with pytest.raises(ValidationError, match="Restaurant introuvable"):
            await service.upload_picture(
                db_session, title="Plate", filename="dish.jpg", content=sample_image_bytes
            )

        assert _stored_files(upload_root) == []
        assert await service.list_pictures(db_session) == []

    @pytest.mark.asyncio
    async def test_upload_uses_explicit_restaurant(
        self, service, db_session, restaurant, upload_root, sample_image_bytes
    ):
        # Restaurant 2 does not exist even though the default one does
        with pytest.raises(ValidationError, match="Restaurant introuvable"):
            await service.upload_picture(
                db_session,
                title="Plate",
                filename="dish.jpg",
                content=sample_image_bytes,
                restaurant_id=2,
            )

    @pytest.mark.asyncio
    async def test_upload_same_filename_twice(
        self, service, db_session, restaurant, upload_root, sample_image_bytes
    ):
        first = await service.upload_picture(
            db_session, title="A", filename="dish.jpg", content=sample_image_bytes
        )
        second = await service.upload_picture(
            db_session, title="B", filename="dish.jpg", content=sample_image_bytes
        )

        assert first.id != second.id
        assert first.slug != second.slug
        assert len(_stored_files(upload_root)) == 2

    @pytest.mark.asyncio
    async def test_upload_with_accented_filename(
        self, service, db_session, restaurant, upload_root, sample_image_bytes
    ):
        result = await service.upload_picture(
            db_session, title="Plat", filename="plat_été.jpg", content=sample_image_bytes
        )

        assert result.slug.endswith("-plat_ete.jpg")

    @pytest.mark.asyncio
    async def test_upload_with_long_filename(
        self, service, db_session, restaurant, upload_root, sample_image_bytes
    ):
        result = await service.upload_picture(
            db_session, title="Plate", filename="a" * 240 + ".jpg", content=sample_image_bytes
        )

        assert result.slug.endswith(".jpg")
        assert (upload_root.parent / result.slug).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_upload_removes_file_when_commit_fails(
        self, service, db_session, restaurant, upload_root, sample_image_bytes
    ):
        with patch(
            "picture_api.services.picture_service.PictureRepository.commit",
            new=AsyncMock(side_effect=RuntimeError("database went away")),
        ):
            with pytest.raises(RuntimeError):
                await service.upload_picture(
                    db_session, title="Plate", filename="dish.jpg", content=sample_image_bytes
                )

        assert _stored_files(upload_root) == []


class TestRead:
    """Tests for get_picture and list_pictures."""

    @pytest.mark.asyncio
    async def test_get_unknown_picture(self, service, db_session):
        with pytest.raises(NotFoundError):
            await service.get_picture(db_session, 42)

    @pytest.mark.asyncio
    async def test_list_in_id_order(self, service, db_session):
        for title in ("one", "two", "three"):
            await service.create_picture(db_session, PictureCreate(title=title))

        result = await service.list_pictures(db_session)

        assert [p.title for p in result] == ["one", "two", "three"]
        assert [p.id for p in result] == [1, 2, 3]


class TestUpdate:
    """Tests for update_picture and update_picture_upload."""

    @pytest.mark.asyncio
    async def test_partial_update_keeps_absent_fields(self, service, db_session):
        created = await service.create_picture(
            db_session, PictureCreate(title="Sunset", slug="uploads/sunset.png")
        )

        await service.update_picture(db_session, created.id, PictureUpdate(title="Dawn"))
        updated = await service.get_picture(db_session, created.id)

        assert updated.title == "Dawn"
        assert updated.slug == "uploads/sunset.png"
        assert updated.updated_at is not None
        assert updated.updated_at >= updated.created_at

    @pytest.mark.asyncio
    async def test_empty_update_still_stamps_updated_at(self, service, db_session):
        created = await service.create_picture(db_session, PictureCreate(title="Sunset"))

        await service.update_picture(db_session, created.id, PictureUpdate())
        first = await service.get_picture(db_session, created.id)
        await service.update_picture(db_session, created.id, PictureUpdate())
        second = await service.get_picture(db_session, created.id)

        assert first.title == "Sunset"
        assert first.updated_at is not None
        assert second.updated_at >= first.updated_at

    @pytest.mark.asyncio
    async def test_explicit_null_slug_clears_it(self, service, db_session):
        created = await service.create_picture(
            db_session, PictureCreate(title="Sunset", slug="sunset")
        )

        await service.update_picture(
            db_session, created.id, PictureUpdate.model_validate({"slug": None})
        )
        updated = await service.get_picture(db_session, created.id)

        assert updated.slug is None
        assert updated.title == "Sunset"

    @pytest.mark.asyncio
    async def test_update_unknown_restaurant_rejected(self, service, db_session):
        created = await service.create_picture(db_session, PictureCreate(title="Sunset"))

        with pytest.raises(ValidationError, match="Restaurant introuvable"):
            await service.update_picture(db_session, created.id, PictureUpdate(restaurant=9))

    @pytest.mark.asyncio
    async def test_update_unknown_picture(self, service, db_session):
        with pytest.raises(NotFoundError):
            await service.update_picture(db_session, 99, PictureUpdate(title="x"))

    @pytest.mark.asyncio
    async def test_upload_update_replaces_file_and_keeps_title(
        self, service, db_session, restaurant, upload_root
    ):
        created = await service.upload_picture(
            db_session, title="Plate", filename="dish.jpg", content=b"old"
        )

        await service.update_picture_upload(
            db_session, created.id, filename="dish-v2.jpg", content=b"new"
        )
        updated = await service.get_picture(db_session, created.id)

        assert updated.title == "Plate"
        assert updated.slug != created.slug
        assert updated.slug.endswith("-dish-v2.jpg")
        assert (upload_root.parent / updated.slug).read_bytes() == b"new"
        assert not (upload_root.parent / created.slug).exists()

    @pytest.mark.asyncio
    async def test_upload_update_keeps_old_file_when_disabled(
        self, service, db_session, restaurant, upload_root, monkeypatch
    ):
        monkeypatch.setattr(settings, "remove_orphaned_uploads", False)
        created = await service.upload_picture(
            db_session, title="Plate", filename="dish.jpg", content=b"old"
        )

        await service.update_picture_upload(
            db_session, created.id, filename="dish.jpg", content=b"new"
        )

        assert (upload_root.parent / created.slug).read_bytes() == b"old"
        assert len(_stored_files(upload_root)) == 2

    @pytest.mark.asyncio
    async def test_upload_update_title_only_keeps_slug(
        self, service, db_session, restaurant, upload_root
    ):
        created = await service.upload_picture(
            db_session, title="Plate", filename="dish.jpg", content=b"old"
        )

        await service.update_picture_upload(db_session, created.id, title="Main course")
        updated = await service.get_picture(db_session, created.id)

        assert updated.title == "Main course"
        assert updated.slug == created.slug
        assert updated.updated_at is not None


class TestDelete:
    """Tests for delete_picture."""

    @pytest.mark.asyncio
    async def test_delete_then_get_is_not_found(self, service, db_session, restaurant, upload_root):
        created = await service.upload_picture(
            db_session, title="Plate", filename="dish.jpg", content=b"bytes"
        )

        await service.delete_picture(db_session, created.id)

        with pytest.raises(NotFoundError):
            await service.get_picture(db_session, created.id)
        assert _stored_files(upload_root) == []

    @pytest.mark.asyncio
    async def test_delete_unknown_picture(self, service, db_session):
        with pytest.raises(NotFoundError):
            await service.delete_picture(db_session, 5)

    @pytest.mark.asyncio
    async def test_ids_are_not_reused_after_delete(self, service, db_session):
        first = await service.create_picture(db_session, PictureCreate(title="first"))
        await service.delete_picture(db_session, first.id)

        second = await service.create_picture(db_session, PictureCreate(title="second"))

        assert second.id != first.id
