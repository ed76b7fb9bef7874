"""
Picture API — Persistence Repositories
========================================

What:  Thin repositories over an AsyncSession for Picture and Restaurant rows.
Why:   The picture service talks to an explicit interface (find_by_id,
       find_all, save, delete, commit) instead of issuing queries itself,
       so tests and alternative stores only need to honour that contract.
How:   Each repository wraps the request-scoped session handed out by
       get_db_session. Nothing is cached between calls.
"""

from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from picture_api.database import Base
from picture_api.models.picture import Picture
from picture_api.models.restaurant import Restaurant

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """
    Generic repository bound to one mapped class.

    Contract:
        find_by_id(id)  → instance or None
        find_all()      → every row, ordered by primary key
        save(obj)       → insert-or-update; flushes so generated ids are set
        delete(obj)     → marks the row for removal and flushes
        commit()        → makes pending changes durable; blocks until acknowledged
    """

    model: Type[ModelT]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, entity_id: int) -> Optional[ModelT]:
        return await self.session.get(self.model, entity_id)

    async def find_all(self) -> List[ModelT]:
        result = await self.session.execute(
            select(self.model).order_by(self.model.id)
        )
        return list(result.scalars().all())

    async def save(self, entity: ModelT) -> ModelT:
        # add() is a no-op for instances already in the session
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def delete(self, entity: ModelT) -> None:
        await self.session.delete(entity)
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()


class PictureRepository(Repository[Picture]):
    model = Picture


class RestaurantRepository(Repository[Restaurant]):
    """Read-only in practice: the service only calls find_by_id."""

    model = Restaurant

    async def exists(self, restaurant_id: int) -> bool:
        return await self.find_by_id(restaurant_id) is not None
