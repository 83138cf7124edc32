# app/services/user_service.py

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models, schemas
from ..core.exceptions import NotFoundError, ValidationFailed
from ..crud import crud_user
from ..validation import reject_nulls

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: int) -> models.User:
        db_user = await crud_user.user.get(self.db, user_id)
        if db_user is None:
            raise NotFoundError(f"User with id {user_id} not found")
        return db_user

    async def list_users(
        self, *, page: int, limit: int, sort_by: str | None = None, sort_order: str = "desc"
    ) -> schemas.Page[schemas.User]:
        users, total = await crud_user.user.paginate(
            self.db, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
        )
        return schemas.Page[schemas.User](
            data=[schemas.User.model_validate(u) for u in users],
            meta=schemas.PageMeta.build(page=page, limit=limit, total=total),
        )

    async def update_user(self, user_id: int, user_in: schemas.UserUpdate) -> models.User:
        db_user = await self.get_user(user_id)
        update_data = user_in.model_dump(exclude_unset=True)
        errors = reject_nulls(update_data, ("first_name", "last_name", "role", "is_active"))
        if errors:
            raise ValidationFailed(errors)

        db_user = await crud_user.user.update(self.db, db_obj=db_user, obj_in=update_data)
        await self.db.commit()
        logger.info("Updated user %s: %s", user_id, ", ".join(sorted(update_data)))
        return db_user

    async def delete_user(self, user_id: int) -> None:
        db_user = await self.get_user(user_id)
        await crud_user.user.remove(self.db, db_obj=db_user)
        await self.db.commit()
        logger.info("Deleted user %s", user_id)
