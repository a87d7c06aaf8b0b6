"""
Menu Service

Thin layer over the Menu Store: accepts raw mappings or validated
schemas, applies price coercion, and logs changes.
"""

import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from cafe_orders.core.exceptions import NotFoundError, ValidationError
from cafe_orders.schemas import MenuItem, MenuItemCreate, MenuItemUpdate
from cafe_orders.services.storage.base import BaseStorage

logger = logging.getLogger(__name__)


class MenuService:
    """CRUD over menu items."""

    def __init__(self, storage: BaseStorage):
        self.storage = storage

    async def list_items(self) -> list[MenuItem]:
        return await self.storage.list_menu_items()

    async def create(self, data: Union[MenuItemCreate, Mapping[str, Any]]) -> MenuItem:
        if not isinstance(data, MenuItemCreate):
            try:
                data = MenuItemCreate.model_validate(data)
            except PydanticValidationError as e:
                raise ValidationError.from_errors(e.errors()) from e

        item = await self.storage.create_menu_item(data)
        logger.info(f"Menu item {item.id} added: {item.name} ({item.price})")
        return item

    async def update(
        self,
        item_id: str,
        data: Union[MenuItemUpdate, Mapping[str, Any]],
    ) -> MenuItem:
        """
        Merge the given fields into an existing item.

        Raises:
            NotFoundError: If the item does not exist
        """
        if not isinstance(data, MenuItemUpdate):
            try:
                data = MenuItemUpdate.model_validate(data)
            except PydanticValidationError as e:
                raise ValidationError.from_errors(e.errors()) from e

        try:
            item = await self.storage.update_menu_item(item_id, data.changes())
        except NotFoundError:
            logger.warning(f"Update of unknown menu item {item_id}")
            raise

        logger.info(f"Menu item {item_id} updated")
        return item

    async def delete(self, item_id: str) -> None:
        """Remove an item. Deleting an absent item is not an error."""
        removed = await self.storage.delete_menu_item(item_id)
        if removed:
            logger.info(f"Menu item {item_id} deleted")
        else:
            logger.debug(f"Menu item {item_id} already absent")
