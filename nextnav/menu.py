"""
User menu builder - CRUD for per-user navigation shortcuts.
"""

import logging

from .interfaces import PreferencesStore
from .models import UserCustomMenuItem

logger = logging.getLogger(__name__)


class UserMenuBuilder:
    """Pass-through over a PreferencesStore for managing custom shortcuts."""

    def __init__(self, preferences_store: PreferencesStore):
        self.preferences_store = preferences_store

    async def add_item(self, user_id: str, item_name: str, order: int = 0) -> None:
        """Add a shortcut, or update its order if it already exists."""
        await self.preferences_store.add_or_update(
            UserCustomMenuItem(user_id=user_id, item_name=item_name, order=order)
        )
        logger.info(f"Menu item '{item_name}' set for user '{user_id}' (order {order})")

    async def remove_item(self, user_id: str, item_name: str) -> None:
        await self.preferences_store.remove(user_id, item_name)

    async def get_menu(self, user_id: str) -> list[UserCustomMenuItem]:
        """Shortcuts for a user, highest priority (lowest order) first."""
        items = await self.preferences_store.get_all(user_id)
        return sorted(items, key=lambda i: i.order)

    async def clear_menu(self, user_id: str) -> None:
        """
        Remove every shortcut of a user.

        Not atomic: an item added while clearing may survive.
        """
        items = await self.preferences_store.get_all(user_id)
        for item in items:
            await self.preferences_store.remove(user_id, item.item_name)
        logger.info(f"Cleared {len(items)} menu items for user '{user_id}'")
