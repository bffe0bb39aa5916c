"""Entity data extraction from draftsman."""

from draftsman.data import entities as entity_data

from typing import Optional, Tuple
import math


class EntityDataHelper:
    """Helper to extract prototype information from draftsman data."""

    @staticmethod
    def is_known(prototype: str) -> bool:
        """Return True if draftsman has prototype data for ``prototype``."""
        return prototype in entity_data.raw

    @staticmethod
    def get_footprint(prototype: str) -> Optional[Tuple[int, int]]:
        """Get entity footprint size from draftsman prototype data.

        Args:
            prototype: Entity prototype name (e.g., "stone-furnace")

        Returns:
            (width, height) in tiles in the default orientation, or None if
            draftsman has no usable data for the prototype
        """
        entity_info = entity_data.raw.get(prototype)
        if not entity_info:
            return None

        width = entity_info.get("tile_width")
        height = entity_info.get("tile_height")
        if width is not None and height is not None:
            return (max(1, int(width)), max(1, int(height)))

        collision_box = entity_info.get("collision_box")
        if collision_box:
            try:
                width = max(1, math.ceil(collision_box[1][0] - collision_box[0][0]))
                height = max(1, math.ceil(collision_box[1][1] - collision_box[0][1]))
            except (IndexError, TypeError):
                return None
            return (width, height)

        return None


get_entity_footprint = EntityDataHelper.get_footprint
