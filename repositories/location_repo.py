"""
repositories/location_repo.py
------------------------------
Data access layer for node locations.

Locations accept an explicit integer `id` on create so that records
imported from another panel keep their original ids. The caller owns
that id space: nothing here checks the value against the table's
sequence, and after an import on PostgreSQL the sequence must be moved
past the highest imported id (see `sync_id_sequence`).
"""

from models.entity import EntityDescriptor
from repositories.base import EntityRepository
from utils.logger import get_logger

logger = get_logger(__name__)

LOCATIONS = EntityDescriptor(
    table="locations",
    fields=("name", "description", "flag_code", "created_at", "updated_at"),
    required_fields=("name",),
    searchable_fields=("name", "description"),
    touch_field="updated_at",
    allow_explicit_key=True,
)


class LocationRepository(EntityRepository):
    """Repository for CRUD operations on the locations table."""

    def __init__(self, **kwargs):
        super().__init__(LOCATIONS, **kwargs)

    def sync_id_sequence(self) -> bool:
        """
        Move the PostgreSQL id sequence past the highest existing id.

        Run once after inserting rows with explicit ids, so later
        auto-assigned ids cannot collide with imported ones.
        """
        sql = (
            "SELECT setval(pg_get_serial_sequence('locations', 'id'), "
            "COALESCE((SELECT MAX(id) FROM locations), 0) + 1, false);"
        )
        synced = self._execute(sql, (), "sync locations id sequence") is not None
        if synced:
            logger.info("Synchronized locations id sequence")
        return synced
