"""
repositories/realm_repo.py
---------------------------
Data access layer for realms.
"""

from models.entity import EntityDescriptor
from repositories.base import EntityRepository

REALMS = EntityDescriptor(
    table="realms",
    fields=("name", "description", "logo", "author", "created_at", "updated_at"),
    required_fields=("name",),
    searchable_fields=("name", "description"),
    touch_field="updated_at",
)


class RealmRepository(EntityRepository):
    """Repository for CRUD operations on the realms table."""

    def __init__(self, **kwargs):
        super().__init__(REALMS, **kwargs)
