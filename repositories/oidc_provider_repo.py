"""
repositories/oidc_provider_repo.py
-----------------------------------
Data access layer for OpenID Connect providers.

Providers are keyed by a random version-4 UUID rather than an
auto-increment id. A caller may pass its own `uuid`, but only a
well-formed v4 value is accepted. `client_secret` is stored exactly
as given; callers encrypt it before it reaches this layer.
"""

from typing import Optional

from models.entity import EntityDescriptor
from repositories.base import EntityRepository
from utils.ids import generate_uuid4, is_uuid4

OIDC_PROVIDERS = EntityDescriptor(
    table="oidc_providers",
    primary_key="uuid",
    key_type=str,
    fields=(
        "name", "issuer_url", "client_id", "client_secret",
        "scopes", "email_claim", "subject_claim", "group_claim", "group_value",
        "auto_provision", "require_email_verified", "enabled",
        "created_at", "updated_at",
    ),
    required_fields=("name", "issuer_url", "client_id", "client_secret"),
    searchable_fields=("name", "issuer_url"),
    order_by=("name",),
    touch_field="updated_at",
    allow_explicit_key=True,
    key_generator=generate_uuid4,
    key_validator=is_uuid4,
)


class OidcProviderRepository(EntityRepository):
    """Repository for CRUD operations on the oidc_providers table."""

    def __init__(self, **kwargs):
        super().__init__(OIDC_PROVIDERS, **kwargs)

    @staticmethod
    def generate_uuid() -> str:
        return generate_uuid4()

    def create_provider(self, data: dict) -> Optional[str]:
        """
        Insert a provider.

        Returns:
            The provider UUID (generated unless `data` carries one), or
            None if validation or the insert failed.
        """
        result = self.create(data)
        return result.value if result else None

    def get_provider_by_uuid(self, uuid: str) -> Optional[dict]:
        result = self.get_by_id(uuid)
        return result.value if result else None

    def get_all_providers(self) -> list[dict]:
        """All providers ordered by name."""
        return self.get_all()

    def get_enabled_providers(self) -> list[dict]:
        """Providers offered on the login page."""
        return self.get_all(filters={"enabled": True})

    def update_provider(self, uuid: str, data: dict) -> bool:
        return self.update(uuid, data)

    def delete_provider(self, uuid: str) -> bool:
        return self.hard_delete(uuid)
