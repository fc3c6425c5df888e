"""
models/entity.py
----------------
Describes how a logical entity maps onto a single table.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


@dataclass(frozen=True)
class EntityDescriptor:
    """
    Table binding for one entity.

    Every column name that ends up in generated SQL comes from here,
    never from caller-supplied mapping keys.

    Attributes:
        table: Table name.
        fields: Columns accepted on insert, in declaration order.
        primary_key: Lookup/delete column.
        key_type: Python type of the primary key (int or str).
        required_fields: Columns that must be present and non-blank on create.
        searchable_fields: Text columns matched by a search term (OR-combined).
        order_by: Default listing order (ascending); the key is always appended.
        soft_delete_field: Boolean flag column, if rows are soft-deleted.
        touch_field: Timestamp column refreshed on every update.
        allow_explicit_key: Whether create() honours a caller-supplied key.
        key_generator: Produces keys for non auto-increment entities.
        key_validator: Checks a caller-supplied key; replaces the default
            positive-int / non-blank-str check.
    """
    table: str
    fields: tuple[str, ...]
    primary_key: str = "id"
    key_type: type = int
    required_fields: tuple[str, ...] = ()
    searchable_fields: tuple[str, ...] = ()
    order_by: tuple[str, ...] = ()
    soft_delete_field: Optional[str] = None
    touch_field: Optional[str] = None
    allow_explicit_key: bool = False
    key_generator: Optional[Callable[[], object]] = field(default=None, compare=False)
    key_validator: Optional[Callable[[object], bool]] = field(default=None, compare=False)

    def __post_init__(self):
        names = [self.table, self.primary_key, *self.fields]
        names += [n for n in (self.soft_delete_field, self.touch_field) if n]
        for name in names:
            if not _IDENTIFIER.match(name):
                raise ValueError(f"Invalid SQL identifier {name!r} in entity {self.table!r}")

        columns = set(self.columns)
        for group in ("required_fields", "searchable_fields", "order_by"):
            unknown = [c for c in getattr(self, group) if c not in columns]
            if unknown:
                raise ValueError(f"{self.table}.{group} references undeclared columns: {unknown}")
        if self.soft_delete_field and self.soft_delete_field not in columns:
            raise ValueError(f"{self.table}: soft delete column must be a declared field")

    @property
    def columns(self) -> tuple[str, ...]:
        """Primary key followed by every declared field."""
        return (self.primary_key,) + tuple(f for f in self.fields if f != self.primary_key)

    @property
    def mutable_fields(self) -> tuple[str, ...]:
        """Fields that update() may touch; never the primary key."""
        return tuple(f for f in self.fields if f != self.primary_key)

    @property
    def has_soft_delete(self) -> bool:
        return self.soft_delete_field is not None

    def missing_required(self, data: dict) -> list[str]:
        """Return required fields that are absent, None or blank after trimming."""
        missing = []
        for name in self.required_fields:
            value = data.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing
