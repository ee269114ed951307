"""
Entity descriptors.

An EntityDescriptor is the static description of one record type: the table
it lives in, its fields (with the storage column behind each one) and which
field is the primary key. Descriptors are defined at import time and never
change afterwards.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from taskboard.errors import EntityRegistrationError


@dataclass(frozen=True)
class Field:
    name: str
    column: str | None = None

    @property
    def column_name(self) -> str:
        return self.column or self.name


@dataclass(frozen=True)
class EntityDescriptor:
    """
    Storage shape of one entity.

    Args:
        name: Stable identity, used as the accessor cache key
        table: Table the records are stored in
        fields: Ordered fields; only these names may be referenced by callers
        primary_key: Name of the identifying field
    """

    name: str
    table: str
    fields: tuple[Field, ...]
    primary_key: str = "id"
    _columns: dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.fields:
            raise EntityRegistrationError(f"{self.name} declares no fields", self.name)

        columns = {}
        for f in self.fields:
            if f.name in columns:
                raise EntityRegistrationError(
                    f"{self.name} declares field {f.name!r} twice", self.name
                )
            columns[f.name] = f.column_name

        if self.primary_key not in columns:
            raise EntityRegistrationError(
                f"Primary key {self.primary_key!r} is not a field of {self.name}",
                self.name,
            )

        object.__setattr__(self, "_columns", columns)

    @property
    def field_names(self) -> frozenset[str]:
        return frozenset(self._columns)

    @property
    def primary_key_column(self) -> str:
        return self._columns[self.primary_key]

    def has_field(self, name: str) -> bool:
        return name in self._columns

    def column_for(self, name: str) -> str:
        """Storage column for a field name. Raises KeyError for unknown fields."""
        return self._columns[name]

    def pick(self, values: Mapping[str, Any] | None) -> dict[str, Any]:
        """
        Keep only the entries of a partial record that name known fields.

        Anything else (unknown keys, non-string keys) is dropped and never
        reaches the store.
        """
        if not values:
            return {}
        return {k: v for k, v in values.items() if isinstance(k, str) and k in self._columns}

    def unknown_fields(self, values: Mapping[str, Any]) -> list[str]:
        return [str(k) for k in values if not (isinstance(k, str) and k in self._columns)]


def fields(*specs: str | tuple[str, str]) -> tuple[Field, ...]:
    """
    Shorthand for declaring fields.

    Each spec is either a field name (stored in a column of the same name)
    or a (field name, column name) pair.
    """
    result = []
    for spec in specs:
        if isinstance(spec, tuple):
            result.append(Field(name=spec[0], column=spec[1]))
        else:
            result.append(Field(name=spec))
    return tuple(result)
