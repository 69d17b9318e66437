"""Item schemas and OData query parameter construction.

A SchemaRegistry maps an item type to its collection path, the fields to
$select and any single-value extended properties to $expand. Lookups happen
once per query; there is no implicit per-type dispatch.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from .models import ExtendedProperty

__all__ = [
    "ItemSchema",
    "SchemaRegistry",
    "default_registry",
    "query_params_for",
    "standard_properties_for",
]


@dataclass(frozen=True)
class ItemSchema:
    """How to query one item type.

    Attributes:
        item_type: Type items decode into
        path: Collection path relative to the base URL or a folder (e.g. /messages)
        standard_properties: Wire names sent in $select
        extended_properties: Extended properties requested through $expand
        parent: Folder type that can contain this item type, None if top-level only
    """

    item_type: Any
    path: str
    standard_properties: tuple[str, ...]
    extended_properties: tuple[ExtendedProperty, ...] = ()
    parent: Any = None


def standard_properties_for(model: type[BaseModel]) -> tuple[str, ...]:
    """Wire names (aliases) of every field declared on a pydantic model."""
    return tuple(
        field.alias or name for name, field in model.model_fields.items()
    )


class SchemaRegistry:
    """Registry of ItemSchema keyed by item type."""

    def __init__(self) -> None:
        self._schemas: dict[Any, ItemSchema] = {}

    def register(
        self,
        item_type: Any,
        path: str,
        standard_properties: tuple[str, ...] | list[str] | None = None,
        extended_properties: tuple[ExtendedProperty, ...] | list[ExtendedProperty] = (),
        parent: Any = None,
    ) -> ItemSchema:
        """Register (or replace) the schema for item_type.

        standard_properties defaults to the model's field aliases when
        item_type is a pydantic model.
        """
        if standard_properties is None:
            if not (isinstance(item_type, type) and issubclass(item_type, BaseModel)):
                raise TypeError(
                    f"standard_properties required for non-pydantic type {item_type!r}"
                )
            standard_properties = standard_properties_for(item_type)

        schema = ItemSchema(
            item_type=item_type,
            path=path,
            standard_properties=tuple(standard_properties),
            extended_properties=tuple(extended_properties),
            parent=parent,
        )
        self._schemas[item_type] = schema
        return schema

    def get(self, item_type: Any) -> ItemSchema:
        try:
            return self._schemas[item_type]
        except KeyError:
            name = getattr(item_type, "__name__", repr(item_type))
            raise KeyError(f"No schema registered for {name}") from None

    def __contains__(self, item_type: Any) -> bool:
        return item_type in self._schemas


default_registry = SchemaRegistry()


def query_params_for(
    schema: ItemSchema,
    filter: str | None = None,
    orderby: str | None = None,
) -> list[tuple[str, str]]:
    """Build $select/$filter/$orderby/$expand parameters for a schema.

    Parameters whose value would be None are omitted entirely.

    Example:
        >>> schema = ItemSchema(dict, "/messages", ("Id", "Subject"))
        >>> query_params_for(schema)
        [('$select', 'Id,Subject')]
    """
    expand = None
    if schema.extended_properties:
        clause = " OR ".join(
            f"PropertyId eq '{p.property_id}'" for p in schema.extended_properties
        )
        expand = f"SingleValueExtendedProperties($filter={clause})"

    params = [
        ("$select", ",".join(schema.standard_properties)),
        ("$filter", filter),
        ("$orderby", orderby),
        ("$expand", expand),
    ]
    return [(key, value) for key, value in params if value is not None]
