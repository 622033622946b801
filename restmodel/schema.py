"""Declarative model schemas.

A :class:`Schema` holds the property and relationship definitions of a model.
Schemas are immutable once built; they are normally created with
:meth:`Schema.from_dict` from the mapping passed to ``register_model``::

    {
        "properties": {
            "name": {"type": "string", "required": True},
            "count": {"type": "number", "default": 0},
        },
        "relationships": {
            "books": {"type": "book", "foreignKey": "author_id", "hasMany": True},
        },
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .errors import StructuralError

DEFINITION_ERROR = 500


class _Missing:
    """Sentinel for "no default declared" (None is a valid default)"""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class PropertyType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


@dataclass(frozen=True)
class PropertySpec:
    """Definition of a single model property"""

    type: Optional[str] = None
    required: bool = False
    default: Any = MISSING

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @classmethod
    def from_dict(cls, name: str, spec: Any) -> "PropertySpec":
        if isinstance(spec, PropertySpec):
            return spec
        if isinstance(spec, str):
            # shorthand: {"name": "string"}
            return cls(type=spec)
        if not isinstance(spec, Mapping):
            raise StructuralError(f'Invalid definition for property "{name}"', DEFINITION_ERROR)
        prop_type = spec.get("type")
        if isinstance(prop_type, PropertyType):
            prop_type = prop_type.value
        return cls(type=prop_type, required=bool(spec.get("required", False)), default=spec.get("default", MISSING))


@dataclass(frozen=True)
class RelationshipSpec:
    """
    Link between an ancestor model and a target model:
    instances of `target_type` carry an attribute `foreign_key` holding the ancestor id
    """

    target_type: str
    foreign_key: str
    has_many: bool = True

    @classmethod
    def from_dict(cls, name: str, spec: Any) -> "RelationshipSpec":
        if isinstance(spec, RelationshipSpec):
            return spec
        if not isinstance(spec, Mapping):
            raise StructuralError(f'Invalid definition for relationship "{name}"', DEFINITION_ERROR)
        target_type = spec.get("targetType", spec.get("target_type", spec.get("type")))
        foreign_key = spec.get("foreignKey", spec.get("foreign_key"))
        if not target_type or not foreign_key:
            raise StructuralError(f'Relationship "{name}" requires a target type and a foreign key', DEFINITION_ERROR)
        has_many = spec.get("hasMany", spec.get("has_many", True))
        return cls(target_type=str(target_type), foreign_key=str(foreign_key), has_many=bool(has_many))


@dataclass(frozen=True)
class Schema:
    """Property and relationship definitions, in declaration order"""

    properties: Mapping[str, PropertySpec] = field(default_factory=dict)
    relationships: Mapping[str, RelationshipSpec] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # freeze the mappings, the dataclass itself is already frozen
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "relationships", MappingProxyType(dict(self.relationships)))

    @classmethod
    def from_dict(cls, schema: Any) -> "Schema":
        """
        :param schema: Schema instance or mapping with a "properties" mapping and an optional "relationships" mapping
        :return: Schema
        """
        if isinstance(schema, Schema):
            return schema
        if not isinstance(schema, Mapping):
            raise StructuralError("Schema must be a mapping", DEFINITION_ERROR)
        raw_properties = schema.get("properties")
        if not isinstance(raw_properties, Mapping):
            raise StructuralError('Schema requires a "properties" mapping', DEFINITION_ERROR)
        raw_relationships = schema.get("relationships") or {}
        if not isinstance(raw_relationships, Mapping):
            raise StructuralError('Schema "relationships" must be a mapping', DEFINITION_ERROR)
        properties = {str(name): PropertySpec.from_dict(name, spec) for name, spec in raw_properties.items()}
        relationships = {str(name): RelationshipSpec.from_dict(name, spec) for name, spec in raw_relationships.items()}
        return cls(properties=properties, relationships=relationships)

    def unknown_types(self) -> Mapping[str, str]:
        """
        :return: property name => declared type, for types without a validator
        """
        known = {member.value for member in PropertyType}
        return {name: spec.type for name, spec in self.properties.items() if spec.type is not None and spec.type not in known}
